from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from sitestack.models.domain import PriceClass


# AWS managed "Managed-CachingOptimized" cache policy.
CACHING_OPTIMIZED_POLICY_ID = "658327ea-f89d-4fab-a63d-7e88639e58f6"


class ErrorResponse(BaseModel):
    error_code: int
    response_page_path: str
    response_code: int
    min_ttl: int

    def to_cloudfront(self) -> dict[str, Any]:
        return {
            "ErrorCode": self.error_code,
            "ResponsePagePath": self.response_page_path,
            "ResponseCode": str(self.response_code),
            "ErrorCachingMinTTL": self.min_ttl,
        }


def error_responses_for(*, is_spa: bool) -> list[ErrorResponse]:
    # A private bucket read through an access identity answers 403 for missing keys.
    if is_spa:
        return [ErrorResponse(error_code=403, response_page_path="/index.html", response_code=200, min_ttl=100000)]
    return [ErrorResponse(error_code=403, response_page_path="/404.html", response_code=404, min_ttl=30)]


class DistributionConfig(BaseModel):
    """Desired CloudFront distribution in front of the primary bucket."""

    origin_bucket: str
    region: str
    access_identity_id: str
    certificate_arn: str
    aliases: list[str] = Field(..., min_length=1)
    price_class: PriceClass = PriceClass.PRICE_CLASS_100
    error_responses: list[ErrorResponse] = Field(default_factory=list)
    cache_policy_id: str = CACHING_OPTIMIZED_POLICY_ID
    default_root_object: str = "index.html"
    ssl_support_method: str = "sni-only"
    minimum_protocol_version: str = "TLSv1"
    comment: str = ""

    id: Optional[str] = None
    domain_name: Optional[str] = None

    @property
    def origin_domain_name(self) -> str:
        return f"{self.origin_bucket}.s3.{self.region}.amazonaws.com"

    def to_request(self, *, caller_reference: str) -> dict[str, Any]:
        """Render the `DistributionConfig` payload of CreateDistribution."""

        return {
            "CallerReference": caller_reference,
            "Comment": self.comment,
            "Enabled": True,
            "DefaultRootObject": self.default_root_object,
            "Aliases": {"Quantity": len(self.aliases), "Items": list(self.aliases)},
            "Origins": {
                "Quantity": 1,
                "Items": [
                    {
                        "Id": self.origin_bucket,
                        "DomainName": self.origin_domain_name,
                        "S3OriginConfig": {
                            "OriginAccessIdentity": f"origin-access-identity/cloudfront/{self.access_identity_id}",
                        },
                    }
                ],
            },
            "DefaultCacheBehavior": {
                "TargetOriginId": self.origin_bucket,
                "ViewerProtocolPolicy": "redirect-to-https",
                "CachePolicyId": self.cache_policy_id,
            },
            "CustomErrorResponses": {
                "Quantity": len(self.error_responses),
                "Items": [response.to_cloudfront() for response in self.error_responses],
            },
            "ViewerCertificate": {
                "ACMCertificateArn": self.certificate_arn,
                "SSLSupportMethod": self.ssl_support_method,
                "MinimumProtocolVersion": self.minimum_protocol_version,
            },
            "PriceClass": self.price_class.value,
        }
