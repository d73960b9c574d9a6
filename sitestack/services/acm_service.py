from __future__ import annotations

import logging
from typing import Any, Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from sitestack.models.domain import Certificate
from sitestack.services.config import AwsConfig
from sitestack.services.errors import AcmServiceError


logger = logging.getLogger(__name__)


class AcmService:
    """ACM calls. Certificates for CloudFront must live in us-east-1."""

    def __init__(self, config: AwsConfig, *, session: Optional[aioboto3.Session] = None) -> None:
        self._config = config
        self._session = session or aioboto3.Session()

    def _client(self) -> Any:
        return self._session.client(
            "acm",
            region_name=self._config.global_region_name,
            endpoint_url=self._config.endpoint_url,
        )

    async def request_certificate(self, *, domain: str, alt_names: Optional[list[str]] = None) -> str:
        """Request a DNS-validated certificate and return its ARN."""

        kwargs: dict[str, Any] = {
            "DomainName": domain,
            "ValidationMethod": "DNS",
        }
        if alt_names:
            kwargs["SubjectAlternativeNames"] = list(alt_names)

        try:
            acm_client: Any = self._client()
            async with acm_client as acm:
                response = await acm.request_certificate(**kwargs)

            return str(response["CertificateArn"])
        except (BotoCoreError, ClientError) as exc:
            logger.exception("ACM request_certificate failed (domain=%s)", domain)
            raise AcmServiceError(f"Failed to request certificate for {domain}") from exc

    async def describe_certificate(self, *, arn: str) -> Certificate:
        try:
            acm_client: Any = self._client()
            async with acm_client as acm:
                response = await acm.describe_certificate(CertificateArn=arn)

            return Certificate.from_acm(response.get("Certificate") or {"CertificateArn": arn})
        except (BotoCoreError, ClientError) as exc:
            logger.exception("ACM describe_certificate failed (arn=%s)", arn)
            raise AcmServiceError(f"Failed to describe certificate {arn}") from exc
