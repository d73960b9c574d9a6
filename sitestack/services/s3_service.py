from __future__ import annotations

import json
import logging
from typing import Any, Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from sitestack.services.config import AwsConfig
from sitestack.services.errors import S3ServiceError


logger = logging.getLogger(__name__)


class S3Service:
    """Bucket-level S3 calls needed to host a static site."""

    def __init__(self, config: AwsConfig, *, session: Optional[aioboto3.Session] = None) -> None:
        self._config = config
        self._session = session or aioboto3.Session()

    def _client(self) -> Any:
        return self._session.client(
            "s3",
            region_name=self._config.region_name,
            endpoint_url=self._config.endpoint_url,
        )

    async def list_bucket_names(self) -> set[str]:
        try:
            s3_client: Any = self._client()
            async with s3_client as s3:
                response = await s3.list_buckets()

            return {str(bucket.get("Name")) for bucket in response.get("Buckets", [])}
        except (BotoCoreError, ClientError) as exc:
            logger.exception("S3 list_buckets failed")
            raise S3ServiceError("Failed to list S3 buckets") from exc

    async def create_bucket(self, *, name: str) -> None:
        kwargs: dict[str, Any] = {"Bucket": name}
        # us-east-1 is the only region that rejects an explicit location constraint.
        if self._config.region_name != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self._config.region_name}

        try:
            s3_client: Any = self._client()
            async with s3_client as s3:
                await s3.create_bucket(**kwargs)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("S3 create_bucket failed (bucket=%s)", name)
            raise S3ServiceError(f"Failed to create S3 bucket {name}") from exc

    async def redirect_all_requests(self, *, name: str, host_name: str, protocol: str = "https") -> None:
        """Turn the bucket into a website that redirects every request to `protocol://host_name`."""

        try:
            s3_client: Any = self._client()
            async with s3_client as s3:
                await s3.put_bucket_website(
                    Bucket=name,
                    WebsiteConfiguration={
                        "RedirectAllRequestsTo": {"HostName": host_name, "Protocol": protocol},
                    },
                )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("S3 put_bucket_website failed (bucket=%s)", name)
            raise S3ServiceError(f"Failed to configure redirect for S3 bucket {name}") from exc

    async def set_public_access(self, *, name: str, is_public: bool) -> None:
        block = not is_public
        try:
            s3_client: Any = self._client()
            async with s3_client as s3:
                await s3.put_public_access_block(
                    Bucket=name,
                    PublicAccessBlockConfiguration={
                        "BlockPublicAcls": block,
                        "IgnorePublicAcls": block,
                        "BlockPublicPolicy": block,
                        "RestrictPublicBuckets": block,
                    },
                )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("S3 put_public_access_block failed (bucket=%s)", name)
            raise S3ServiceError(f"Failed to set public access of S3 bucket {name}") from exc

    @staticmethod
    def access_identity_read_policy(*, bucket: str, access_identity_id: str) -> dict[str, Any]:
        return {
            "Version": "2008-10-17",
            "Id": "PolicyForCloudFrontPrivateContent",
            "Statement": [
                {
                    "Sid": "1",
                    "Effect": "Allow",
                    "Principal": {
                        "AWS": f"arn:aws:iam::cloudfront:user/CloudFront Origin Access Identity {access_identity_id}",
                    },
                    "Action": "s3:GetObject",
                    "Resource": f"arn:aws:s3:::{bucket}/*",
                }
            ],
        }

    async def grant_access_identity_read(self, *, name: str, access_identity_id: str) -> None:
        """Allow a CloudFront origin access identity to read objects of a private bucket."""

        policy = self.access_identity_read_policy(bucket=name, access_identity_id=access_identity_id)
        try:
            s3_client: Any = self._client()
            async with s3_client as s3:
                await s3.put_bucket_policy(Bucket=name, Policy=json.dumps(policy))
        except (BotoCoreError, ClientError) as exc:
            logger.exception("S3 put_bucket_policy failed (bucket=%s)", name)
            raise S3ServiceError(f"Failed to grant CloudFront read access on S3 bucket {name}") from exc
