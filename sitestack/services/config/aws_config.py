from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar, Optional


@dataclass(frozen=True)
class AwsConfig:
    """Where the AWS clients point.

    S3 buckets live in `region_name`. ACM certificates used by CloudFront must be
    requested in us-east-1, and Route 53 / CloudFront are global services that
    are addressed through us-east-1 as well.
    """

    _DEFAULT_REGION: ClassVar[str] = "eu-central-1"

    region_name: str = _DEFAULT_REGION
    global_region_name: str = "us-east-1"
    endpoint_url: Optional[str] = None

    @staticmethod
    def from_env(*, region_name: Optional[str] = None) -> "AwsConfig":
        region = (
            region_name
            or os.getenv("SITESTACK_REGION")
            or os.getenv("AWS_REGION")
            or os.getenv("AWS_DEFAULT_REGION")
            or AwsConfig._DEFAULT_REGION
        )
        endpoint_url = os.getenv("SITESTACK_ENDPOINT_URL") or None

        return AwsConfig(region_name=region, endpoint_url=endpoint_url)
