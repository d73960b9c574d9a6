from __future__ import annotations

import logging
import time
from typing import Any, Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from sitestack.models.distribution import DistributionConfig
from sitestack.services.config import AwsConfig
from sitestack.services.errors import CloudFrontServiceError


logger = logging.getLogger(__name__)


class CloudFrontService:
    def __init__(self, config: AwsConfig, *, session: Optional[aioboto3.Session] = None) -> None:
        self._config = config
        self._session = session or aioboto3.Session()

    def _client(self) -> Any:
        return self._session.client(
            "cloudfront",
            region_name=self._config.global_region_name,
            endpoint_url=self._config.endpoint_url,
        )

    @staticmethod
    def _caller_reference(name: str) -> str:
        return f"sitestack-{name}-{int(time.time() * 1000)}"

    async def create_origin_access_identity(self, *, name: str) -> str:
        """Create an origin access identity and return its id."""

        try:
            cf_client: Any = self._client()
            async with cf_client as cf:
                response = await cf.create_cloud_front_origin_access_identity(
                    CloudFrontOriginAccessIdentityConfig={
                        "CallerReference": self._caller_reference(name),
                        "Comment": f"access-identity-{name}",
                    }
                )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("CloudFront create_cloud_front_origin_access_identity failed (name=%s)", name)
            raise CloudFrontServiceError(f"Failed to create CloudFront origin access identity for {name}") from exc

        return str(response["CloudFrontOriginAccessIdentity"]["Id"])

    async def create_distribution(self, *, config: DistributionConfig) -> DistributionConfig:
        """Create the distribution and return `config` completed with its id and domain name."""

        request = config.to_request(caller_reference=self._caller_reference(config.aliases[0]))
        try:
            cf_client: Any = self._client()
            async with cf_client as cf:
                response = await cf.create_distribution(DistributionConfig=request)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("CloudFront create_distribution failed (aliases=%s)", config.aliases)
            raise CloudFrontServiceError(f"Failed to create CloudFront distribution for {config.aliases}") from exc

        distribution = response["Distribution"]
        return config.model_copy(update={"id": distribution["Id"], "domain_name": distribution["DomainName"]})

    async def get_distribution_domain(self, *, distribution_id: str) -> str:
        try:
            cf_client: Any = self._client()
            async with cf_client as cf:
                response = await cf.get_distribution(Id=distribution_id)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("CloudFront get_distribution failed (id=%s)", distribution_id)
            raise CloudFrontServiceError(f"Failed to fetch CloudFront distribution {distribution_id}") from exc

        return str(response["Distribution"]["DomainName"])
