from __future__ import annotations

import logging
import time
from typing import Any, Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from sitestack.models.domain import HostedZone
from sitestack.services.config import AwsConfig
from sitestack.services.errors import AmbiguousHostedZoneError, Route53ServiceError
from sitestack.services.zone_names import ensure_trailing_dot, hosted_zone_name


logger = logging.getLogger(__name__)


class Route53Service:
    def __init__(self, config: AwsConfig, *, session: Optional[aioboto3.Session] = None) -> None:
        self._config = config
        self._session = session or aioboto3.Session()

    def _client(self) -> Any:
        return self._session.client(
            "route53",
            region_name=self._config.global_region_name,
            endpoint_url=self._config.endpoint_url,
        )

    async def find_hosted_zones(self, *, zone_name: str) -> list[dict[str, Any]]:
        """Return the raw hosted zones whose name is exactly `zone_name`."""

        wanted = ensure_trailing_dot(zone_name)
        try:
            r53_client: Any = self._client()
            async with r53_client as r53:
                response = await r53.list_hosted_zones_by_name(DNSName=wanted)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Route53 list_hosted_zones_by_name failed (zone=%s)", zone_name)
            raise Route53ServiceError(f"Failed to list hosted zones for {zone_name}") from exc

        # The listing starts at DNSName and continues alphabetically; keep exact matches only.
        return [zone for zone in response.get("HostedZones", []) if ensure_trailing_dot(str(zone.get("Name"))) == wanted]

    async def find_hosted_zone_for_domain(self, *, domain: str) -> Optional[HostedZone]:
        """Look up the hosted zone serving `domain`.

        Raises:
            AmbiguousHostedZoneError: if more than one zone carries the name.
        """

        zone_name = hosted_zone_name(domain)
        matches = await self.find_hosted_zones(zone_name=zone_name)
        if len(matches) > 1:
            raise AmbiguousHostedZoneError(zone_name, matches)
        if not matches:
            return None
        return HostedZone.from_route53(matches[0])

    async def create_hosted_zone(self, *, domain: str) -> HostedZone:
        zone_name = hosted_zone_name(domain)
        try:
            r53_client: Any = self._client()
            async with r53_client as r53:
                response = await r53.create_hosted_zone(
                    Name=zone_name,
                    CallerReference=f"sitestack-{zone_name}-{int(time.time() * 1000)}",
                )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Route53 create_hosted_zone failed (zone=%s)", zone_name)
            raise Route53ServiceError(f"Failed to create hosted zone {zone_name}") from exc

        return HostedZone.from_route53(response["HostedZone"], response.get("DelegationSet"))

    async def has_record(self, *, hosted_zone_id: str, record_type: str, name: str) -> bool:
        wanted = ensure_trailing_dot(name.lower())
        try:
            r53_client: Any = self._client()
            async with r53_client as r53:
                response = await r53.list_resource_record_sets(
                    HostedZoneId=hosted_zone_id,
                    StartRecordName=wanted,
                    StartRecordType=record_type,
                    MaxItems="1",
                )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Route53 list_resource_record_sets failed (zone=%s, name=%s)", hosted_zone_id, name)
            raise Route53ServiceError(f"Failed to list {record_type} records for {name}") from exc

        # The listing starts at the requested name/type; an empty or later entry means no match.
        for record in response.get("ResourceRecordSets", []):
            if ensure_trailing_dot(str(record.get("Name")).lower()) == wanted and record.get("Type") == record_type:
                return True
        return False

    async def change_record_sets(self, *, hosted_zone_id: str, change_batch: dict[str, Any]) -> str:
        """Apply a change batch and return the Route 53 change id."""

        try:
            r53_client: Any = self._client()
            async with r53_client as r53:
                response = await r53.change_resource_record_sets(HostedZoneId=hosted_zone_id, ChangeBatch=change_batch)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Route53 change_resource_record_sets failed (zone=%s)", hosted_zone_id)
            raise Route53ServiceError(f"Failed to change record sets in hosted zone {hosted_zone_id}") from exc

        return str((response.get("ChangeInfo") or {}).get("Id", ""))
