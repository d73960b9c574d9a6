from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class ValueRecord(BaseModel):
    """Plain record set with literal values (CNAME, TXT, ...)."""

    name: str
    type: str
    values: list[str] = Field(..., min_length=1)
    ttl: Optional[int] = Field(default=None, gt=0)

    def to_route53(self, *, ttl: int) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Type": self.type,
            "TTL": self.ttl or ttl,
            "ResourceRecords": [{"Value": value} for value in self.values],
        }


class AliasRecord(BaseModel):
    """Route 53 alias pointing at another AWS endpoint (CloudFront, S3 website)."""

    name: str
    type: str
    dns_name: str
    hosted_zone_id: Optional[str] = None
    evaluate_target_health: bool = False

    def to_route53(self, *, hosted_zone_id: str) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Type": self.type,
            "AliasTarget": {
                "HostedZoneId": hosted_zone_id,
                "DNSName": self.dns_name,
                "EvaluateTargetHealth": self.evaluate_target_health,
            },
        }


RecordSpec = Union[ValueRecord, AliasRecord]
