from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from sitestack.models.domain import HostedZone
from sitestack.services.errors import ErrorKind, SiteStackError


class SummaryTag(str, Enum):
    CREATED = "created"
    REUSED = "reused"


class ResourceKind(str, Enum):
    S3_BUCKET = "S3 bucket"
    HOSTED_ZONE = "Hosted zone"
    CERTIFICATE = "Certificate"
    DNS_CNAME = "DNS CNAME"
    ACCESS_IDENTITY = "CF Origin Access Id"
    DISTRIBUTION = "Cloudfront distribution"
    DNS_ALIAS_A_AAAA = "DNS A/AAAA alias"
    DNS_ALIAS_A = "DNS A alias"


class SummaryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: SummaryTag
    kind: ResourceKind
    id: str

    def describe(self) -> str:
        return f"{self.tag.value}: {self.kind.value} {self.id}"


class SummaryLedger(BaseModel):
    """Append-only record of what exists after (or up to the failure of) a run."""

    entries: list[SummaryEntry] = Field(default_factory=list)

    def created(self, kind: ResourceKind, resource_id: str) -> None:
        self.entries.append(SummaryEntry(tag=SummaryTag.CREATED, kind=kind, id=resource_id))

    def reused(self, kind: ResourceKind, resource_id: str) -> None:
        self.entries.append(SummaryEntry(tag=SummaryTag.REUSED, kind=kind, id=resource_id))


class ProvisioningPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    actions: tuple[str, ...] = ()
    costly: bool = False

    def render(self) -> str:
        return "\n".join(f"  - {action}" for action in self.actions)


class Confirmation(BaseModel):
    """A question the operator must answer "yes" before anything is changed."""

    model_config = ConfigDict(frozen=True)

    reason: str
    question: str
    record_type: Optional[str] = None
    record_name: Optional[str] = None

    @property
    def overwrites_record(self) -> bool:
        return self.record_type is not None and self.record_name is not None


class PreflightReport(BaseModel):
    hosted_zone: Optional[HostedZone] = None
    confirmations: list[Confirmation] = Field(default_factory=list)
    certificate_needs_validation: bool = True
    distribution_domain: Optional[str] = None
    plan: ProvisioningPlan = Field(default_factory=ProvisioningPlan)


class ProvisioningOutcome(BaseModel):
    """Result of a provisioning run: the ledger plus the error that stopped it, if any."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    ledger: SummaryLedger = Field(default_factory=SummaryLedger)
    error: Optional[SiteStackError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None
