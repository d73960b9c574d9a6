from __future__ import annotations

from typing import Any, Optional

import pytest

from sitestack.models.distribution import DistributionConfig
from sitestack.models.domain import Certificate, HostedZone
from sitestack.models.provisioning import ProvisioningPlan
from sitestack.services.setup.operator_gate import OperatorGate


CERT_ARN = "arn:aws:acm:us-east-1:123456789012:certificate/abc-123"
ZONE_ID = "/hostedzone/Z0123456789"
OAI_ID = "E2OAI123"
DIST_ID = "E1DIST456"
DIST_DOMAIN = "d111111abcdef8.cloudfront.net"


def pending_certificate(*names: str, arn: str = CERT_ARN) -> Certificate:
    return Certificate(
        arn=arn,
        status="PENDING_VALIDATION",
        validation_options=[
            {
                "DomainName": name,
                "ResourceRecord": {"Name": f"_x1.{name}.", "Type": "CNAME", "Value": f"_y1.{name}.acm-validations.aws."},
            }
            for name in names
        ],
    )


def certificate(status: str, arn: str = CERT_ARN) -> Certificate:
    return Certificate(arn=arn, status=status)


class CallLog:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def record(self, call: str, /, **kwargs: Any) -> None:
        self.calls.append((call, kwargs))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def first(self, name: str) -> dict[str, Any]:
        return next(kwargs for call, kwargs in self.calls if call == name)

    def all(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]


class FakeS3:
    def __init__(self, log: CallLog, buckets: Optional[set[str]] = None) -> None:
        self._log = log
        self.buckets = set(buckets or ())

    async def list_bucket_names(self) -> set[str]:
        return set(self.buckets)

    async def create_bucket(self, *, name: str) -> None:
        self._log.record("s3.create_bucket", name=name)
        self.buckets.add(name)

    async def redirect_all_requests(self, *, name: str, host_name: str, protocol: str = "https") -> None:
        self._log.record("s3.redirect_all_requests", name=name, host_name=host_name, protocol=protocol)

    async def set_public_access(self, *, name: str, is_public: bool) -> None:
        self._log.record("s3.set_public_access", name=name, is_public=is_public)

    async def grant_access_identity_read(self, *, name: str, access_identity_id: str) -> None:
        self._log.record("s3.grant_access_identity_read", name=name, access_identity_id=access_identity_id)


class FakeAcm:
    """Answers describe_certificate from a script; the last answer repeats."""

    def __init__(self, log: CallLog, responses: Optional[list[Certificate]] = None) -> None:
        self._log = log
        self.responses = list(responses or [])
        self.describe_count = 0

    async def request_certificate(self, *, domain: str, alt_names: Optional[list[str]] = None) -> str:
        self._log.record("acm.request_certificate", domain=domain, alt_names=list(alt_names or []))
        return CERT_ARN

    async def describe_certificate(self, *, arn: str) -> Certificate:
        self.describe_count += 1
        self._log.record("acm.describe_certificate", arn=arn)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


class FakeRoute53:
    def __init__(
        self,
        log: CallLog,
        hosted_zone: Optional[HostedZone] = None,
        existing_records: Optional[set[tuple[str, str]]] = None,
    ) -> None:
        self._log = log
        self.hosted_zone = hosted_zone
        self.existing_records = set(existing_records or ())
        self.fail_on_change: Optional[Exception] = None

    async def find_hosted_zone_for_domain(self, *, domain: str) -> Optional[HostedZone]:
        return self.hosted_zone

    async def create_hosted_zone(self, *, domain: str) -> HostedZone:
        self._log.record("route53.create_hosted_zone", domain=domain)
        self.hosted_zone = HostedZone(
            id=ZONE_ID,
            name="example.com.",
            name_servers=["ns-1.awsdns-01.org", "ns-2.awsdns-02.com"],
        )
        return self.hosted_zone

    async def has_record(self, *, hosted_zone_id: str, record_type: str, name: str) -> bool:
        return (record_type, name) in self.existing_records

    async def change_record_sets(self, *, hosted_zone_id: str, change_batch: dict[str, Any]) -> str:
        self._log.record("route53.change_record_sets", hosted_zone_id=hosted_zone_id, change_batch=change_batch)
        if self.fail_on_change is not None:
            raise self.fail_on_change
        return "/change/C1"


class FakeCloudFront:
    def __init__(self, log: CallLog, distributions: Optional[dict[str, str]] = None) -> None:
        self._log = log
        self.distributions = dict(distributions or {})

    async def create_origin_access_identity(self, *, name: str) -> str:
        self._log.record("cloudfront.create_origin_access_identity", name=name)
        return OAI_ID

    async def create_distribution(self, *, config: DistributionConfig) -> DistributionConfig:
        self._log.record("cloudfront.create_distribution", config=config)
        return config.model_copy(update={"id": DIST_ID, "domain_name": DIST_DOMAIN})

    async def get_distribution_domain(self, *, distribution_id: str) -> str:
        return self.distributions[distribution_id]


class ScriptedGate(OperatorGate):
    def __init__(self, log: CallLog, *, answers: Optional[list[bool]] = None, approve: bool = True) -> None:
        self._log = log
        self.answers = list(answers or [])
        self.approve = approve
        self.questions: list[str] = []
        self.acknowledged: list[str] = []
        self.plans: list[ProvisioningPlan] = []
        self.waits: list[int] = []

    def confirm(self, question: str) -> bool:
        self.questions.append(question)
        return self.answers.pop(0) if self.answers else False

    def approve_plan(self, plan: ProvisioningPlan) -> bool:
        self.plans.append(plan)
        return self.approve

    def acknowledge(self, message: str) -> None:
        self._log.record("gate.acknowledge", message=message)
        self.acknowledged.append(message)

    def certificate_wait(self, seconds: int) -> None:
        self.waits.append(seconds)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def log() -> CallLog:
    return CallLog()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
