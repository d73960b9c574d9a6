from __future__ import annotations

import json
from enum import Enum
from typing import Any, ClassVar


class ErrorKind(str, Enum):
    PRECONDITION = "precondition"
    AMBIGUOUS_STATE = "ambiguous_state"
    RETRY_EXHAUSTED = "retry_exhausted"
    ISSUANCE_FAILED = "issuance_failed"
    ISSUANCE_TIMEOUT = "issuance_timeout"
    UNRESOLVABLE_ALIAS = "unresolvable_alias"
    SERVICE = "service"
    ABORTED = "aborted"


class SiteStackError(RuntimeError):
    """Base for every failure the provisioning flow knows how to report."""

    kind: ClassVar[ErrorKind] = ErrorKind.SERVICE


class PreconditionError(SiteStackError):
    kind = ErrorKind.PRECONDITION


class AmbiguousHostedZoneError(SiteStackError):
    kind = ErrorKind.AMBIGUOUS_STATE

    def __init__(self, zone_name: str, matches: list[dict[str, Any]]) -> None:
        self.zone_name = zone_name
        self.matches = matches
        super().__init__(
            f"Found multiple hosted zones matching {zone_name}, could not figure out which one to use: "
            f"{json.dumps(matches, indent=2, default=str)}"
        )


class ValidationOptionsNotReadyError(SiteStackError):
    kind = ErrorKind.RETRY_EXHAUSTED

    def __init__(self, certificate_arn: str, attempts: int) -> None:
        self.certificate_arn = certificate_arn
        self.attempts = attempts
        super().__init__(
            f"Could not retrieve domain validation options for {certificate_arn} after {attempts} attempts. "
            "Maybe try again later."
        )


class CertificateIssuanceFailedError(SiteStackError):
    kind = ErrorKind.ISSUANCE_FAILED

    def __init__(self, certificate_arn: str, status: str) -> None:
        self.certificate_arn = certificate_arn
        self.status = status
        super().__init__(f"Certificate could not be issued: {status} ({certificate_arn})")


class CertificateIssuanceTimeoutError(SiteStackError):
    kind = ErrorKind.ISSUANCE_TIMEOUT

    def __init__(self, certificate_arn: str, waited_seconds: float) -> None:
        self.certificate_arn = certificate_arn
        self.waited_seconds = waited_seconds
        super().__init__(
            f"Certificate {certificate_arn} still pending validation after waiting {waited_seconds:g}s"
        )


class UnresolvableAliasTargetError(SiteStackError):
    kind = ErrorKind.UNRESOLVABLE_ALIAS

    def __init__(self, dns_name: str) -> None:
        self.dns_name = dns_name
        super().__init__(
            f"Alias target hosted zone id missing and cannot be inferred from {dns_name!r}"
        )


class OperatorAbortedError(SiteStackError):
    kind = ErrorKind.ABORTED


class CloudServiceError(SiteStackError):
    kind = ErrorKind.SERVICE


class S3ServiceError(CloudServiceError):
    pass


class AcmServiceError(CloudServiceError):
    pass


class Route53ServiceError(CloudServiceError):
    pass


class CloudFrontServiceError(CloudServiceError):
    pass
