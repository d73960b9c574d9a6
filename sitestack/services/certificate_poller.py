from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from sitestack.models.dns import ValueRecord
from sitestack.models.domain import Certificate
from sitestack.services.acm_service import AcmService
from sitestack.services.config import PollingConfig
from sitestack.services.errors import (
    CertificateIssuanceFailedError,
    CertificateIssuanceTimeoutError,
    ValidationOptionsNotReadyError,
)


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
ProgressCallback = Callable[[int], None]


class CertificatePoller:
    """Observes an ACM certificate until it is usable.

    Two loops, both with their counters kept local to the call:

    - `fetch_validation_records` is bounded. ACM fills in the DNS validation
      options a few seconds after the request, so it retries with a linear
      backoff and gives up after `validation_max_attempts`.
    - `wait_for_issuance` has no limit unless `max_issuance_wait_seconds` is
      configured. Each round waits 10s longer than the previous one.
    """

    def __init__(
        self,
        acm: AcmService,
        *,
        config: Optional[PollingConfig] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._acm = acm
        self._config = config or PollingConfig()
        self._sleep = sleep

    async def fetch_validation_records(self, *, arn: str, expected_count: int) -> list[ValueRecord]:
        """Return the CNAME records that validate every certificate domain.

        A wildcard and its base name share one validation record, so records
        are unique by (name, type) and may be fewer than `expected_count`.

        Raises:
            ValidationOptionsNotReadyError: if no complete set was returned within
                the allowed attempts. Not retried by any caller.
        """

        max_attempts = self._config.validation_max_attempts
        attempt = 0
        while attempt < max_attempts:
            attempt += 1
            certificate = await self._acm.describe_certificate(arn=arn)
            records = certificate.validation_records(expected_count)
            if records is not None:
                unique: dict[tuple[str, str], ValueRecord] = {}
                for r in records:
                    unique.setdefault((r.name, r.type), ValueRecord(name=r.name, type=r.type, values=[r.value]))
                logger.info("Got %d validation record(s) for %s after %d attempt(s)", len(unique), arn, attempt)
                return list(unique.values())

            logger.info(
                "Validation options for %s not ready (attempt %d/%d, got %d of %d)",
                arn,
                attempt,
                max_attempts,
                len(certificate.validation_options),
                expected_count,
            )
            if attempt < max_attempts:
                await self._sleep(self._config.validation_backoff_seconds * attempt)

        raise ValidationOptionsNotReadyError(arn, attempt)

    async def wait_for_issuance(self, *, arn: str, on_progress: Optional[ProgressCallback] = None) -> Certificate:
        """Block until the certificate is ISSUED.

        `on_progress` receives the number of seconds about to be waited (10, 20,
        30, ...) before each status check.

        Raises:
            CertificateIssuanceFailedError: on any terminal status other than ISSUED.
            CertificateIssuanceTimeoutError: only when a maximum wait is configured
                and it would be exceeded.
        """

        step = self._config.issuance_step_seconds
        max_wait = self._config.max_issuance_wait_seconds
        counter = 0
        waited = 0.0
        while True:
            counter += step
            if max_wait is not None and waited + counter > max_wait:
                raise CertificateIssuanceTimeoutError(arn, waited)

            if on_progress is not None:
                on_progress(counter)
            await self._sleep(counter)
            waited += counter

            logger.info("Checking certificate status (%s)", arn)
            certificate = await self._acm.describe_certificate(arn=arn)
            if certificate.is_pending:
                continue
            if certificate.is_issued:
                logger.info("Certificate %s issued after %gs", arn, waited)
                return certificate
            raise CertificateIssuanceFailedError(arn, certificate.status)
