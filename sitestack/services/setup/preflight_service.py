from __future__ import annotations

import logging
from typing import Optional

from sitestack.models.distribution import CACHING_OPTIMIZED_POLICY_ID
from sitestack.models.domain import DomainSpec, HostedZone
from sitestack.models.provisioning import Confirmation, PreflightReport, ProvisioningPlan
from sitestack.services.acm_service import AcmService
from sitestack.services.cloudfront_service import CloudFrontService
from sitestack.services.dns_record_composer import s3_website_hosted_zone_id
from sitestack.services.errors import PreconditionError
from sitestack.services.route53_service import Route53Service
from sitestack.services.s3_service import S3Service


logger = logging.getLogger(__name__)

UNSUPPORTED_REGIONS = frozenset({"me-south-1"})


class PreflightService:
    """Reads live AWS state and decides what a run would do, without changing anything.

    Hard aborts raise `PreconditionError` (or `AmbiguousHostedZoneError` from
    the zone lookup). Situations the operator may knowingly accept come back as
    `Confirmation`s on the report.
    """

    def __init__(
        self,
        *,
        s3: S3Service,
        acm: AcmService,
        route53: Route53Service,
        cloudfront: CloudFrontService,
    ) -> None:
        self._s3 = s3
        self._acm = acm
        self._route53 = route53
        self._cloudfront = cloudfront

    async def inspect(self, spec: DomainSpec) -> PreflightReport:
        self.check_preconditions(spec)

        logger.info("Checking hosted zones.")
        hosted_zone = await self._route53.find_hosted_zone_for_domain(domain=spec.domain)

        confirmations: list[Confirmation] = []
        if hosted_zone is None:
            confirmations.append(
                Confirmation(
                    reason=f"Hosted zone {spec.zone_name} does not exist.",
                    question="Should it be created?",
                )
            )
        else:
            logger.info("Checking DNS entries.")
            confirmations.extend(await self._existing_record_confirmations(spec, hosted_zone))

        logger.info("Checking existing buckets.")
        await self._check_buckets(spec)

        certificate_needs_validation = True
        if spec.use_certificate:
            logger.info("Checking certificate.")
            certificate_needs_validation = await self._certificate_needs_validation(spec.use_certificate)
            logger.info("Certificate has %s validated.", "to be" if certificate_needs_validation else "not to be")

        distribution_domain: Optional[str] = None
        if spec.use_distribution:
            logger.info("Checking CloudFront distribution.")
            distribution_domain = await self._cloudfront.get_distribution_domain(distribution_id=spec.use_distribution)

        return PreflightReport(
            hosted_zone=hosted_zone,
            confirmations=confirmations,
            certificate_needs_validation=certificate_needs_validation,
            distribution_domain=distribution_domain,
            plan=self.build_plan(
                spec,
                hosted_zone=hosted_zone,
                certificate_needs_validation=certificate_needs_validation,
                distribution_domain=distribution_domain,
            ),
        )

    @staticmethod
    def check_preconditions(spec: DomainSpec) -> None:
        """Checks that need no AWS call."""

        if spec.region in UNSUPPORTED_REGIONS:
            raise PreconditionError(f"Region {spec.region} is not supported.")

        if not spec.no_www and s3_website_hosted_zone_id(spec.region) is None:
            raise PreconditionError(
                f"S3 website endpoints in {spec.region} cannot be aliased from Route 53; "
                "use another region or --no-www."
            )

        foreign = spec.foreign_alt_names()
        if foreign:
            raise PreconditionError(
                "Alternative domains are only allowed when they are in the same hosted zone as the main domain "
                f"({spec.zone_name}); offending: {', '.join(foreign)}"
            )

    async def _existing_record_confirmations(self, spec: DomainSpec, hosted_zone: HostedZone) -> list[Confirmation]:
        checks = [("A", spec.domain), ("AAAA", spec.domain)]
        if not spec.no_www:
            checks.append(("A", spec.www_domain))

        confirmations: list[Confirmation] = []
        for record_type, name in checks:
            if await self._route53.has_record(hosted_zone_id=hosted_zone.id, record_type=record_type, name=name):
                confirmations.append(
                    Confirmation(
                        reason=(
                            f"DNS {record_type} record for {name} exists. Overwriting it will make the resource "
                            "currently served under that domain unavailable."
                        ),
                        question="Overwrite the record anyway?",
                        record_type=record_type,
                        record_name=name,
                    )
                )
        return confirmations

    async def _check_buckets(self, spec: DomainSpec) -> None:
        buckets = await self._s3.list_bucket_names()
        if spec.primary_bucket in buckets and not spec.skip_create_bucket:
            raise PreconditionError(f"S3 bucket {spec.primary_bucket} already exists, aborting!")
        if not spec.no_www and spec.www_bucket_name in buckets and not spec.skip_create_www_bucket:
            raise PreconditionError(f"S3 bucket {spec.www_bucket_name} already exists, aborting!")

    async def _certificate_needs_validation(self, arn: str) -> bool:
        certificate = await self._acm.describe_certificate(arn=arn)
        if certificate.is_issued:
            return False
        if certificate.is_pending:
            return True
        raise PreconditionError(f"Certificate {arn} cannot be reused, its status is {certificate.status}")

    @staticmethod
    def build_plan(
        spec: DomainSpec,
        *,
        hosted_zone: Optional[HostedZone],
        certificate_needs_validation: bool,
        distribution_domain: Optional[str],
    ) -> ProvisioningPlan:
        names = ", ".join(spec.certificate_domains)
        actions: list[str] = []

        if spec.skip_create_bucket:
            actions.append(f"reuse S3 bucket {spec.primary_bucket} (set private)")
        else:
            actions.append(f"create private S3 bucket {spec.primary_bucket}")

        if not spec.no_www:
            if spec.skip_create_www_bucket:
                actions.append(f"reuse S3 bucket {spec.www_bucket_name}")
            else:
                actions.append(
                    f"create public S3 bucket {spec.www_bucket_name} with a website that redirects "
                    f"to https://{spec.domain}"
                )

        if hosted_zone is None:
            actions.append(f"create hosted zone {spec.zone_name}")
        else:
            actions.append(f"reuse hosted zone {hosted_zone.name} ({hosted_zone.id})")

        if spec.use_certificate:
            actions.append(f"reuse ACM certificate {spec.use_certificate}")
        else:
            actions.append(f"create ACM certificate for {names}")
        if certificate_needs_validation:
            actions.append(f"create DNS CNAME records validating the certificate for {names}")

        if spec.use_distribution:
            actions.append(f"reuse CloudFront distribution {spec.use_distribution} ({distribution_domain})")
        else:
            actions.append("create CloudFront origin access identity")
            actions.append(
                f"create CloudFront distribution for {names} with price class {spec.price_class.value}, "
                f"{'set up' if spec.is_spa else 'not set up'} for a single page app, default root object "
                f"index.html, SSL support method sni-only, cache policy {CACHING_OPTIMIZED_POLICY_ID} "
                f"(Managed-CachingOptimized) and the S3 bucket {spec.primary_bucket} as origin"
            )

        actions.append(f"create DNS A and AAAA records for {spec.domain}")
        if not spec.no_www:
            actions.append(f"create DNS A record for {spec.www_domain}")

        costly = (
            not spec.skip_create_bucket
            or (not spec.no_www and not spec.skip_create_www_bucket)
            or hosted_zone is None
            or not spec.use_distribution
        )
        return ProvisioningPlan(actions=tuple(actions), costly=costly)
