from __future__ import annotations

import logging
from typing import Any, Optional

from sitestack.models.distribution import DistributionConfig, error_responses_for
from sitestack.models.dns import AliasRecord
from sitestack.models.domain import DomainSpec, HostedZone
from sitestack.models.provisioning import (
    PreflightReport,
    ProvisioningOutcome,
    ResourceKind,
    SummaryLedger,
)
from sitestack.services.acm_service import AcmService
from sitestack.services.certificate_poller import CertificatePoller
from sitestack.services.cloudfront_service import CloudFrontService
from sitestack.services.dns_record_composer import compose_change_batch
from sitestack.services.errors import OperatorAbortedError, SiteStackError
from sitestack.services.route53_service import Route53Service
from sitestack.services.s3_service import S3Service
from sitestack.services.setup.operator_gate import OperatorGate
from sitestack.services.setup.preflight_service import PreflightService


logger = logging.getLogger(__name__)


class StaticSiteSetupService:
    """Provisions S3 + Route 53 + ACM + CloudFront for one domain.

    Steps run strictly one after the other, each awaiting its AWS call:

    1. primary bucket (private)
    2. www bucket redirecting to the primary domain (public)
    3. hosted zone, followed by a pause so the operator can delegate nameservers
    4. certificate
    5. DNS validation of the certificate and the wait for issuance
    6. origin access identity and distribution
    7. alias records for the domain and its www subdomain

    Nothing is rolled back when a step fails. The returned outcome carries the
    ledger of everything done so far together with the error.
    """

    def __init__(
        self,
        *,
        s3: S3Service,
        acm: AcmService,
        route53: Route53Service,
        cloudfront: CloudFrontService,
        gate: OperatorGate,
        poller: Optional[CertificatePoller] = None,
        preflight: Optional[PreflightService] = None,
    ) -> None:
        self._s3 = s3
        self._acm = acm
        self._route53 = route53
        self._cloudfront = cloudfront
        self._gate = gate
        self._poller = poller or CertificatePoller(acm)
        self._preflight = preflight or PreflightService(s3=s3, acm=acm, route53=route53, cloudfront=cloudfront)

    async def provision(self, spec: DomainSpec) -> ProvisioningOutcome:
        outcome = ProvisioningOutcome()
        try:
            report = await self._preflight.inspect(spec)
            overwrites = self._confirm(report)
            await self._run(spec, report, overwrites, outcome.ledger)
        except SiteStackError as exc:
            logger.error("Provisioning of %s stopped (%s): %s", spec.domain, exc.kind.value, exc)
            outcome.error = exc
        return outcome

    def _confirm(self, report: PreflightReport) -> set[tuple[str, str]]:
        """Walk the operator through every gate; return the (type, name) records they agreed to overwrite."""

        overwrites: set[tuple[str, str]] = set()
        for confirmation in report.confirmations:
            if not self._gate.confirm(f"{confirmation.reason} {confirmation.question}"):
                raise OperatorAbortedError(f"Aborted: {confirmation.reason}")
            if confirmation.overwrites_record:
                overwrites.add((str(confirmation.record_type), str(confirmation.record_name)))

        if not self._gate.approve_plan(report.plan):
            raise OperatorAbortedError("Aborted.")
        return overwrites

    async def _run(
        self,
        spec: DomainSpec,
        report: PreflightReport,
        overwrites: set[tuple[str, str]],
        ledger: SummaryLedger,
    ) -> None:
        await self._setup_primary_bucket(spec, ledger)
        if not spec.no_www:
            await self._setup_www_bucket(spec, ledger)

        hosted_zone = await self._ensure_hosted_zone(spec, report.hosted_zone, ledger)
        certificate_arn = await self._ensure_certificate(spec, ledger)
        if report.certificate_needs_validation:
            await self._validate_certificate(spec, certificate_arn, hosted_zone, ledger)

        distribution_domain = report.distribution_domain
        if spec.use_distribution:
            ledger.reused(ResourceKind.DISTRIBUTION, spec.use_distribution)
        if distribution_domain is None:
            distribution_domain = await self._create_distribution(spec, certificate_arn, ledger)

        await self._create_alias_records(spec, hosted_zone, distribution_domain, overwrites, ledger)
        logger.info("All set up for %s.", spec.domain)

    async def _setup_primary_bucket(self, spec: DomainSpec, ledger: SummaryLedger) -> None:
        bucket = spec.primary_bucket
        if spec.skip_create_bucket:
            ledger.reused(ResourceKind.S3_BUCKET, bucket)
        else:
            logger.info("Creating bucket %s", bucket)
            await self._s3.create_bucket(name=bucket)
            ledger.created(ResourceKind.S3_BUCKET, bucket)

        await self._s3.set_public_access(name=bucket, is_public=False)
        logger.info("Set bucket %s private.", bucket)

    async def _setup_www_bucket(self, spec: DomainSpec, ledger: SummaryLedger) -> None:
        bucket = spec.www_bucket_name
        if spec.skip_create_www_bucket:
            ledger.reused(ResourceKind.S3_BUCKET, bucket)
            return

        logger.info("Creating bucket %s", bucket)
        await self._s3.create_bucket(name=bucket)
        ledger.created(ResourceKind.S3_BUCKET, bucket)

        await self._s3.redirect_all_requests(name=bucket, host_name=spec.domain)
        logger.info("Set up redirection: bucket %s -> https://%s.", bucket, spec.domain)
        await self._s3.set_public_access(name=bucket, is_public=True)
        logger.info("Set bucket %s public.", bucket)

    async def _ensure_hosted_zone(
        self,
        spec: DomainSpec,
        existing: Optional[HostedZone],
        ledger: SummaryLedger,
    ) -> HostedZone:
        if existing is not None:
            ledger.reused(ResourceKind.HOSTED_ZONE, existing.id)
            return existing

        hosted_zone = await self._route53.create_hosted_zone(domain=spec.domain)
        ledger.created(ResourceKind.HOSTED_ZONE, hosted_zone.id)
        logger.info("Created hosted zone %s (%s).", hosted_zone.name, hosted_zone.id)

        # Delegation happens at the registrar; validation cannot succeed before it.
        name_servers = "\n".join(f"    {ns}" for ns in hosted_zone.name_servers)
        self._gate.acknowledge(
            f"Hosted zone {hosted_zone.name} uses these nameservers:\n{name_servers}\n"
            "Please update the nameservers at your domain provider manually."
        )
        return hosted_zone

    async def _ensure_certificate(self, spec: DomainSpec, ledger: SummaryLedger) -> str:
        if spec.use_certificate:
            ledger.reused(ResourceKind.CERTIFICATE, spec.use_certificate)
            return spec.use_certificate

        arn = await self._acm.request_certificate(domain=spec.domain, alt_names=spec.cert_alt_names)
        ledger.created(ResourceKind.CERTIFICATE, arn)
        logger.info("Created certificate with arn %s", arn)
        return arn

    async def _validate_certificate(
        self,
        spec: DomainSpec,
        certificate_arn: str,
        hosted_zone: HostedZone,
        ledger: SummaryLedger,
    ) -> None:
        logger.info("Getting certificate validation options")
        records = await self._poller.fetch_validation_records(
            arn=certificate_arn,
            expected_count=len(spec.certificate_domains),
        )

        # Validation records are shared by certificates for the same names, so overwriting is safe.
        await self._route53.change_record_sets(
            hosted_zone_id=hosted_zone.id,
            change_batch=compose_change_batch(records, upsert=True),
        )
        for record in records:
            ledger.created(ResourceKind.DNS_CNAME, record.name)
        logger.info("Created %d Route 53 domain validation record(s).", len(records))

        await self._poller.wait_for_issuance(arn=certificate_arn, on_progress=self._gate.certificate_wait)
        logger.info("Certificate is verified")

    async def _create_distribution(self, spec: DomainSpec, certificate_arn: str, ledger: SummaryLedger) -> str:
        logger.info("Creating CloudFront access identity")
        access_identity_id = await self._cloudfront.create_origin_access_identity(name=spec.domain)
        ledger.created(ResourceKind.ACCESS_IDENTITY, access_identity_id)

        await self._s3.grant_access_identity_read(name=spec.primary_bucket, access_identity_id=access_identity_id)
        logger.info("Granted access identity %s read access to %s", access_identity_id, spec.primary_bucket)

        logger.info("Creating CloudFront distribution")
        distribution = await self._cloudfront.create_distribution(
            config=DistributionConfig(
                origin_bucket=spec.primary_bucket,
                region=spec.region,
                access_identity_id=access_identity_id,
                certificate_arn=certificate_arn,
                aliases=spec.certificate_domains,
                price_class=spec.price_class,
                error_responses=error_responses_for(is_spa=spec.is_spa),
            )
        )
        ledger.created(ResourceKind.DISTRIBUTION, str(distribution.id))
        logger.info("Created CloudFront distribution %s (%s)", distribution.id, distribution.domain_name)
        return str(distribution.domain_name)

    async def _create_alias_records(
        self,
        spec: DomainSpec,
        hosted_zone: HostedZone,
        distribution_domain: str,
        overwrites: set[tuple[str, str]],
        ledger: SummaryLedger,
    ) -> None:
        records: list[AliasRecord] = [
            AliasRecord(name=spec.domain, type="A", dns_name=distribution_domain),
            AliasRecord(name=spec.domain, type="AAAA", dns_name=distribution_domain),
        ]
        if not spec.no_www:
            records.append(AliasRecord(name=spec.www_domain, type="A", dns_name=spec.www_website_endpoint))

        # CREATE makes Route 53 reject the batch if a record appeared that the operator never agreed to replace.
        changes: list[dict[str, Any]] = []
        for record in records:
            upsert = (record.type, record.name) in overwrites
            changes.extend(compose_change_batch([record], upsert=upsert)["Changes"])

        logger.info("Adding DNS records for the distribution")
        await self._route53.change_record_sets(hosted_zone_id=hosted_zone.id, change_batch={"Changes": changes})
        ledger.created(ResourceKind.DNS_ALIAS_A_AAAA, spec.domain)
        if not spec.no_www:
            ledger.created(ResourceKind.DNS_ALIAS_A, spec.www_domain)
