"""Tests for the read-only preflight reconciliation"""

import asyncio

import pytest

from conftest import CERT_ARN, DIST_DOMAIN, DIST_ID, ZONE_ID, FakeAcm, FakeCloudFront, FakeRoute53, FakeS3, certificate
from sitestack.models.domain import DomainSpec, HostedZone
from sitestack.services.errors import ErrorKind, PreconditionError
from sitestack.services.setup.preflight_service import PreflightService


EXISTING_ZONE = HostedZone(id=ZONE_ID, name="example.com.")


def _service(log, *, buckets=None, hosted_zone=None, records=None, acm_responses=None, distributions=None):
    s3 = FakeS3(log, buckets)
    route53 = FakeRoute53(log, hosted_zone, records)
    acm = FakeAcm(log, acm_responses or [certificate("ISSUED")])
    cloudfront = FakeCloudFront(log, distributions)
    return PreflightService(s3=s3, acm=acm, route53=route53, cloudfront=cloudfront), acm


class TestHardAborts:
    def test_unsupported_region(self, log):
        service, _ = _service(log)
        with pytest.raises(PreconditionError, match="me-south-1"):
            asyncio.run(service.inspect(DomainSpec(domain="example.com", region="me-south-1")))

    def test_region_without_website_zone_needs_no_www(self, log):
        service, _ = _service(log)
        with pytest.raises(PreconditionError):
            asyncio.run(service.inspect(DomainSpec(domain="example.com", region="eu-south-1")))

        report = asyncio.run(service.inspect(DomainSpec(domain="example.com", region="eu-south-1", no_www=True)))
        assert report.hosted_zone is None

    def test_alt_name_in_other_zone(self, log):
        service, _ = _service(log)
        spec = DomainSpec(domain="example.com", cert_alt_names=["static.example.com", "example.net"])

        with pytest.raises(PreconditionError, match="example.net") as exc_info:
            asyncio.run(service.inspect(spec))
        assert exc_info.value.kind is ErrorKind.PRECONDITION

    def test_existing_primary_bucket(self, log):
        service, _ = _service(log, buckets={"example.com"})
        with pytest.raises(PreconditionError, match="example.com already exists"):
            asyncio.run(service.inspect(DomainSpec(domain="example.com")))

    def test_existing_primary_bucket_with_skip_flag(self, log):
        service, _ = _service(log, buckets={"example.com"})
        report = asyncio.run(service.inspect(DomainSpec(domain="example.com", skip_create_bucket=True)))
        assert "reuse S3 bucket example.com (set private)" in report.plan.actions

    def test_existing_www_bucket(self, log):
        service, _ = _service(log, buckets={"www.example.com"})
        with pytest.raises(PreconditionError, match="www.example.com"):
            asyncio.run(service.inspect(DomainSpec(domain="example.com")))

    def test_existing_www_bucket_ignored_without_www(self, log):
        service, _ = _service(log, buckets={"www.example.com"})
        asyncio.run(service.inspect(DomainSpec(domain="example.com", no_www=True)))

    def test_reused_certificate_in_failed_state(self, log):
        service, _ = _service(log, acm_responses=[certificate("FAILED")])
        with pytest.raises(PreconditionError, match="FAILED"):
            asyncio.run(service.inspect(DomainSpec(domain="example.com", use_certificate=CERT_ARN)))


class TestConfirmations:
    def test_missing_zone_needs_confirmation(self, log):
        service, _ = _service(log)
        report = asyncio.run(service.inspect(DomainSpec(domain="example.com")))

        assert len(report.confirmations) == 1
        assert "does not exist" in report.confirmations[0].reason
        assert not report.confirmations[0].overwrites_record

    def test_each_existing_record_is_confirmed_separately(self, log):
        records = {("A", "example.com"), ("AAAA", "example.com"), ("A", "www.example.com")}
        service, _ = _service(log, hosted_zone=EXISTING_ZONE, records=records)

        report = asyncio.run(service.inspect(DomainSpec(domain="example.com")))

        assert [(c.record_type, c.record_name) for c in report.confirmations] == [
            ("A", "example.com"),
            ("AAAA", "example.com"),
            ("A", "www.example.com"),
        ]

    def test_www_record_not_checked_without_www(self, log):
        service, _ = _service(log, hosted_zone=EXISTING_ZONE, records={("A", "www.example.com")})
        report = asyncio.run(service.inspect(DomainSpec(domain="example.com", no_www=True)))
        assert report.confirmations == []


class TestReuse:
    def test_issued_certificate_needs_no_validation(self, log):
        service, _ = _service(log, acm_responses=[certificate("ISSUED")])
        report = asyncio.run(service.inspect(DomainSpec(domain="example.com", use_certificate=CERT_ARN)))
        assert report.certificate_needs_validation is False

    def test_pending_certificate_still_needs_validation(self, log):
        service, _ = _service(log, acm_responses=[certificate("PENDING_VALIDATION")])
        report = asyncio.run(service.inspect(DomainSpec(domain="example.com", use_certificate=CERT_ARN)))
        assert report.certificate_needs_validation is True

    def test_distribution_domain_is_resolved(self, log):
        service, _ = _service(log, distributions={DIST_ID: DIST_DOMAIN})
        report = asyncio.run(service.inspect(DomainSpec(domain="example.com", use_distribution=DIST_ID)))
        assert report.distribution_domain == DIST_DOMAIN


class TestPlan:
    def test_fresh_domain_plan(self, log):
        service, _ = _service(log)
        report = asyncio.run(service.inspect(DomainSpec(domain="example.com", is_spa=True)))
        actions = report.plan.actions

        assert actions[0] == "create private S3 bucket example.com"
        assert actions[1].startswith("create public S3 bucket www.example.com")
        assert "create hosted zone example.com" in actions
        assert "create ACM certificate for example.com" in actions
        assert "create CloudFront origin access identity" in actions
        assert any("PriceClass_100" in a and "set up for a single page app" in a for a in actions)
        assert actions[-2:] == ("create DNS A and AAAA records for example.com", "create DNS A record for www.example.com")
        assert report.plan.costly

    def test_reuse_plan(self, log):
        service, _ = _service(
            log,
            buckets={"example.com"},
            hosted_zone=EXISTING_ZONE,
            distributions={DIST_ID: DIST_DOMAIN},
        )
        spec = DomainSpec(
            domain="example.com",
            skip_create_bucket=True,
            no_www=True,
            use_certificate=CERT_ARN,
            use_distribution=DIST_ID,
        )

        report = asyncio.run(service.inspect(spec))

        assert f"reuse ACM certificate {CERT_ARN}" in report.plan.actions
        assert f"reuse CloudFront distribution {DIST_ID} ({DIST_DOMAIN})" in report.plan.actions
        assert not any("CNAME" in a for a in report.plan.actions)
        assert not report.plan.costly
        assert "  - reuse hosted zone example.com." in report.plan.render()
