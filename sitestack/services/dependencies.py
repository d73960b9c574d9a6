from __future__ import annotations

from typing import Optional

import aioboto3

from sitestack.services.acm_service import AcmService
from sitestack.services.certificate_poller import CertificatePoller
from sitestack.services.cloudfront_service import CloudFrontService
from sitestack.services.config import AwsConfig, PollingConfig
from sitestack.services.route53_service import Route53Service
from sitestack.services.s3_service import S3Service
from sitestack.services.setup.operator_gate import OperatorGate
from sitestack.services.setup.static_site_setup_service import StaticSiteSetupService


def get_static_site_setup_service(
    *,
    gate: OperatorGate,
    region_name: Optional[str] = None,
    max_issuance_wait_seconds: Optional[float] = None,
) -> StaticSiteSetupService:
    """Wire the AWS services and the certificate poller for one provisioning run."""

    aws_config = AwsConfig.from_env(region_name=region_name)
    polling_config = PollingConfig.from_env(max_issuance_wait_seconds=max_issuance_wait_seconds)
    session = aioboto3.Session()

    acm = AcmService(aws_config, session=session)
    return StaticSiteSetupService(
        s3=S3Service(aws_config, session=session),
        acm=acm,
        route53=Route53Service(aws_config, session=session),
        cloudfront=CloudFrontService(aws_config, session=session),
        gate=gate,
        poller=CertificatePoller(acm, config=polling_config),
    )
