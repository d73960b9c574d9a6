from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from sitestack.models.dns import AliasRecord, RecordSpec, ValueRecord
from sitestack.services.errors import UnresolvableAliasTargetError


DEFAULT_TTL_SECONDS = 300

CLOUDFRONT_HOSTED_ZONE_ID = "Z2FDTNDATAQYW2"

# Route 53 hosted zone ids of the S3 website endpoints, per region.
S3_WEBSITE_HOSTED_ZONE_IDS: dict[str, str] = {
    "us-east-2": "Z2O1EMRO9K5GLX",
    "us-east-1": "Z3AQBSTGFYJSTF",
    "us-west-1": "Z2F56UZL2M1ACD",
    "us-west-2": "Z3BJ6K6RIION7M",
    "af-south-1": "Z11KHD8FBVPUYU",
    "ap-east-1": "ZNB98KWMFR0R6",
    "ap-south-1": "Z11RGJOFQNVJUP",
    "ap-northeast-3": "Z2YQB5RD63NC85",
    "ap-northeast-2": "Z3W03O7B5YMIYP",
    "ap-southeast-1": "Z3O0J2DXBE1FTB",
    "ap-southeast-2": "Z1WCIGYICN2BYD",
    "ap-northeast-1": "Z2M4EHUR26P7ZW",
    "ca-central-1": "Z1QDHH18159H29",
    "eu-central-1": "Z21DNDUVLTQW6Q",
    "eu-west-1": "Z1BKCTXD74EZPE",
    "eu-west-2": "Z3GKZC51ZF0DB4",
    "eu-west-3": "Z3R1K369G5AVDG",
    "eu-north-1": "Z3BAZG2TWCNX0D",
    "sa-east-1": "Z7KQH4QJS55SO",
    "us-gov-east-1": "Z2NIFVYYW2VKV1",
    "us-gov-west-1": "Z31GFT0UA1I2HV",
}

# Both the dotted (s3-website.eu-central-1) and dashed (s3-website-us-east-1) endpoint forms.
_S3_WEBSITE_PATTERN = re.compile(r"\.s3-website[.-]([a-z0-9-]+)\.amazonaws\.com\.?$")
_CLOUDFRONT_PATTERN = re.compile(r"\.cloudfront\.net\.?$")


def s3_website_hosted_zone_id(region: str) -> Optional[str]:
    return S3_WEBSITE_HOSTED_ZONE_IDS.get(region)


def resolve_alias_hosted_zone_id(dns_name: str) -> str:
    """Infer the hosted zone id of an alias target from its hostname.

    Raises:
        UnresolvableAliasTargetError: when the hostname is neither an S3 website
            endpoint of a known region nor a CloudFront domain.
    """

    target = dns_name.lower()
    match = _S3_WEBSITE_PATTERN.search(target)
    if match:
        zone_id = s3_website_hosted_zone_id(match.group(1))
        if zone_id is None:
            raise UnresolvableAliasTargetError(dns_name)
        return zone_id

    if _CLOUDFRONT_PATTERN.search(target):
        return CLOUDFRONT_HOSTED_ZONE_ID

    raise UnresolvableAliasTargetError(dns_name)


def compose_record_set(record: RecordSpec) -> dict[str, Any]:
    if isinstance(record, ValueRecord):
        return record.to_route53(ttl=DEFAULT_TTL_SECONDS)
    if isinstance(record, AliasRecord):
        zone_id = record.hosted_zone_id or resolve_alias_hosted_zone_id(record.dns_name)
        return record.to_route53(hosted_zone_id=zone_id)
    raise TypeError(f"Unsupported record type: {type(record)!r}")


def compose_change_batch(records: Iterable[RecordSpec], *, upsert: bool = False) -> dict[str, Any]:
    """Build a Route 53 ChangeBatch for the given records, preserving their order.

    CREATE is the default so that Route 53 rejects the batch instead of silently
    replacing a record that already resolves somewhere else.
    """

    action = "UPSERT" if upsert else "CREATE"
    changes = [{"Action": action, "ResourceRecordSet": compose_record_set(record)} for record in records]
    if not changes:
        raise ValueError("A change batch needs at least one record")
    return {"Changes": changes}
