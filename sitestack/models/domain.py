from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from sitestack.services.zone_names import hosted_zone_name


class PriceClass(str, Enum):
    PRICE_CLASS_100 = "PriceClass_100"
    PRICE_CLASS_200 = "PriceClass_200"
    PRICE_CLASS_ALL = "PriceClass_All"

    @staticmethod
    def from_index(index: int) -> "PriceClass":
        """0 -> PriceClass_100 (US, CA, MX, EU, Israel), 1 -> PriceClass_200, 2 -> PriceClass_All."""

        tiers = list(PriceClass)
        if index < 0 or index >= len(tiers):
            raise ValueError(f"Invalid price class index {index}; expected 0, 1 or 2")
        return tiers[index]


class CertificateStatus(str, Enum):
    PENDING_VALIDATION = "PENDING_VALIDATION"
    ISSUED = "ISSUED"


class DomainSpec(BaseModel):
    """Everything the operator asked for on the command line."""

    domain: str = Field(..., min_length=3, description="Domain the site is served under.")
    bucket_name: Optional[str] = Field(default=None, description="Primary S3 bucket; defaults to the domain.")
    region: str = Field(default="eu-central-1", min_length=1)
    cert_alt_names: list[str] = Field(default_factory=list)
    is_spa: bool = False
    price_class: PriceClass = PriceClass.PRICE_CLASS_100
    skip_create_bucket: bool = False
    skip_create_www_bucket: bool = False
    use_certificate: Optional[str] = None
    use_distribution: Optional[str] = None
    no_www: bool = False

    @field_validator("domain")
    @classmethod
    def _domain_has_two_labels(cls, value: str) -> str:
        cleaned = value.strip().rstrip(".").lower()
        if len([label for label in cleaned.split(".") if label]) < 2:
            raise ValueError(f"Domain must have at least two labels: {value!r}")
        return cleaned

    @field_validator("cert_alt_names")
    @classmethod
    def _normalize_alt_names(cls, value: list[str]) -> list[str]:
        return [name.strip().rstrip(".").lower() for name in value if name and name.strip()]

    @model_validator(mode="after")
    def _default_bucket_name(self) -> "DomainSpec":
        if not self.bucket_name:
            self.bucket_name = self.domain
        return self

    @property
    def primary_bucket(self) -> str:
        return self.bucket_name or self.domain

    @property
    def www_domain(self) -> str:
        return f"www.{self.domain}"

    @property
    def www_bucket_name(self) -> str:
        return f"www.{self.primary_bucket}"

    @property
    def www_website_endpoint(self) -> str:
        return f"{self.www_bucket_name}.s3-website.{self.region}.amazonaws.com"

    @property
    def zone_name(self) -> str:
        return hosted_zone_name(self.domain)

    @property
    def certificate_domains(self) -> list[str]:
        return [self.domain, *self.cert_alt_names]

    def foreign_alt_names(self) -> list[str]:
        """Alternate names that live outside the primary domain's zone."""

        return [name for name in self.cert_alt_names if hosted_zone_name(name) != self.zone_name]


class HostedZone(BaseModel):
    id: str
    name: str
    name_servers: list[str] = Field(default_factory=list)

    @staticmethod
    def from_route53(zone: dict, delegation_set: Optional[dict] = None) -> "HostedZone":
        return HostedZone(
            id=str(zone.get("Id")),
            name=str(zone.get("Name")),
            name_servers=list((delegation_set or {}).get("NameServers") or []),
        )


class ValidationRecord(BaseModel):
    name: str
    type: str
    value: str


class Certificate(BaseModel):
    arn: str
    status: str
    validation_options: list[dict] = Field(default_factory=list)

    @staticmethod
    def from_acm(certificate: dict) -> "Certificate":
        return Certificate(
            arn=str(certificate.get("CertificateArn")),
            status=str(certificate.get("Status") or ""),
            validation_options=list(certificate.get("DomainValidationOptions") or []),
        )

    @property
    def is_issued(self) -> bool:
        return self.status == CertificateStatus.ISSUED.value

    @property
    def is_pending(self) -> bool:
        return self.status == CertificateStatus.PENDING_VALIDATION.value

    def validation_records(self, expected_count: int) -> Optional[list[ValidationRecord]]:
        """Return one record per domain, or None while ACM is still populating them."""

        options = self.validation_options
        if len(options) != expected_count:
            return None

        records: list[ValidationRecord] = []
        for option in options:
            resource = option.get("ResourceRecord") or {}
            name, record_type, value = resource.get("Name"), resource.get("Type"), resource.get("Value")
            if not (name and record_type and value):
                return None
            records.append(ValidationRecord(name=name, type=record_type, value=value))
        return records
