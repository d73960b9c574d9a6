from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from sitestack.models.domain import DomainSpec, PriceClass
from sitestack.models.provisioning import ProvisioningOutcome, ProvisioningPlan, SummaryTag
from sitestack.services.config import AwsConfig
from sitestack.services.dependencies import get_static_site_setup_service
from sitestack.services.setup.operator_gate import OperatorGate


app = typer.Typer(add_completion=False, help="Provision S3, Route 53, ACM and CloudFront for a static website.")

_console = Console()


def _ensure_logging() -> None:
    formatter = logging.Formatter("%(levelname)s: %(message)s")
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    else:
        root.setLevel(logging.INFO)
        for handler in root.handlers:
            handler.setFormatter(formatter)
    # botocore is chatty at INFO (credential lookups, retries).
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("aiobotocore").setLevel(logging.WARNING)


class TerminalGate(OperatorGate):
    def __init__(self, console: Console, *, assume_yes: bool = False) -> None:
        self._console = console
        self._assume_yes = assume_yes

    def confirm(self, question: str) -> bool:
        self._console.print(f"[yellow]WARNING:[/yellow] {escape(question)}")
        return typer.confirm("Continue?", default=False)

    def approve_plan(self, plan: ProvisioningPlan) -> bool:
        self._console.print("[green]i[/green] Creating")
        self._console.print(plan.render(), markup=False)
        if plan.costly:
            self._console.print("[green]i[/green] These changes might cause additional charges.")
        if self._assume_yes:
            return True
        return typer.confirm("Is this ok?", default=True)

    def acknowledge(self, message: str) -> None:
        self._console.print(f"[green]i[/green] {escape(message)}")
        typer.prompt("Press Enter to continue", default="", show_default=False)

    def certificate_wait(self, seconds: int) -> None:
        self._console.print(
            f"[green]i[/green] Waiting {seconds}s for domain to be verified... This might take some time"
        )


def _print_summary(outcome: ProvisioningOutcome) -> None:
    if not outcome.ledger.entries:
        return

    title = "All set up. Summary:" if outcome.ok else "Resources that exist after the failure:"
    _console.print(f"[green]i[/green] {title}")
    for entry in outcome.ledger.entries:
        colour = "yellow" if entry.tag is SummaryTag.CREATED else "green"
        _console.print(f"  - {escape(entry.describe())}", style=colour)


@app.command()
def create(
    domain: str = typer.Argument(..., help="The domain name under which the site will be hosted."),
    s3_bucket_name: Optional[str] = typer.Option(
        None, "--s3-bucket-name", help="Name of the S3 bucket to create. Defaults to the domain name."
    ),
    region: Optional[str] = typer.Option(
        None,
        "--region",
        help="Region of the S3 buckets. Defaults to SITESTACK_REGION, AWS_REGION, AWS_DEFAULT_REGION, then eu-central-1.",
    ),
    single_page_app: bool = typer.Option(False, "--single-page-app", help="Set CloudFront up for a single page app."),
    certificate_alt_names: Optional[list[str]] = typer.Option(
        None, "--certificate-alt-names", help="Additional names in the SSL certificate (repeatable)."
    ),
    price_class: int = typer.Option(
        0,
        "--price-class",
        help="0 is PriceClass_100 (US, MX, CA, EU, Israel), 1 is PriceClass_200, 2 is PriceClass_All.",
    ),
    skip_create_s3: bool = typer.Option(False, "--skip-create-s3", help="Use an existing S3 bucket."),
    skip_create_www_s3: bool = typer.Option(False, "--skip-create-www-s3", help="Use an existing www S3 bucket."),
    use_certificate: Optional[str] = typer.Option(
        None, "--use-certificate", help="Use an existing certificate with the specified ARN."
    ),
    use_distribution: Optional[str] = typer.Option(
        None, "--use-distribution", help="Use an existing CloudFront distribution with the specified id."
    ),
    no_www: bool = typer.Option(False, "--no-www", help="Don't create resources for a www. subdomain."),
    max_cert_wait: Optional[float] = typer.Option(
        None,
        "--max-cert-wait",
        help="Give up waiting for certificate issuance after this many seconds (default: wait indefinitely).",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the final 'Is this ok?' question."),
) -> None:
    """Create (or reuse) everything needed to serve DOMAIN over HTTPS from S3 via CloudFront."""

    _ensure_logging()

    try:
        spec = DomainSpec(
            domain=domain,
            bucket_name=s3_bucket_name,
            region=AwsConfig.from_env(region_name=region).region_name,
            cert_alt_names=certificate_alt_names or [],
            is_spa=single_page_app,
            price_class=PriceClass.from_index(price_class),
            skip_create_bucket=skip_create_s3,
            skip_create_www_bucket=skip_create_www_s3,
            use_certificate=use_certificate,
            use_distribution=use_distribution,
            no_www=no_www,
        )
        service = get_static_site_setup_service(
            gate=TerminalGate(_console, assume_yes=yes),
            region_name=spec.region,
            max_issuance_wait_seconds=max_cert_wait,
        )
    except (ValidationError, ValueError) as exc:
        _console.print(f"[red]ERROR:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    outcome = asyncio.run(service.provision(spec))
    _print_summary(outcome)

    if not outcome.ok:
        _console.print(f"[red]ERROR:[/red] {escape(str(outcome.error))}")
        raise typer.Exit(code=1)
    _console.print("[green]i[/green] Done.")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
