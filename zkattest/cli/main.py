"""Typer CLI for zkattest.

Provides commands: create-review, create-ownership, revoke, list-reviews.
Main entrypoint for the zkattest command-line interface.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from zkattest import __version__
from zkattest.cli.config import (
    LIST_FIELDS,
    OWNERSHIP_FIELDS,
    REVIEW_FIELDS,
    REVOKE_FIELDS,
    ZKAttestConfig,
    create_account,
    create_gateway,
    create_proof_source,
    create_web3,
    identity_options,
    validate_config,
)
from zkattest.sdk.auth import AuthenticationOrchestrator
from zkattest.sdk.encoding import decode_ownership_data, decode_review_data
from zkattest.sdk.issuer import AttestationIssuer, build_ownership_request, build_review_request, ensure_recipient
from zkattest.sdk.models import ZERO_ADDRESS, AttestationRecord, AuthenticatedIdentity, Identity
from zkattest.sdk.reader import AttestationReader, summarize_reviews


app = typer.Typer(
    name="zkattest",
    help="Authenticated attestations - identity auth, review and ownership attestations",
    add_completion=False,
    rich_markup_mode="rich"
)
console = Console()
err_console = Console(stderr=True)


def version_callback(show_version: bool) -> None:
    """Show version and exit."""
    if show_version:
        console.print(f"zkattest version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
) -> None:
    """zkattest CLI."""
    _configure_logging(verbose)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def create_review(
    stars: int = typer.Option(..., "--stars", "-s", min=1, max=5, help="Rating from 1 to 5"),
    comment: str = typer.Option("", "--comment", "-c", help="Review comment"),
    recipient_did: str = typer.Option("", "--recipient-did", help="Recipient DID"),
    recipient_id: int = typer.Option(0, "--recipient-id", min=0, help="Recipient iden3 subject ID"),
    recipient_address: str = typer.Option(ZERO_ADDRESS, "--recipient-address", help="Recipient address")
) -> None:
    """Authenticate and record a review attestation."""
    try:
        config = ZKAttestConfig()
        validate_config(config, REVIEW_FIELDS)
        recipient = ensure_recipient(_recipient(recipient_did, recipient_id, recipient_address))

        issuer, attester = _authenticate(config, config.review_schema_id)
        request = build_review_request(attester, recipient, stars, comment)
        record = issuer.issue(request)

        _print_record("Review", record)
        decoded_stars, decoded_comment = decode_review_data(record.data)
        console.print(f"   - Stars: {decoded_stars}")
        console.print(f"   - Comment: {decoded_comment}")

    except Exception as e:
        err_console.print(f"❌ Error creating review: {e}")
        raise typer.Exit(1)


@app.command()
def create_ownership(
    recipient_did: str = typer.Option("", "--recipient-did", help="Recipient DID"),
    recipient_id: int = typer.Option(0, "--recipient-id", min=0, help="Recipient iden3 subject ID"),
    recipient_address: str = typer.Option(ZERO_ADDRESS, "--recipient-address", help="Recipient address")
) -> None:
    """Authenticate and record an ownership attestation."""
    try:
        config = ZKAttestConfig()
        validate_config(config, OWNERSHIP_FIELDS)
        recipient = ensure_recipient(_recipient(recipient_did, recipient_id, recipient_address))

        issuer, attester = _authenticate(config, config.ownership_schema_id)
        record = issuer.issue(build_ownership_request(attester, recipient))

        _print_record("Ownership", record)
        console.print(f"   - Data: 0x{decode_ownership_data(record.data).hex()}")

    except Exception as e:
        err_console.print(f"❌ Error creating ownership attestation: {e}")
        raise typer.Exit(1)


@app.command()
def revoke(
    attestation_id: str = typer.Option(..., "--id", help="Attestation ID to revoke")
) -> None:
    """Revoke an existing attestation."""
    try:
        config = ZKAttestConfig()
        validate_config(config, REVOKE_FIELDS)

        account = create_account(config)
        gateway = create_gateway(config, create_web3(config), account)
        summary = AttestationIssuer(gateway).revoke(attestation_id)

        console.print("✅ Attestation revoked successfully!")
        console.print(f"Attestation ID: [bold]{attestation_id}[/bold]")
        console.print(f"Transaction: {summary.tx_hash}")
        console.print(f"Gas used: {summary.gas_used}")

    except Exception as e:
        err_console.print(f"❌ Error revoking attestation: {e}")
        raise typer.Exit(1)


@app.command()
def list_reviews(
    did: str = typer.Option(..., "--did", "-d", help="Agent DID to list reviews for")
) -> None:
    """List reviews received by an agent and their average rating."""
    try:
        config = ZKAttestConfig()
        validate_config(config, LIST_FIELDS)

        with AttestationReader(config.attestations_api_url) as reader:
            attestations = reader.list_for_recipient(did, config.review_schema_id)
        summary = summarize_reviews(attestations)

        console.print(f"🆔 Agent DID: {did}")
        console.print(f"⭐ {summary.average_stars:.2f} ({summary.count} reviews)")
        for review in summary.reviews:
            console.print(f"  📋 Review by {review.from_did}. ⭐ {review.stars}")
            console.print(f"  {review.comment}", markup=False)

    except Exception as e:
        err_console.print(f"❌ Error listing reviews: {e}")
        raise typer.Exit(1)


def _recipient(did: str, subject_id: int, address: str) -> Identity:
    return Identity(did=did.strip(), iden3_id=subject_id, ethereum_address=address or ZERO_ADDRESS)


def _authenticate(config: ZKAttestConfig, schema_id: str | None) -> tuple[AttestationIssuer, AuthenticatedIdentity]:
    """Wire the gateway and proof source, then authenticate the signer."""
    account = create_account(config)
    gateway = create_gateway(config, create_web3(config), account)
    orchestrator = AuthenticationOrchestrator(
        gateway, create_proof_source(config, account), identity_options(config)
    )
    attester = orchestrator.ensure_authenticated(schema_id or "", account.address)
    console.print(f"🔐 Authenticated {attester.signer_address} as {attester.did}")
    return AttestationIssuer(gateway), attester


def _print_record(kind: str, record: AttestationRecord) -> None:
    console.print(f"✅ {kind} attestation created successfully!")
    if record.transaction:
        console.print(f"Transaction: {record.transaction.tx_hash}")
        console.print(f"Gas used: {record.transaction.gas_used}")
    console.print(f"Attestation ID: [bold]{record.id}[/bold]")
    console.print(f"   - Schema: {record.schema_id}")
    console.print(f"   - Attester ID: {record.attester.iden3_id}")
    console.print(f"   - Valid: {record.status.value}")


if __name__ == "__main__":
    app()
