"""Attestation writing, read-back verification and revocation.

Builds AttestationRequests for the review and ownership schemas, submits
them to the AttestationRegistry and confirms the stored record.
"""

from __future__ import annotations

import logging

from zkattest.contracts.abi import ATTESTATION_RECORDED_EVENT, ATTESTATION_REGISTRY_ABI
from zkattest.contracts.events import find_event
from zkattest.sdk.encoding import encode_ownership_data, encode_review_data, is_bytes32_hex, validate_schema_id
from zkattest.sdk.errors import RecordIdMissing
from zkattest.sdk.gateway import ContractGateway
from zkattest.sdk.models import (
    ZERO_HASH,
    AttestationRecord,
    AttestationRequest,
    AuthenticatedIdentity,
    Identity,
    TransactionSummary,
)

logger = logging.getLogger(__name__)


class AttestationIssuer:
    """Records attestations and verifies them by reading them back."""

    def __init__(self, gateway: ContractGateway):
        if not gateway:
            raise ValueError("Contract gateway is required")
        self.gateway = gateway

    def issue(self, request: AttestationRequest) -> AttestationRecord:
        """Submit ``request`` and return the stored record.

        Raises:
            RecordIdMissing: receipt has no AttestationRecorded event
        """
        validate_schema_id(request.schema_id)
        ensure_recipient(request.recipient)

        handle = self.gateway.record_attestation(request)
        receipt = handle.wait()
        logger.info("Attestation recorded in %s (gas used %s)", receipt.tx_hash, receipt.gas_used)

        event = find_event(ATTESTATION_REGISTRY_ABI, receipt.logs, ATTESTATION_RECORDED_EVENT)
        if event is None:
            raise RecordIdMissing(ATTESTATION_RECORDED_EVENT, receipt.tx_hash)

        attestation_id = "0x" + bytes(event.args[0]).hex()
        logger.info("Attestation ID: %s", attestation_id)
        return self.verify(attestation_id, receipt.summary())

    def verify(self, attestation_id: str, transaction: TransactionSummary | None = None) -> AttestationRecord:
        """Read an attestation back together with its validity."""
        stored = self.gateway.get_attestation(attestation_id)
        valid = self.gateway.is_attestation_valid(attestation_id)
        logger.info("Attestation %s verified (valid: %s)", attestation_id, valid)
        return stored.model_copy(update={"valid": valid, "transaction": transaction})

    def revoke(self, attestation_id: str) -> TransactionSummary:
        """Revoke an attestation; the registry enforces who may do so."""
        if not is_bytes32_hex(attestation_id):
            raise ValueError("Attestation ID must be a 32-byte hex string with 0x prefix")

        handle = self.gateway.revoke_attestation(attestation_id)
        receipt = handle.wait()
        logger.info("Attestation %s revoked in %s", attestation_id, receipt.tx_hash)
        return receipt.summary()


def ensure_recipient(recipient: Identity) -> Identity:
    """Require at least one of recipient DID, subject ID or address."""
    if recipient.is_empty():
        raise ValueError(
            "One of the recipient information is required (recipient DID, recipient ID or recipient address)"
        )
    return recipient


def build_review_request(
    attester: AuthenticatedIdentity, recipient: Identity, stars: int, comment: str
) -> AttestationRequest:
    return AttestationRequest(
        schema_id=attester.schema_record.id,
        attester=attester.as_attester(),
        recipient=ensure_recipient(recipient),
        expiration_time=0,
        revocable=True,
        ref_id=ZERO_HASH,
        data=encode_review_data(stars, comment),
    )


def build_ownership_request(attester: AuthenticatedIdentity, recipient: Identity) -> AttestationRequest:
    return AttestationRequest(
        schema_id=attester.schema_record.id,
        attester=attester.as_attester(),
        recipient=ensure_recipient(recipient),
        expiration_time=0,
        revocable=True,
        ref_id=ZERO_HASH,
        data=encode_ownership_data(),
    )
