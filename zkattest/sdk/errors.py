"""Error taxonomy for the authentication and attestation flows.

Every error is fatal to the current invocation. Messages name the failing
step and the identifier involved so a single log line is actionable.
"""

from __future__ import annotations


class AttestationServiceError(Exception):
    """Base class for all zkattest errors."""


class ConfigurationError(AttestationServiceError, ValueError):
    """Required setting missing or malformed; raised before any network call."""


class InvalidSchemaFormat(AttestationServiceError, ValueError):
    """Schema ID is not a 0x-prefixed 32-byte hex string."""

    def __init__(self, schema_id: str):
        super().__init__(
            f"Invalid schema ID format {schema_id!r}. Expected 32-byte hex string with 0x prefix"
        )
        self.schema_id = schema_id


class SchemaNotFound(AttestationServiceError):
    """SchemaRegistry returned an empty record for the schema ID."""

    def __init__(self, schema_id: str):
        super().__init__(f"Schema with ID {schema_id} not found in SchemaRegistry")
        self.schema_id = schema_id


class AuthMethodUnavailable(AttestationServiceError):
    """AuthVerifier has no validator registered for the auth method."""

    def __init__(self, auth_method: str):
        super().__init__(
            f"Auth method {auth_method!r} is not registered in the AuthVerifier contract"
        )
        self.auth_method = auth_method


class AuthenticationFailed(AttestationServiceError):
    """Proof generation or submission failed during authentication."""

    def __init__(self, step: str, signer_address: str, cause: Exception):
        super().__init__(
            f"Authentication of {signer_address} failed while {step}: {cause}"
        )
        self.step = step
        self.signer_address = signer_address


class AuthenticationIneffective(AttestationServiceError):
    """Authentication transaction was included but no ID is bound to the address."""

    def __init__(self, signer_address: str, tx_hash: str):
        super().__init__(
            f"Authentication transaction {tx_hash} was included but the user ID "
            f"for {signer_address} is still 0"
        )
        self.signer_address = signer_address
        self.tx_hash = tx_hash


class TransactionReverted(AttestationServiceError):
    """A submitted transaction was included with a failed status."""

    def __init__(self, action: str, tx_hash: str):
        super().__init__(f"Transaction {tx_hash} ({action}) reverted")
        self.action = action
        self.tx_hash = tx_hash


class RecordIdMissing(AttestationServiceError):
    """Write succeeded but the expected record-created event was not emitted."""

    def __init__(self, event_name: str, tx_hash: str):
        super().__init__(
            f"Failed to extract attestation ID: no {event_name} event in receipt of {tx_hash}"
        )
        self.event_name = event_name
        self.tx_hash = tx_hash


class AttestationFetchFailed(AttestationServiceError):
    """A page of the attestation index could not be fetched or parsed."""

    def __init__(self, page_number: int, reason: str):
        super().__init__(f"Fetching attestations page {page_number} failed: {reason}")
        self.page_number = page_number


class ProofGenerationError(AttestationServiceError):
    """The circuit prover did not produce a usable proof."""
