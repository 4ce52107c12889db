"""Pydantic models for zkattest data structures.

Mirrors the on-chain structs of the SchemaRegistry and AttestationRegistry
contracts, plus the records returned by the attestation index API.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator


ZERO_HASH = "0x" + "00" * 32
ZERO_ADDRESS = "0x" + "00" * 20


class AttestationStatus(str, Enum):
    """Attestation status enum."""
    VALID = "valid"
    REVOKED = "revoked"


class SchemaRecord(BaseModel):
    """Schema definition as stored in the SchemaRegistry."""

    id: str = Field(..., description="32-byte schema ID (0x-prefixed hex)")
    schema_definition: str = Field(default="", description="Human-readable schema definition")
    resolver: str = Field(default=ZERO_ADDRESS, description="Optional resolver contract address")
    revocable: bool = Field(default=True, description="Whether attestations may be revoked")

    @property
    def exists(self) -> bool:
        return int(self.id, 16) != 0


class Identity(BaseModel):
    """Attester or recipient identity triple."""

    did: str = Field(default="", description="Decentralized identifier")
    iden3_id: int = Field(default=0, ge=0, description="iden3 subject ID as an integer")
    ethereum_address: str = Field(default=ZERO_ADDRESS, description="EVM address")

    @field_validator('ethereum_address')
    @classmethod
    def validate_ethereum_address(cls, v: str) -> str:
        """Validate address shape and normalize it to its EIP-55 checksum form."""
        if not is_address(v):
            raise ValueError(f"Invalid Ethereum address: {v}")
        return to_checksum_address(v)

    def is_empty(self) -> bool:
        """True when none of DID, subject ID or address is set."""
        return (
            not self.did.strip()
            and self.iden3_id == 0
            and int(self.ethereum_address, 16) == 0
        )

    def to_abi_tuple(self) -> tuple[str, int, str]:
        return (self.did, self.iden3_id, self.ethereum_address)


class AttestationRequest(BaseModel):
    """Input of AttestationRegistry.recordAttestation."""

    schema_id: str = Field(..., description="Referenced schema ID")
    attester: Identity = Field(..., description="Authenticated attester")
    recipient: Identity = Field(..., description="Attestation recipient")
    expiration_time: int = Field(default=0, ge=0, description="Unix expiry, 0 for none")
    revocable: bool = Field(default=True)
    ref_id: str = Field(default=ZERO_HASH, description="Referenced attestation ID")
    data: bytes = Field(default=b"", description="ABI-encoded attestation payload")

    def to_abi_tuple(self) -> tuple[Any, ...]:
        """Argument layout of the recordAttestation struct."""
        return (
            bytes.fromhex(self.schema_id[2:]),
            self.attester.to_abi_tuple(),
            self.recipient.to_abi_tuple(),
            self.expiration_time,
            self.revocable,
            bytes.fromhex(self.ref_id[2:]),
            self.data,
        )


class TransactionSummary(BaseModel):
    """Included transaction as reported back to callers."""

    tx_hash: str = Field(..., description="Transaction hash")
    gas_used: int = Field(default=0, description="Gas consumed")
    block_number: int | None = Field(default=None)


class AttestationRecord(BaseModel):
    """Attestation as read back from the AttestationRegistry."""

    id: str = Field(..., description="Generated attestation ID")
    schema_id: str = Field(..., description="Referenced schema ID")
    attester: Identity
    recipient: Identity
    time: int = Field(default=0, description="Unix time of recording")
    expiration_time: int = Field(default=0)
    revocation_time: int = Field(default=0)
    revocable: bool = Field(default=True)
    ref_id: str = Field(default=ZERO_HASH)
    data: bytes = Field(default=b"")
    valid: bool = Field(default=True, description="Result of isAttestationValid")
    transaction: TransactionSummary | None = Field(
        default=None, description="Transaction that created the record"
    )

    @property
    def status(self) -> AttestationStatus:
        return AttestationStatus.VALID if self.valid else AttestationStatus.REVOKED


class AuthenticatedIdentity(BaseModel):
    """Result of a successful authentication against the AuthVerifier."""

    subject_id: int = Field(..., gt=0, description="Subject ID bound on-chain")
    did: str = Field(..., description="DID derived from the bound subject ID")
    signer_address: str = Field(..., description="Address the ID is bound to")
    schema_record: SchemaRecord

    def as_attester(self) -> Identity:
        return Identity(did=self.did, iden3_id=self.subject_id, ethereum_address=self.signer_address)


class IndexedAttestation(BaseModel):
    """Attestation item returned by the attestation index API."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str | None = Field(default=None)
    from_did: str = Field(default="", alias="fromDid")
    decoded_data_json: str = Field(default="[]", alias="decodedDataJson")

    def decoded_fields(self) -> dict[str, Any]:
        """Map field name to value from the decoded data descriptors."""
        fields = json.loads(self.decoded_data_json)
        return {item["value"]["name"]: item["value"]["value"] for item in fields}


class Review(BaseModel):
    """Review extracted from an indexed attestation."""

    from_did: str
    stars: int
    comment: str = ""


class ReviewSummary(BaseModel):
    """Aggregated view over a set of reviews."""

    count: int = 0
    average_stars: float = 0.0
    reviews: list[Review] = Field(default_factory=list)
