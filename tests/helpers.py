"""Test helper functions and fakes for chain-free tests.

Provides an in-memory stand-in for the contract gateway, a deterministic
proof source and builders for receipt logs, so flow tests run without an
RPC node or a circuit prover.
"""

from __future__ import annotations

import hashlib
from typing import Any, Callable

from eth_abi import encode
from eth_utils import event_abi_to_log_topic, keccak

from zkattest.contracts.abi import ATTESTATION_RECORDED_EVENT, ATTESTATION_REGISTRY_ABI, event_abis
from zkattest.sdk.did import build_id, did_from_subject_id, id_type, subject_id_from_bytes
from zkattest.sdk.gateway import TransactionReceipt
from zkattest.sdk.identity import AuthProof, IdentityCreationOptions, LocalIdentity
from zkattest.sdk.models import AttestationRecord, AttestationRequest, SchemaRecord


SIGNER = "0x" + "ab" * 20
REGISTRY = "0x" + "cd" * 20
SCHEMA_ID = "0x" + "11" * 32
REVIEW_SCHEMA = "uint8 stars, string comment"


def make_subject_id(fill: int, blockchain: str = "billions", network: str = "test") -> int:
    """Build a checksummed iden3 subject ID with a repeated genesis byte."""
    id_bytes = build_id(id_type("iden3", blockchain, network), bytes([fill]) * 27)
    return subject_id_from_bytes(id_bytes)


CANDIDATE_ID = make_subject_id(0x01)
OTHER_ID = make_subject_id(0x02)


def recorded_event_abi() -> dict:
    return next(e for e in event_abis(ATTESTATION_REGISTRY_ABI) if e["name"] == ATTESTATION_RECORDED_EVENT)


def recorded_log(att_id: bytes, schema_id: bytes, attester_id: int = 1, recipient_id: int = 0) -> dict:
    """Receipt log of an AttestationRecorded event."""
    return {
        "address": REGISTRY,
        "topics": [event_abi_to_log_topic(recorded_event_abi()), att_id, schema_id],
        "data": encode(["uint256", "uint256"], [attester_id, recipient_id]),
    }


def foreign_log() -> dict:
    """Log emitted by some other contract (ERC-20 Transfer)."""
    return {
        "address": "0x" + "ef" * 20,
        "topics": [
            keccak(text="Transfer(address,address,uint256)"),
            b"\x00" * 12 + bytes.fromhex("ab" * 20),
            b"\x00" * 12 + bytes.fromhex("cd" * 20),
        ],
        "data": encode(["uint256"], [10]),
    }


class FakeHandle:
    """Transaction handle that is included immediately."""

    def __init__(self, tx_hash: str, logs: list[Any] | None = None, gas_used: int = 50_000,
                 on_wait: Callable[[], None] | None = None):
        self.tx_hash = tx_hash
        self.logs = logs or []
        self.gas_used = gas_used
        self.on_wait = on_wait

    def wait(self) -> TransactionReceipt:
        if self.on_wait:
            self.on_wait()
        return TransactionReceipt(tx_hash=self.tx_hash, gas_used=self.gas_used, status=1, logs=self.logs)


class FakeGateway:
    """In-memory AuthVerifier / SchemaRegistry / AttestationRegistry."""

    def __init__(
        self,
        schema: SchemaRecord | None = None,
        bound_ids: dict[str, int] | None = None,
        bind_on_submit: int | None = None,
        auth_method_registered: bool = True,
        record_logs: list[Any] | None = None,
    ):
        self.signer_address = SIGNER
        self.schema = schema or SchemaRecord(id=SCHEMA_ID, schema_definition=REVIEW_SCHEMA)
        self.bound_ids = dict(bound_ids or {})
        self.bind_on_submit = bind_on_submit
        self.auth_method_registered = auth_method_registered
        self.record_logs = record_logs
        self.writes: list[str] = []
        self.submitted_proofs: list[bytes] = []
        self.records: dict[str, AttestationRecord] = {}
        self.revoked: set[str] = set()

    def get_schema(self, schema_id: str) -> SchemaRecord:
        return self.schema

    def get_default_id_type(self) -> str:
        return "0x01b2"

    def get_id_by_address(self, address: str) -> int:
        return self.bound_ids.get(address, 0)

    def auth_method_exists(self, auth_method: str) -> bool:
        return self.auth_method_registered

    def submit_authentication_response(self, auth_method: str, proof: bytes) -> FakeHandle:
        self.writes.append("submitResponse")
        self.submitted_proofs.append(proof)
        return FakeHandle(self._tx_hash(), on_wait=self._bind)

    def record_attestation(self, request: AttestationRequest) -> FakeHandle:
        self.writes.append("recordAttestation")
        att_id = hashlib.sha256(f"attestation-{len(self.writes)}".encode()).digest()
        self.records["0x" + att_id.hex()] = AttestationRecord(
            id="0x" + att_id.hex(),
            schema_id=request.schema_id,
            attester=request.attester,
            recipient=request.recipient,
            time=1_700_000_000,
            expiration_time=request.expiration_time,
            revocable=request.revocable,
            ref_id=request.ref_id,
            data=request.data,
        )
        logs = self.record_logs
        if logs is None:
            logs = [foreign_log(), recorded_log(att_id, bytes.fromhex(request.schema_id[2:]))]
        return FakeHandle(self._tx_hash(), logs=logs)

    def revoke_attestation(self, attestation_id: str) -> FakeHandle:
        self.writes.append("revokeAttestation")
        self.revoked.add(attestation_id)
        return FakeHandle(self._tx_hash())

    def get_attestation(self, attestation_id: str) -> AttestationRecord:
        return self.records[attestation_id]

    def is_attestation_valid(self, attestation_id: str) -> bool:
        return attestation_id in self.records and attestation_id not in self.revoked

    def _bind(self) -> None:
        if self.bind_on_submit is not None and self.bound_ids.get(self.signer_address, 0) == 0:
            self.bound_ids[self.signer_address] = self.bind_on_submit

    def _tx_hash(self) -> str:
        return "0x" + hashlib.sha256(f"tx-{len(self.writes)}".encode()).hexdigest()


class FakeProofSource:
    """Proof source returning a fixed identity and a dummy proof."""

    def __init__(self, subject_id: int = CANDIDATE_ID, error: Exception | None = None):
        self.subject_id = subject_id
        self.error = error
        self.challenges: list[int] = []

    def create_identity(self, options: IdentityCreationOptions) -> LocalIdentity:
        return LocalIdentity(did=did_from_subject_id(self.subject_id), subject_id=self.subject_id)

    def generate_auth_proof(self, circuit_id: str, identity: LocalIdentity, challenge: int) -> AuthProof:
        if self.error:
            raise self.error
        self.challenges.append(challenge)
        return sample_proof(identity.subject_id, challenge)


def sample_proof(subject_id: int, challenge: int) -> AuthProof:
    return AuthProof(
        pub_signals=[str(subject_id), str(challenge), "0"],
        pi_a=["1", "2", "1"],
        pi_b=[["3", "4"], ["5", "6"], ["1", "0"]],
        pi_c=["7", "8", "1"],
    )
