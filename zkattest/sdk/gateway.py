"""Typed access to the State, AuthVerifier, SchemaRegistry and
AttestationRegistry contracts.

Reads are plain ``eth_call``s. Writes are signed locally with the configured
account and return a TransactionHandle; ``wait()`` blocks until inclusion
and raises TransactionReverted for failed receipts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.contract import Contract

from zkattest.contracts.abi import (
    ATTESTATION_REGISTRY_ABI,
    AUTH_VERIFIER_ABI,
    SCHEMA_REGISTRY_ABI,
    STATE_ABI,
)
from zkattest.sdk.errors import TransactionReverted
from zkattest.sdk.models import AttestationRecord, AttestationRequest, Identity, SchemaRecord, TransactionSummary

logger = logging.getLogger(__name__)

DEFAULT_RECEIPT_TIMEOUT = 120.0


@dataclass(frozen=True)
class ContractAddresses:
    """Deployed contract addresses; unused contracts may be left unset."""

    attestation_registry: str
    state: str | None = None
    auth_verifier: str | None = None
    schema_registry: str | None = None


@dataclass
class TransactionReceipt:
    """Subset of an included transaction's receipt."""

    tx_hash: str
    gas_used: int
    status: int
    block_number: int | None = None
    logs: list[Any] = field(default_factory=list)

    def summary(self) -> TransactionSummary:
        return TransactionSummary(tx_hash=self.tx_hash, gas_used=self.gas_used, block_number=self.block_number)


class TransactionHandle:
    """Submitted transaction awaiting inclusion."""

    def __init__(self, w3: Web3, tx_hash: str, action: str, timeout: float = DEFAULT_RECEIPT_TIMEOUT):
        self.w3 = w3
        self.tx_hash = tx_hash
        self.action = action
        self.timeout = timeout

    def wait(self) -> TransactionReceipt:
        """Block until the transaction is included and return its receipt."""
        receipt = self.w3.eth.wait_for_transaction_receipt(self.tx_hash, timeout=self.timeout)
        if receipt["status"] == 0:
            raise TransactionReverted(self.action, self.tx_hash)
        return TransactionReceipt(
            tx_hash=self.tx_hash,
            gas_used=receipt["gasUsed"],
            status=receipt["status"],
            block_number=receipt.get("blockNumber"),
            logs=list(receipt["logs"]),
        )


class ContractGateway:
    """Read/write gateway over the four registry contracts."""

    def __init__(
        self,
        w3: Web3,
        account: LocalAccount,
        addresses: ContractAddresses,
        chain_id: int,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
    ):
        """Initialize gateway.

        Args:
            w3: Connected Web3 client
            account: Local account used to sign writes
            addresses: Contract addresses
            chain_id: Chain ID used for transaction signing
            receipt_timeout: Seconds to wait for inclusion
        """
        if not w3:
            raise ValueError("Web3 client is required")
        if chain_id <= 0:
            raise ValueError("Chain ID must be positive")

        self.w3 = w3
        self.account = account
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        self.addresses = addresses
        self._contracts: dict[str, Contract] = {}

    @property
    def signer_address(self) -> str:
        return self.account.address

    # --- Reads ---
    def get_schema(self, schema_id: str) -> SchemaRecord:
        raw = self._contract("schema_registry").functions.getSchema(_bytes32(schema_id)).call()
        schema_uid, resolver, revocable, definition = raw
        return SchemaRecord(
            id=_hex(schema_uid), resolver=resolver, revocable=revocable, schema_definition=definition
        )

    def get_default_id_type(self) -> str:
        return _hex(self._contract("state").functions.getDefaultIdType().call())

    def get_id_by_address(self, address: str) -> int:
        checksummed = Web3.to_checksum_address(address)
        return int(self._contract("auth_verifier").functions.getIdByAddress(checksummed).call())

    def auth_method_exists(self, auth_method: str) -> bool:
        return bool(self._contract("auth_verifier").functions.authMethodExists(auth_method).call())

    def get_attestation(self, attestation_id: str) -> AttestationRecord:
        raw = self._contract("attestation_registry").functions.getAttestation(_bytes32(attestation_id)).call()
        return _to_attestation_record(raw)

    def is_attestation_valid(self, attestation_id: str) -> bool:
        fn = self._contract("attestation_registry").functions.isAttestationValid(_bytes32(attestation_id))
        return bool(fn.call())

    # --- Writes ---
    def submit_authentication_response(self, auth_method: str, proof: bytes) -> TransactionHandle:
        fn = self._contract("auth_verifier").functions.submitResponse((auth_method, proof), [], b"")
        return self._send(fn, "submitResponse")

    def record_attestation(self, request: AttestationRequest) -> TransactionHandle:
        fn = self._contract("attestation_registry").functions.recordAttestation(request.to_abi_tuple())
        return self._send(fn, "recordAttestation")

    def revoke_attestation(self, attestation_id: str) -> TransactionHandle:
        fn = self._contract("attestation_registry").functions.revokeAttestation(_bytes32(attestation_id))
        return self._send(fn, "revokeAttestation")

    # --- Internal helpers ---
    def _contract(self, name: str) -> Contract:
        if name not in self._contracts:
            address = getattr(self.addresses, name)
            if not address:
                raise ValueError(f"{name} contract address not set")
            self._contracts[name] = self.w3.eth.contract(
                address=Web3.to_checksum_address(address), abi=_ABIS[name]
            )
        return self._contracts[name]

    def _send(self, fn: Any, action: str) -> TransactionHandle:
        """Sign and broadcast a contract call from the configured account."""
        sender = self.account.address
        tx = fn.build_transaction({
            "from": sender,
            "nonce": self.w3.eth.get_transaction_count(sender, "pending"),
            "chainId": self.chain_id,
        })
        signed = self.account.sign_transaction(tx)
        tx_hash = Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))
        logger.info("Transaction submitted (%s): %s", action, tx_hash)
        return TransactionHandle(self.w3, tx_hash, action, self.receipt_timeout)


_ABIS: dict[str, list[dict]] = {
    "state": STATE_ABI,
    "auth_verifier": AUTH_VERIFIER_ABI,
    "schema_registry": SCHEMA_REGISTRY_ABI,
    "attestation_registry": ATTESTATION_REGISTRY_ABI,
}


def _bytes32(value: str) -> bytes:
    raw = bytes.fromhex(value[2:] if value.startswith("0x") else value)
    if len(raw) != 32:
        raise ValueError(f"Expected 32-byte hex value, got {value!r}")
    return raw


def _hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def _to_identity(raw: tuple) -> Identity:
    did, iden3_id, address = raw
    return Identity(did=did, iden3_id=iden3_id, ethereum_address=address)


def _to_attestation_record(raw: tuple) -> AttestationRecord:
    """Parse the getAttestation struct into an AttestationRecord."""
    (att_id, schema_id, attester, recipient, time, expiration_time,
     revocation_time, revocable, ref_id, data) = raw
    return AttestationRecord(
        id=_hex(att_id),
        schema_id=_hex(schema_id),
        attester=_to_identity(attester),
        recipient=_to_identity(recipient),
        time=time,
        expiration_time=expiration_time,
        revocation_time=revocation_time,
        revocable=revocable,
        ref_id=_hex(ref_id),
        data=bytes(data),
    )
