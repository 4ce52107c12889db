"""CLI configuration management for zkattest using pydantic-settings.

Handles Web3 client setup, signer key management, and environment configuration.
The configuration is assembled once per invocation and passed down explicitly.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import is_address
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from web3 import Web3

from zkattest.sdk.errors import ConfigurationError
from zkattest.sdk.gateway import ContractAddresses, ContractGateway
from zkattest.sdk.identity import CircuitProofSource, IdentityCreationOptions


class ZKAttestConfig(BaseSettings):
    """zkattest configuration using pydantic-settings BaseSettings."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        populate_by_name=True,
        frozen=True,
    )

    private_key: str | None = Field(default=None, description="Signer private key (hex)")
    rpc_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices('BILLIONS_TESTNET_RPC_URL', 'RPC_URL', 'rpc_url'),
        description="EVM JSON-RPC endpoint",
    )
    state_contract_address: str | None = Field(default=None)
    auth_verifier_contract_address: str | None = Field(default=None)
    attestation_registry_contract_address: str | None = Field(default=None)
    schema_registry_contract_address: str | None = Field(default=None)
    chain_id: int | None = Field(default=None, description="Chain ID used for signing")
    rhs_url: str | None = Field(default=None, description="Reverse hash service URL")
    circuits_path: str | None = Field(default=None, description="Directory with circuit artifacts")
    prover_command: str = Field(default="snarkjs", description="Groth16 prover executable")
    review_schema_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices('REVIEW_ATTESTATION_SCHEMA', 'review_schema_id'),
    )
    ownership_schema_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices('OWNERSHIP_ATTESTATION_SCHEMA', 'ownership_schema_id'),
    )
    attestations_api_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices('BILLIONS_ATTESTATIONS_API_URL', 'attestations_api_url'),
    )
    did_method: str = Field(default="iden3")
    did_blockchain: str = Field(default="billions")
    did_network: str = Field(default="test")

    @field_validator('chain_id')
    @classmethod
    def validate_chain_id(cls, v: int | None) -> int | None:
        """Validate chain ID is positive if provided."""
        if v is not None and v <= 0:
            raise ValueError("Chain ID must be positive")
        return v

    @field_validator(
        'state_contract_address',
        'auth_verifier_contract_address',
        'attestation_registry_contract_address',
        'schema_registry_contract_address',
    )
    @classmethod
    def validate_address(cls, v: str | None) -> str | None:
        """Validate contract addresses are 20-byte hex if provided."""
        if v and not is_address(v):
            raise ValueError(f"Invalid contract address: {v}")
        return v


# Field name -> environment variable reported when missing
ENV_NAMES: dict[str, str] = {
    'private_key': 'PRIVATE_KEY',
    'rpc_url': 'BILLIONS_TESTNET_RPC_URL',
    'state_contract_address': 'STATE_CONTRACT_ADDRESS',
    'auth_verifier_contract_address': 'AUTH_VERIFIER_CONTRACT_ADDRESS',
    'attestation_registry_contract_address': 'ATTESTATION_REGISTRY_CONTRACT_ADDRESS',
    'schema_registry_contract_address': 'SCHEMA_REGISTRY_CONTRACT_ADDRESS',
    'chain_id': 'CHAIN_ID',
    'rhs_url': 'RHS_URL',
    'circuits_path': 'CIRCUITS_PATH',
    'review_schema_id': 'REVIEW_ATTESTATION_SCHEMA',
    'ownership_schema_id': 'OWNERSHIP_ATTESTATION_SCHEMA',
    'attestations_api_url': 'BILLIONS_ATTESTATIONS_API_URL',
}

AUTHENTICATED_FIELDS: tuple[str, ...] = (
    'private_key',
    'rpc_url',
    'state_contract_address',
    'auth_verifier_contract_address',
    'attestation_registry_contract_address',
    'schema_registry_contract_address',
    'chain_id',
    'rhs_url',
    'circuits_path',
)
REVIEW_FIELDS = AUTHENTICATED_FIELDS + ('review_schema_id',)
OWNERSHIP_FIELDS = AUTHENTICATED_FIELDS + ('ownership_schema_id',)
REVOKE_FIELDS: tuple[str, ...] = ('private_key', 'rpc_url', 'attestation_registry_contract_address', 'chain_id')
LIST_FIELDS: tuple[str, ...] = ('attestations_api_url', 'review_schema_id')


def validate_config(config: ZKAttestConfig, required: Iterable[str]) -> None:
    """Validate configuration completeness for a CLI operation."""
    for name in required:
        if getattr(config, name) in (None, ""):
            raise ConfigurationError(f"{ENV_NAMES[name]} is not defined. Set it in the environment or .env file.")


def create_web3(config: ZKAttestConfig) -> Web3:
    """Create Web3 client from configuration."""
    return Web3(Web3.HTTPProvider(config.rpc_url))


def create_account(config: ZKAttestConfig) -> LocalAccount:
    """Create signing account from private key."""
    if not config.private_key:
        raise ConfigurationError("PRIVATE_KEY is not defined. Set it in the environment or .env file.")

    try:
        return Account.from_key(config.private_key)
    except Exception as e:
        raise ConfigurationError(f"Invalid private key: {e}")


def create_gateway(config: ZKAttestConfig, w3: Web3, account: LocalAccount) -> ContractGateway:
    """Create contract gateway for the configured deployment."""
    addresses = ContractAddresses(
        attestation_registry=config.attestation_registry_contract_address or "",
        state=config.state_contract_address,
        auth_verifier=config.auth_verifier_contract_address,
        schema_registry=config.schema_registry_contract_address,
    )
    return ContractGateway(w3, account, addresses, config.chain_id or 0)


def create_proof_source(config: ZKAttestConfig, account: LocalAccount) -> CircuitProofSource:
    """Create proof source whose identity is stable for the signer key."""
    seed = hashlib.sha256(b"zkattest-identity:" + bytes(account.key)).digest()
    return CircuitProofSource(config.circuits_path or ".", config.prover_command, seed=seed)


def identity_options(config: ZKAttestConfig) -> IdentityCreationOptions:
    return IdentityCreationOptions(
        method=config.did_method,
        blockchain=config.did_blockchain,
        network=config.did_network,
        revocation_id=config.rhs_url or "",
    )
