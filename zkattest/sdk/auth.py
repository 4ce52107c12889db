"""Authenticate-if-needed flow against the AuthVerifier contract.

The locally created identity only proposes a subject ID; the ID bound to
the signer's address in the AuthVerifier is authoritative. A proof is
submitted only when the address is unbound or bound to a different ID, so
repeated runs for an already bound signer perform no write.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from zkattest.sdk.did import did_from_subject_id
from zkattest.sdk.encoding import calc_challenge_auth_v2, pack_zkp_proof, prepare_zkp_proof, validate_schema_id
from zkattest.sdk.errors import (
    AuthenticationFailed,
    AuthenticationIneffective,
    AuthMethodUnavailable,
    SchemaNotFound,
)
from zkattest.sdk.identity import (
    AUTH_V2_CIRCUIT,
    IdentityCreationOptions,
    IdentityProofSource,
    LocalIdentity,
)
from zkattest.sdk.models import AuthenticatedIdentity, SchemaRecord

logger = logging.getLogger(__name__)

AUTH_METHOD = "authV2"


class BindingState(str, Enum):
    """Relation between the local candidate ID and the on-chain binding."""
    UNAUTHENTICATED = "unauthenticated"
    MATCHING = "authenticated-matching"
    MISMATCHED = "authenticated-mismatched"


class AuthAction(str, Enum):
    SUBMIT_PROOF = "submit-proof"
    USE_BINDING = "use-binding"


def binding_state(candidate_id: int, current_id: int) -> BindingState:
    if current_id == 0:
        return BindingState.UNAUTHENTICATED
    if current_id == candidate_id:
        return BindingState.MATCHING
    return BindingState.MISMATCHED


def decide_auth_action(candidate_id: int, current_id: int) -> AuthAction:
    """Submit a proof unless the address is already bound to the candidate."""
    if binding_state(candidate_id, current_id) is BindingState.MATCHING:
        return AuthAction.USE_BINDING
    return AuthAction.SUBMIT_PROOF


class AuthGateway(Protocol):
    """Contract calls the orchestrator depends on."""

    def get_schema(self, schema_id: str) -> SchemaRecord: ...
    def get_default_id_type(self) -> str: ...
    def get_id_by_address(self, address: str) -> int: ...
    def auth_method_exists(self, auth_method: str) -> bool: ...
    def submit_authentication_response(self, auth_method: str, proof: bytes): ...


class AuthenticationOrchestrator:
    """Ensures a signer has an identity bound in the AuthVerifier."""

    def __init__(
        self,
        gateway: AuthGateway,
        proof_source: IdentityProofSource,
        identity_options: IdentityCreationOptions | None = None,
    ):
        self.gateway = gateway
        self.proof_source = proof_source
        self.identity_options = identity_options or IdentityCreationOptions()

    def ensure_authenticated(self, schema_id: str, signer_address: str) -> AuthenticatedIdentity:
        """Return the on-chain subject ID and DID for ``signer_address``.

        Raises:
            InvalidSchemaFormat: schema_id is not 0x-prefixed 32-byte hex
            SchemaNotFound: schema is not registered
            AuthMethodUnavailable: AuthVerifier lacks the authV2 method
            AuthenticationFailed: proof generation or submission failed
            AuthenticationIneffective: transaction included but no ID bound
        """
        validate_schema_id(schema_id)
        schema = self._require_schema(schema_id)

        identity = self.proof_source.create_identity(self.identity_options)
        logger.info("Local identity: %s", identity.did)
        logger.debug("Default ID type from State: %s", self.gateway.get_default_id_type())
        logger.debug("Generated user ID from DID: %s", identity.subject_id)

        current_id = self.gateway.get_id_by_address(signer_address)
        logger.debug("Current user ID from AuthVerifier: %s", current_id)

        if decide_auth_action(identity.subject_id, current_id) is AuthAction.SUBMIT_PROOF:
            subject_id = self._authenticate(identity, signer_address)
        else:
            logger.info("User already authenticated with ID %s", current_id)
            subject_id = current_id

        if subject_id != identity.subject_id:
            logger.warning(
                "Current user ID %s differs from generated ID %s; using the ID bound in AuthVerifier",
                subject_id, identity.subject_id,
            )

        return AuthenticatedIdentity(
            subject_id=subject_id,
            did=did_from_subject_id(subject_id),
            signer_address=signer_address,
            schema_record=schema,
        )

    def _require_schema(self, schema_id: str) -> SchemaRecord:
        schema = self.gateway.get_schema(schema_id)
        if not schema.exists:
            raise SchemaNotFound(schema_id)
        logger.info(
            "Schema found: %s (resolver %s, revocable %s)",
            schema.schema_definition, schema.resolver, schema.revocable,
        )
        return schema

    def _authenticate(self, identity: LocalIdentity, signer_address: str) -> int:
        """Prove control of ``identity`` and bind it to ``signer_address``."""
        logger.info("Authenticating %s with %s", signer_address, AUTH_METHOD)
        if not self.gateway.auth_method_exists(AUTH_METHOD):
            raise AuthMethodUnavailable(AUTH_METHOD)

        challenge = calc_challenge_auth_v2(signer_address)
        try:
            proof = self.proof_source.generate_auth_proof(AUTH_V2_CIRCUIT, identity, challenge)
            a, b, c = prepare_zkp_proof(proof.pi_a, proof.pi_b, proof.pi_c)
            encoded_proof = pack_zkp_proof(proof.pub_signals, a, b, c)
        except Exception as e:
            raise AuthenticationFailed("generating the authV2 proof", signer_address, e) from e

        try:
            handle = self.gateway.submit_authentication_response(AUTH_METHOD, encoded_proof)
            handle.wait()
        except Exception as e:
            raise AuthenticationFailed("submitting the authentication response", signer_address, e) from e

        current_id = self.gateway.get_id_by_address(signer_address)
        if current_id == 0:
            raise AuthenticationIneffective(signer_address, handle.tx_hash)

        logger.info("User authenticated with ID %s", current_id)
        return current_id
