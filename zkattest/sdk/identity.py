"""Local identity and authentication proof source.

The orchestrator only depends on the IdentityProofSource protocol.
CircuitProofSource is the shipped adapter: it keeps identity keys in an
in-memory store for the lifetime of the process and delegates Groth16
proving to an external prover binary (snarkjs by default) run against the
circuit artifacts under ``circuits_path/<circuit_id>/``.

The witness written for the prover is a simplified stand-in, not the full
authV2 input set: the genesis state is a sha256 commitment to the auth key,
not the Poseidon claims-tree root, and no Merkle proofs are included. A
stock authV2 circuit will reject it; production use needs a proof source
that builds the real witness from an iden3 identity wallet.
"""

from __future__ import annotations

import hashlib
import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol

from nacl.signing import SigningKey
from pydantic import BaseModel, Field

from zkattest.sdk.did import GENESIS_LENGTH, build_id, did_from_subject_id, id_type, subject_id_from_bytes
from zkattest.sdk.errors import ProofGenerationError

logger = logging.getLogger(__name__)

AUTH_V2_CIRCUIT = "authV2"
WASM_FILE = "circuit.wasm"
ZKEY_FILE = "circuit_final.zkey"


class IdentityCreationOptions(BaseModel):
    """DID method, network and revocation settings for a new identity."""

    method: str = Field(default="iden3")
    blockchain: str = Field(default="billions")
    network: str = Field(default="test")
    revocation_type: str = Field(default="Iden3ReverseSparseMerkleTreeProof")
    revocation_id: str = Field(default="", description="Reverse hash service URL")


class LocalIdentity(BaseModel):
    """Identity created in the local, per-process wallet."""

    did: str
    subject_id: int
    public_key: str = Field(default="", description="Hex-encoded auth public key")


class AuthProof(BaseModel):
    """Groth16 proof bundle as emitted by the prover."""

    circuit_id: str = AUTH_V2_CIRCUIT
    pub_signals: list[str]
    pi_a: list[str]
    pi_b: list[list[str]]
    pi_c: list[str]


class IdentityProofSource(Protocol):
    """Creates identities and proves control of them."""

    def create_identity(self, options: IdentityCreationOptions) -> LocalIdentity: ...

    def generate_auth_proof(self, circuit_id: str, identity: LocalIdentity, challenge: int) -> AuthProof: ...


class CircuitProofSource:
    """Proof source backed by an in-memory key store and a circuit prover."""

    def __init__(self, circuits_path: Path | str, prover_command: str = "snarkjs", seed: bytes | None = None):
        """Initialize proof source.

        Args:
            circuits_path: Directory holding one sub-directory per circuit
            prover_command: Executable implementing ``groth16 fullprove``
            seed: Optional 32-byte seed so the same signer gets the same identity
        """
        if seed is not None and len(seed) != 32:
            raise ValueError("Identity seed must be 32 bytes")
        self.circuits_path = Path(circuits_path)
        self.prover_command = prover_command
        self._seed = seed
        self._keys: dict[str, SigningKey] = {}

    def create_identity(self, options: IdentityCreationOptions) -> LocalIdentity:
        signing_key = SigningKey(self._seed) if self._seed else SigningKey.generate()
        public_key = bytes(signing_key.verify_key)

        genesis = _genesis_state(public_key, options)
        id_bytes = build_id(id_type(options.method, options.blockchain, options.network), genesis)
        subject_id = subject_id_from_bytes(id_bytes)
        did = did_from_subject_id(subject_id)

        self._keys[did] = signing_key
        logger.debug("Created local identity %s", did)
        return LocalIdentity(did=did, subject_id=subject_id, public_key=public_key.hex())

    def generate_auth_proof(self, circuit_id: str, identity: LocalIdentity, challenge: int) -> AuthProof:
        signing_key = self._keys.get(identity.did)
        if signing_key is None:
            raise ProofGenerationError(f"No key for identity {identity.did} in local key store")

        inputs = _circuit_inputs(identity, signing_key, challenge)
        return self._run_prover(circuit_id, inputs)

    def _circuit_files(self, circuit_id: str) -> tuple[Path, Path]:
        circuit_dir = self.circuits_path / circuit_id
        wasm, zkey = circuit_dir / WASM_FILE, circuit_dir / ZKEY_FILE
        for path in (wasm, zkey):
            if not path.exists():
                raise ProofGenerationError(f"Circuit artifact not found: {path}")
        return wasm, zkey

    def _run_prover(self, circuit_id: str, inputs: dict) -> AuthProof:
        wasm, zkey = self._circuit_files(circuit_id)

        with tempfile.TemporaryDirectory(prefix="zkattest-") as workdir:
            work = Path(workdir)
            input_file, proof_file, public_file = work / "input.json", work / "proof.json", work / "public.json"
            input_file.write_text(json.dumps(inputs))

            command = [
                self.prover_command, "groth16", "fullprove",
                str(input_file), str(wasm), str(zkey), str(proof_file), str(public_file),
            ]
            logger.debug("Running prover: %s", " ".join(command))
            try:
                subprocess.run(command, check=True, capture_output=True, text=True)
            except FileNotFoundError:
                raise ProofGenerationError(f"Prover executable not found: {self.prover_command}")
            except subprocess.CalledProcessError as e:
                raise ProofGenerationError(f"Prover failed for {circuit_id}: {e.stderr.strip()}")

            return _load_proof(circuit_id, proof_file, public_file)


def _genesis_state(public_key: bytes, options: IdentityCreationOptions) -> bytes:
    """Commit the auth key and revocation settings into a genesis state."""
    material = public_key + options.revocation_type.encode() + options.revocation_id.encode()
    return hashlib.sha256(material).digest()[:GENESIS_LENGTH]


def _circuit_inputs(identity: LocalIdentity, signing_key: SigningKey, challenge: int) -> dict:
    challenge_bytes = challenge.to_bytes(32, "big")
    signature = signing_key.sign(challenge_bytes).signature
    return {
        "genesisID": str(identity.subject_id),
        "profileNonce": "0",
        "challenge": str(challenge),
        "authPubKey": identity.public_key,
        "challengeSignature": signature.hex(),
    }


def _load_proof(circuit_id: str, proof_file: Path, public_file: Path) -> AuthProof:
    try:
        proof = json.loads(proof_file.read_text())
        public = json.loads(public_file.read_text())
        return AuthProof(
            circuit_id=circuit_id,
            pub_signals=[str(v) for v in public],
            pi_a=[str(v) for v in proof["pi_a"]],
            pi_b=[[str(v) for v in pair] for pair in proof["pi_b"]],
            pi_c=[str(v) for v in proof["pi_c"]],
        )
    except (OSError, ValueError, KeyError) as e:
        raise ProofGenerationError(f"Prover output for {circuit_id} is unreadable: {e}")
