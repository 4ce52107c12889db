"""Test the local identity store and the circuit prover adapter."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from zkattest.sdk.did import subject_id_from_did
from zkattest.sdk.errors import ProofGenerationError
from zkattest.sdk.identity import AUTH_V2_CIRCUIT, CircuitProofSource, IdentityCreationOptions, LocalIdentity

SEED = b"\x07" * 32
PROOF = {
    "pi_a": ["1", "2", "1"],
    "pi_b": [["3", "4"], ["5", "6"], ["1", "0"]],
    "pi_c": ["7", "8", "1"],
    "protocol": "groth16",
}


@pytest.fixture
def circuits(tmp_path: Path) -> Path:
    circuit_dir = tmp_path / AUTH_V2_CIRCUIT
    circuit_dir.mkdir()
    (circuit_dir / "circuit.wasm").write_bytes(b"\0asm")
    (circuit_dir / "circuit_final.zkey").write_bytes(b"zkey")
    return tmp_path


def fake_prover(public: list[int]):
    """subprocess.run stand-in that writes snarkjs-style outputs."""
    calls: list[list[str]] = []

    def run(command, **kwargs):
        calls.append(command)
        proof_file, public_file = Path(command[-2]), Path(command[-1])
        proof_file.write_text(json.dumps(PROOF))
        public_file.write_text(json.dumps([str(v) for v in public]))
        return subprocess.CompletedProcess(command, 0, "", "")

    return run, calls


def test_seeded_identity_is_stable(circuits: Path) -> None:
    """Test the same seed yields the same DID across instances."""
    first = CircuitProofSource(circuits, seed=SEED).create_identity(IdentityCreationOptions())
    second = CircuitProofSource(circuits, seed=SEED).create_identity(IdentityCreationOptions())

    assert first.did == second.did
    assert first.subject_id == second.subject_id
    assert first.did.startswith("did:iden3:billions:test:")
    assert subject_id_from_did(first.did) == first.subject_id


def test_unseeded_identities_differ(circuits: Path) -> None:
    source = CircuitProofSource(circuits)
    options = IdentityCreationOptions()

    assert source.create_identity(options).did != source.create_identity(options).did


def test_identity_network_from_options(circuits: Path) -> None:
    options = IdentityCreationOptions(blockchain="polygon", network="amoy")

    identity = CircuitProofSource(circuits, seed=SEED).create_identity(options)

    assert identity.did.startswith("did:iden3:polygon:amoy:")


def test_seed_length() -> None:
    with pytest.raises(ValueError, match="32 bytes"):
        CircuitProofSource(".", seed=b"short")


def test_generate_auth_proof(circuits: Path) -> None:
    """Test the prover is invoked with the circuit artifacts and parsed back."""
    source = CircuitProofSource(circuits, seed=SEED)
    identity = source.create_identity(IdentityCreationOptions())
    run, calls = fake_prover([identity.subject_id, 123])

    with patch("zkattest.sdk.identity.subprocess.run", side_effect=run):
        proof = source.generate_auth_proof(AUTH_V2_CIRCUIT, identity, 123)

    (command,) = calls
    assert command[:3] == ["snarkjs", "groth16", "fullprove"]
    assert command[4] == str(circuits / AUTH_V2_CIRCUIT / "circuit.wasm")
    assert command[5] == str(circuits / AUTH_V2_CIRCUIT / "circuit_final.zkey")
    assert proof.circuit_id == AUTH_V2_CIRCUIT
    assert proof.pub_signals == [str(identity.subject_id), "123"]
    assert proof.pi_b == PROOF["pi_b"]


def test_circuit_inputs_written(circuits: Path) -> None:
    source = CircuitProofSource(circuits, seed=SEED)
    identity = source.create_identity(IdentityCreationOptions())
    seen: dict = {}

    def run(command, **kwargs):
        seen.update(json.loads(Path(command[3]).read_text()))
        return fake_prover([1])[0](command, **kwargs)

    with patch("zkattest.sdk.identity.subprocess.run", side_effect=run):
        source.generate_auth_proof(AUTH_V2_CIRCUIT, identity, 99)

    assert seen["genesisID"] == str(identity.subject_id)
    assert seen["challenge"] == "99"
    assert seen["authPubKey"] == identity.public_key


def test_unknown_identity(circuits: Path) -> None:
    stranger = LocalIdentity(did="did:iden3:billions:test:unknown", subject_id=1)

    with pytest.raises(ProofGenerationError, match="No key for identity"):
        CircuitProofSource(circuits).generate_auth_proof(AUTH_V2_CIRCUIT, stranger, 1)


def test_missing_circuit_artifacts(tmp_path: Path) -> None:
    source = CircuitProofSource(tmp_path, seed=SEED)
    identity = source.create_identity(IdentityCreationOptions())

    with pytest.raises(ProofGenerationError, match="Circuit artifact not found"):
        source.generate_auth_proof(AUTH_V2_CIRCUIT, identity, 1)


def test_prover_not_installed(circuits: Path) -> None:
    source = CircuitProofSource(circuits, prover_command="no-such-prover", seed=SEED)
    identity = source.create_identity(IdentityCreationOptions())

    with patch("zkattest.sdk.identity.subprocess.run", side_effect=FileNotFoundError):
        with pytest.raises(ProofGenerationError, match="no-such-prover"):
            source.generate_auth_proof(AUTH_V2_CIRCUIT, identity, 1)


def test_prover_failure(circuits: Path) -> None:
    source = CircuitProofSource(circuits, seed=SEED)
    identity = source.create_identity(IdentityCreationOptions())
    error = subprocess.CalledProcessError(1, ["snarkjs"], stderr="witness mismatch\n")

    with patch("zkattest.sdk.identity.subprocess.run", side_effect=error):
        with pytest.raises(ProofGenerationError, match="witness mismatch"):
            source.generate_auth_proof(AUTH_V2_CIRCUIT, identity, 1)


def test_unreadable_prover_output(circuits: Path) -> None:
    source = CircuitProofSource(circuits, seed=SEED)
    identity = source.create_identity(IdentityCreationOptions())

    with patch("zkattest.sdk.identity.subprocess.run"):
        with pytest.raises(ProofGenerationError, match="unreadable"):
            source.generate_auth_proof(AUTH_V2_CIRCUIT, identity, 1)
