"""ABI fragments for the State, AuthVerifier, SchemaRegistry and
AttestationRegistry contracts.

Only the functions and events used by zkattest are declared.
"""

from __future__ import annotations


def _identity(name: str) -> dict:
    return {
        "name": name,
        "type": "tuple",
        "components": [
            {"name": "did", "type": "string"},
            {"name": "iden3Id", "type": "uint256"},
            {"name": "ethereumAddress", "type": "address"},
        ],
    }


def _view(name: str, inputs: list[dict], outputs: list[dict]) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": inputs,
        "outputs": outputs,
    }


def _write(name: str, inputs: list[dict], outputs: list[dict] | None = None) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "nonpayable",
        "inputs": inputs,
        "outputs": outputs or [],
    }


STATE_ABI: list[dict] = [
    _view("getDefaultIdType", [], [{"name": "", "type": "bytes2"}]),
]

AUTH_VERIFIER_ABI: list[dict] = [
    _view(
        "getIdByAddress",
        [{"name": "sender", "type": "address"}],
        [{"name": "", "type": "uint256"}],
    ),
    _view(
        "authMethodExists",
        [{"name": "authMethod", "type": "string"}],
        [{"name": "", "type": "bool"}],
    ),
    _write(
        "submitResponse",
        [
            {
                "name": "authResponse",
                "type": "tuple",
                "components": [
                    {"name": "authMethod", "type": "string"},
                    {"name": "proof", "type": "bytes"},
                ],
            },
            {
                "name": "responses",
                "type": "tuple[]",
                "components": [
                    {"name": "requestId", "type": "uint256"},
                    {"name": "proof", "type": "bytes"},
                    {"name": "metadata", "type": "bytes"},
                ],
            },
            {"name": "crossChainProofs", "type": "bytes"},
        ],
    ),
]

SCHEMA_REGISTRY_ABI: list[dict] = [
    _view(
        "getSchema",
        [{"name": "uid", "type": "bytes32"}],
        [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "id", "type": "bytes32"},
                    {"name": "resolver", "type": "address"},
                    {"name": "revocable", "type": "bool"},
                    {"name": "schema", "type": "string"},
                ],
            }
        ],
    ),
]

ATTESTATION_COMPONENTS: list[dict] = [
    {"name": "id", "type": "bytes32"},
    {"name": "schemaId", "type": "bytes32"},
    _identity("attester"),
    _identity("recipient"),
    {"name": "time", "type": "uint64"},
    {"name": "expirationTime", "type": "uint64"},
    {"name": "revocationTime", "type": "uint64"},
    {"name": "revocable", "type": "bool"},
    {"name": "refId", "type": "bytes32"},
    {"name": "data", "type": "bytes"},
]

ATTESTATION_REQUEST_COMPONENTS: list[dict] = [
    {"name": "schemaId", "type": "bytes32"},
    _identity("attester"),
    _identity("recipient"),
    {"name": "expirationTime", "type": "uint64"},
    {"name": "revocable", "type": "bool"},
    {"name": "refId", "type": "bytes32"},
    {"name": "data", "type": "bytes"},
]

ATTESTATION_RECORDED_EVENT = "AttestationRecorded"
ATTESTATION_REVOKED_EVENT = "AttestationRevoked"

ATTESTATION_REGISTRY_ABI: list[dict] = [
    _write(
        "recordAttestation",
        [{"name": "request", "type": "tuple", "components": ATTESTATION_REQUEST_COMPONENTS}],
        [{"name": "", "type": "bytes32"}],
    ),
    _write("revokeAttestation", [{"name": "id", "type": "bytes32"}]),
    _view(
        "getAttestation",
        [{"name": "id", "type": "bytes32"}],
        [{"name": "", "type": "tuple", "components": ATTESTATION_COMPONENTS}],
    ),
    _view(
        "isAttestationValid",
        [{"name": "id", "type": "bytes32"}],
        [{"name": "", "type": "bool"}],
    ),
    {
        "type": "event",
        "name": ATTESTATION_RECORDED_EVENT,
        "anonymous": False,
        "inputs": [
            {"name": "id", "type": "bytes32", "indexed": True},
            {"name": "schemaId", "type": "bytes32", "indexed": True},
            {"name": "attesterIden3Id", "type": "uint256", "indexed": False},
            {"name": "recipientIden3Id", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": ATTESTATION_REVOKED_EVENT,
        "anonymous": False,
        "inputs": [
            {"name": "id", "type": "bytes32", "indexed": True},
            {"name": "revoker", "type": "address", "indexed": True},
        ],
    },
]


def event_abis(abi: list[dict]) -> list[dict]:
    return [item for item in abi if item.get("type") == "event"]
