"""ABI encodings used by the attestation flows.

Covers attestation payloads (review, ownership), the authV2 challenge
and the packed Groth16 proof layout expected by the AuthVerifier.
"""

from __future__ import annotations

import re
from typing import Sequence

from eth_abi import decode, encode
from eth_utils import keccak, to_checksum_address

from zkattest.sdk.errors import InvalidSchemaFormat


REVIEW_DATA_TYPES = ["uint8", "string"]
OWNERSHIP_DATA_TYPES = ["bytes"]
PROOF_TYPES = ["uint256[]", "uint256[2]", "uint256[2][2]", "uint256[2]"]

# authV2 challenges must fit the BN254 scalar field
CHALLENGE_MASK = (1 << 248) - 1

_BYTES32_HEX = re.compile(r"^0x[0-9a-fA-F]{64}$")


def is_bytes32_hex(value: str) -> bool:
    return bool(_BYTES32_HEX.match(value or ""))


def validate_schema_id(schema_id: str) -> str:
    """Validate 0x-prefixed 32-byte hex schema ID format."""
    if not is_bytes32_hex(schema_id):
        raise InvalidSchemaFormat(schema_id)
    return schema_id


def encode_review_data(stars: int, comment: str) -> bytes:
    """Encode a review payload as (uint8 stars, string comment)."""
    if not 0 <= stars <= 255:
        raise ValueError("Stars must fit in uint8")
    return encode(REVIEW_DATA_TYPES, [stars, comment])


def decode_review_data(data: bytes) -> tuple[int, str]:
    stars, comment = decode(REVIEW_DATA_TYPES, data)
    return stars, comment


def encode_ownership_data(proof: bytes = b"") -> bytes:
    """Encode an ownership payload as a single bytes field."""
    return encode(OWNERSHIP_DATA_TYPES, [proof])


def decode_ownership_data(data: bytes) -> bytes:
    (proof,) = decode(OWNERSHIP_DATA_TYPES, data)
    return proof


def calc_challenge_auth_v2(sender: str, additional_senders: Sequence[str] = ()) -> int:
    """Challenge binding an authV2 proof to the submitting address(es)."""
    addresses = [to_checksum_address(a) for a in additional_senders]
    digest = keccak(encode(["address", "address[]"], [to_checksum_address(sender), addresses]))
    return int.from_bytes(digest, "big") & CHALLENGE_MASK


def prepare_zkp_proof(
    pi_a: Sequence[str], pi_b: Sequence[Sequence[str]], pi_c: Sequence[str]
) -> tuple[list[int], list[list[int]], list[int]]:
    """Convert snarkjs proof points to the verifier's (a, b, c) layout.

    snarkjs emits projective coordinates; the trailing element of each point
    is dropped and the G2 coordinate pairs are swapped.
    """
    a = [int(v) for v in pi_a[:2]]
    b = [
        [int(pi_b[0][1]), int(pi_b[0][0])],
        [int(pi_b[1][1]), int(pi_b[1][0])],
    ]
    c = [int(v) for v in pi_c[:2]]
    return a, b, c


def pack_zkp_proof(inputs: Sequence[str | int], a: list[int], b: list[list[int]], c: list[int]) -> bytes:
    """ABI-encode public inputs and proof points for submitResponse."""
    return encode(PROOF_TYPES, [[int(v) for v in inputs], a, b, c])
