"""iden3 DID and subject ID conversion.

An iden3 ID is 31 bytes: 2-byte type (DID method byte, network flag byte),
27-byte genesis state and a 2-byte little-endian checksum of the preceding
29 bytes. On-chain it is the little-endian integer of those bytes; in a DID
it is base58btc encoded: did:iden3:<blockchain>:<network>:<base58 id>.
"""

from __future__ import annotations

import multibase


ID_LENGTH = 31
GENESIS_LENGTH = 27

DID_METHODS: dict[str, int] = {
    "iden3": 0x01,
    "polygonid": 0x02,
}

# (blockchain, network) -> network flag byte
NETWORK_FLAGS: dict[tuple[str, str], int] = {
    ("readonly", "none"): 0x00,
    ("polygon", "main"): 0x11,
    ("polygon", "mumbai"): 0x12,
    ("polygon", "amoy"): 0x13,
    ("billions", "main"): 0xB1,
    ("billions", "test"): 0xB2,
}


def id_type(method: str, blockchain: str, network: str) -> bytes:
    """Return the 2-byte ID type for a DID method and network."""
    if method not in DID_METHODS:
        raise ValueError(f"Unsupported DID method: {method}")
    try:
        flag = NETWORK_FLAGS[(blockchain, network)]
    except KeyError:
        raise ValueError(f"Unsupported network: {blockchain}:{network}")
    return bytes([DID_METHODS[method], flag])


def build_id(type_bytes: bytes, genesis: bytes) -> bytes:
    """Assemble a 31-byte iden3 ID from type and genesis state."""
    if len(type_bytes) != 2:
        raise ValueError("ID type must be 2 bytes")
    if len(genesis) != GENESIS_LENGTH:
        raise ValueError(f"Genesis state must be {GENESIS_LENGTH} bytes")
    body = type_bytes + genesis
    return body + _checksum(body)


def subject_id_from_bytes(id_bytes: bytes) -> int:
    return int.from_bytes(id_bytes, "little")


def subject_id_to_bytes(subject_id: int) -> bytes:
    if subject_id <= 0 or subject_id.bit_length() > ID_LENGTH * 8:
        raise ValueError(f"Subject ID out of range: {subject_id}")
    return subject_id.to_bytes(ID_LENGTH, "little")


def did_from_subject_id(subject_id: int) -> str:
    """Derive the DID string for an on-chain subject ID."""
    id_bytes = subject_id_to_bytes(subject_id)
    if _checksum(id_bytes[:-2]) != id_bytes[-2:]:
        raise ValueError(f"Subject ID {subject_id} has an invalid checksum")

    method = _lookup(DID_METHODS, id_bytes[0], "DID method")
    blockchain, network = _lookup(NETWORK_FLAGS, id_bytes[1], "network flag")
    return f"did:{method}:{blockchain}:{network}:{_base58(id_bytes)}"


def subject_id_from_did(did: str) -> int:
    """Parse the subject ID out of an iden3 DID string."""
    parts = did.split(":")
    if len(parts) != 5 or parts[0] != "did":
        raise ValueError(f"Invalid iden3 DID: {did}")
    id_bytes = multibase.decode("z" + parts[4])
    if len(id_bytes) != ID_LENGTH or _checksum(id_bytes[:-2]) != id_bytes[-2:]:
        raise ValueError(f"Invalid iden3 ID in DID: {did}")
    if id_bytes[:2] != id_type(parts[1], parts[2], parts[3]):
        raise ValueError(f"DID prefix does not match ID type: {did}")
    return subject_id_from_bytes(id_bytes)


def _checksum(body: bytes) -> bytes:
    return (sum(body) & 0xFFFF).to_bytes(2, "little")


def _base58(data: bytes) -> str:
    # multibase prefixes base58btc output with "z"
    return multibase.encode("base58btc", data).decode("utf-8")[1:]


def _lookup(table: dict, value: int, what: str):
    for key, code in table.items():
        if code == value:
            return key
    raise ValueError(f"Unknown {what}: {value:#04x}")
