"""Read an attestation from the AttestationRegistry for debugging.

Usage: python scripts/read_attestation.py <attestation_id_hex>
Uses BILLIONS_TESTNET_RPC_URL and ATTESTATION_REGISTRY_CONTRACT_ADDRESS.
"""

from __future__ import annotations

import os
import sys

from web3 import Web3

from zkattest.contracts.abi import ATTESTATION_REGISTRY_ABI


def main() -> int:
    if len(sys.argv) < 2:
        print("Usage: read_attestation.py <attestation_id_hex>", file=sys.stderr)
        return 2
    att_id = bytes.fromhex(sys.argv[1].removeprefix("0x"))

    w3 = Web3(Web3.HTTPProvider(os.environ["BILLIONS_TESTNET_RPC_URL"]))
    registry = w3.eth.contract(
        address=Web3.to_checksum_address(os.environ["ATTESTATION_REGISTRY_CONTRACT_ADDRESS"]),
        abi=ATTESTATION_REGISTRY_ABI,
    )
    raw = registry.functions.getAttestation(att_id).call()
    valid = registry.functions.isAttestationValid(att_id).call()
    print(f"schema=0x{raw[1].hex()} attester={raw[2][0]} valid={valid} data_len={len(raw[9])}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
