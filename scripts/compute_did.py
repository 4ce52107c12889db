"""Compute the iden3 DID for an on-chain subject ID (or the reverse).

Usage: python scripts/compute_did.py <subject_id | did>
Prints the DID for a decimal subject ID, or the subject ID for a DID.
"""

from __future__ import annotations

import sys

from zkattest.sdk.did import did_from_subject_id, subject_id_from_did


def main() -> int:
    if len(sys.argv) < 2:
        print("Usage: compute_did.py <subject_id | did>", file=sys.stderr)
        return 2
    value = sys.argv[1]
    try:
        if value.startswith("did:"):
            print(subject_id_from_did(value))
        else:
            print(did_from_subject_id(int(value)))
        return 0
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
