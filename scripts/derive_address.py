"""Derive the signer address from env PRIVATE_KEY and print it."""

from __future__ import annotations

import os

from eth_account import Account


def main() -> int:
    print(Account.from_key(os.environ["PRIVATE_KEY"]).address)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
