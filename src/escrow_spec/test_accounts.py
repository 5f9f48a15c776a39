"""Deterministic test accounts.

Each address is the first 20 bytes of blake3(name), so fixtures stay stable
across runs and machines.
"""

from __future__ import annotations

from blake3 import blake3

from .config import ADDRESS_LEN

NAMES = ["Deployer", "Alice", "Bob", "Carol", "Dave", "Eve", "Frank"]


def derive_address(name: str) -> bytes:
    return blake3(name.lower().encode()).digest()[:ADDRESS_LEN]


# Named constants mirroring the roles used throughout the escrow tests.
DEPLOYER = derive_address("Deployer")
ALICE = derive_address("Alice")
BOB = derive_address("Bob")
CAROL = derive_address("Carol")
DAVE = derive_address("Dave")
EVE = derive_address("Eve")
FRANK = derive_address("Frank")

ACCOUNTS: dict[str, bytes] = {name: derive_address(name) for name in NAMES}
