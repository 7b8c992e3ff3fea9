from __future__ import annotations

import base58
from solders.keypair import Keypair

from .errors import ConfigError


def load_keypair(secret_b58: str, label: str = "PRIVATE_KEY") -> Keypair:
    """
    Accepts the two base58 forms wallets export:
    64 bytes (secret + public, Phantom/solana-keygen) or a 32-byte seed.
    """
    try:
        raw = base58.b58decode(secret_b58.strip())
    except ValueError as e:
        raise ConfigError(f"{label} is not valid base58: {e}") from e

    if len(raw) == 64:
        try:
            return Keypair.from_bytes(raw)
        except ValueError as e:
            raise ConfigError(f"{label} is not a valid ed25519 keypair: {e}") from e
    if len(raw) == 32:
        return Keypair.from_seed(raw)
    raise ConfigError(f"{label} must decode to 32 or 64 bytes, got {len(raw)}.")
