"""Hashlock helpers for atomic swaps.

Secrets are arbitrary byte strings; the hashlock is their sha256 digest,
the same commitment Bitcoin HTLC scripts use, so one secret can lock
swaps on both sides of a cross-chain exchange.
"""

import hashlib
import hmac
import secrets

SECRET_SIZE = 32


def new_secret() -> bytes:
    """Generate a random 32-byte swap secret."""
    return secrets.token_bytes(SECRET_SIZE)


def hash_secret(secret: bytes) -> bytes:
    """Hashlock commitment for a secret."""
    return hashlib.sha256(secret).digest()


def verify_secret(secret: bytes, secret_hash: bytes) -> bool:
    """Check that secret opens the hashlock, in constant time."""
    return hmac.compare_digest(hash_secret(secret), secret_hash)
