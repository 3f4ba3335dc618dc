"""Data models for the exchange.

Shared wire types live in exchange.models.types; HTTP request/response
models live in exchange.models.api.
"""

from exchange.models.types import Address, Bytes, Bytes32, Uint256, normalize_address

__all__ = [
    "Address",
    "Bytes",
    "Bytes32",
    "Uint256",
    "normalize_address",
]
