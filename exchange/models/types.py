"""Shared type definitions for exchange models.

Identities and token addresses are 20-byte hex addresses; amounts are
uint256 values carried as decimal strings on the wire.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from exchange.constants import UINT256_MAX


def validate_uint256(value: Any) -> str:
    """Validate that a value is a valid uint256 decimal string.

    Args:
        value: Value to validate (string or int)

    Returns:
        Valid uint256 as decimal string

    Raises:
        ValueError: If value is not a valid non-negative integer within uint256 range
    """
    if isinstance(value, bool):
        raise ValueError("Uint256 must be string or int, got bool")

    if isinstance(value, int):
        int_value = value
    elif isinstance(value, str):
        try:
            int_value = int(value)
        except ValueError as err:
            raise ValueError(f"Uint256 must be a decimal integer string: '{value}'") from err
    else:
        raise ValueError(f"Uint256 must be string or int, got {type(value).__name__}")

    if int_value < 0:
        raise ValueError(f"Uint256 cannot be negative: {value}")
    if int_value > UINT256_MAX:
        raise ValueError(f"Uint256 overflow: {value} > 2^256-1")

    return str(int_value)


def validate_bytes32(value: Any) -> str:
    """Validate a 0x-prefixed 32-byte hex string and lowercase it."""
    if not isinstance(value, str) or not value.startswith("0x") or len(value) != 66:
        raise ValueError(f"Expected 0x-prefixed 32-byte hex string: {value!r}")
    try:
        bytes.fromhex(value[2:])
    except ValueError as err:
        raise ValueError(f"Invalid hex: {value!r}") from err
    return value.lower()


# 20-byte address (40 hex chars after 0x prefix)
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# 256-bit unsigned integer as decimal string (validated)
Uint256 = Annotated[
    str,
    BeforeValidator(validate_uint256),
    Field(description="256-bit unsigned integer as decimal string"),
]

# Arbitrary hex bytes (revealed secrets)
Bytes = Annotated[str, Field(pattern=r"^0x([a-fA-F0-9]{2})*$")]

# 32-byte hash (secret hashes, swap ids)
Bytes32 = Annotated[str, BeforeValidator(validate_bytes32)]


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an address to lowercase with 0x prefix.

    Args:
        address: An address (with or without 0x prefix)
        validate: If True, raises ValueError for invalid addresses

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and address is not a valid address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid 20-byte hex address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def hex_to_bytes(value: str) -> bytes:
    """Decode a 0x-prefixed hex string."""
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def bytes_to_hex(value: bytes) -> str:
    """Encode bytes as a 0x-prefixed lowercase hex string."""
    return "0x" + value.hex()
