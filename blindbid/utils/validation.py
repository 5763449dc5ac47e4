"""
Input Validation - Security-focused input sanitization.

Provides validation for all external inputs to prevent:
- Integer overflows (amounts are unsigned 256-bit)
- Invalid format attacks
- Resource exhaustion (oversized secrets)
"""

from typing import Any, Optional, Tuple

# =============================================================================
# Constants
# =============================================================================

MAX_UINT256 = 2**256 - 1

MAX_ADDRESS_SIZE = 20
MAX_HASH_SIZE = 32
MAX_SECRET_SIZE = 1024

MIN_AMOUNT = 0
MAX_AMOUNT = MAX_UINT256


# =============================================================================
# Validation Functions
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate bytes input.

    Args:
        data: Data to validate
        name: Field name for error messages
        expected_length: Exact expected length
        max_length: Maximum allowed length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if expected_length is not None and len(data) != expected_length:
        return False, f"{name} must be {expected_length} bytes, got {len(data)}"

    if max_length is not None and len(data) > max_length:
        return False, f"{name} exceeds max length {max_length}, got {len(data)}"

    return True, ""


def validate_address(address: Any, name: str = "participant") -> Tuple[bool, str]:
    """Validate a participant address."""
    return validate_bytes(address, name, expected_length=MAX_ADDRESS_SIZE)


def validate_hash(hash_value: Any, name: str = "hash") -> Tuple[bool, str]:
    """Validate a 32-byte hash value."""
    return validate_bytes(hash_value, name, expected_length=MAX_HASH_SIZE)


def validate_secret(secret: Any, max_length: int = MAX_SECRET_SIZE) -> Tuple[bool, str]:
    """Validate a commitment blinding secret."""
    return validate_bytes(secret, "secret", max_length=max_length)


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    bool is rejected even though it subclasses int.

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a currency amount (unsigned 256-bit)."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_flag(value: Any, name: str) -> Tuple[bool, str]:
    """Validate a strict boolean."""
    if not isinstance(value, bool):
        return False, f"{name} must be bool, got {type(value).__name__}"
    return True, ""


def validate_hex_string(value: Any, name: str, expected_bytes: Optional[int] = None) -> Tuple[bool, str]:
    """
    Validate a hex string (with or without 0x prefix).

    Args:
        value: Value to validate
        name: Field name
        expected_bytes: Expected byte length when decoded

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    hex_str = value[2:] if value.startswith("0x") else value

    if len(hex_str) % 2 != 0:
        return False, f"{name} has odd length, invalid hex"

    try:
        bytes.fromhex(hex_str)
    except ValueError:
        return False, f"{name} contains invalid hex characters"

    if expected_bytes is not None:
        actual_bytes = len(hex_str) // 2
        if actual_bytes != expected_bytes:
            return False, f"{name} must be {expected_bytes} bytes, got {actual_bytes}"

    return True, ""


# =============================================================================
# Checked Arithmetic
# =============================================================================


def checked_add(a: int, b: int, limit: int = MAX_UINT256) -> Optional[int]:
    """a + b, or None if the sum leaves [0, limit]."""
    total = a + b
    if total > limit:
        return None
    return total


def checked_sub(a: int, b: int) -> Optional[int]:
    """a - b, or None if the result would be negative."""
    if b > a:
        return None
    return a - b


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_bytes",
    "validate_address",
    "validate_hash",
    "validate_secret",
    "validate_integer",
    "validate_amount",
    "validate_flag",
    "validate_hex_string",
    "checked_add",
    "checked_sub",
    "MAX_UINT256",
    "MAX_ADDRESS_SIZE",
    "MAX_HASH_SIZE",
    "MAX_SECRET_SIZE",
]
