"""Unit tests for input validation and checked arithmetic."""

import pytest

from blindbid.utils.validation import (
    MAX_UINT256,
    checked_add,
    checked_sub,
    validate_address,
    validate_amount,
    validate_bytes,
    validate_flag,
    validate_hash,
    validate_hex_string,
    validate_secret,
)


class TestBytes:
    def test_accepts_bytes_and_bytearray(self):
        assert validate_bytes(b"abc", "data") == (True, "")
        assert validate_bytes(bytearray(b"abc"), "data")[0]

    def test_rejects_str(self):
        ok, err = validate_bytes("abc", "data")
        assert not ok
        assert "must be bytes" in err

    def test_length_checks(self):
        assert not validate_address(b"\x00" * 19)[0]
        assert validate_address(b"\x00" * 20)[0]
        assert not validate_hash(b"\x00" * 33)[0]
        assert validate_secret(b"")[0]
        assert not validate_secret(b"\x00" * 1025)[0]
        assert validate_secret(b"\x00" * 64, max_length=64)[0]


class TestAmounts:
    @pytest.mark.parametrize("value", [0, 1, MAX_UINT256])
    def test_valid(self, value):
        assert validate_amount(value)[0]

    @pytest.mark.parametrize("value", [-1, MAX_UINT256 + 1, 1.5, "10", True, None])
    def test_invalid(self, value):
        assert not validate_amount(value)[0]

    def test_error_names_field(self):
        ok, err = validate_amount(-5, "values[2]")
        assert not ok
        assert err.startswith("values[2]")


class TestFlags:
    def test_flag_requires_bool(self):
        assert validate_flag(False, "fake")[0]
        assert not validate_flag(0, "fake")[0]


class TestHexString:
    def test_valid(self):
        assert validate_hex_string("0xdeadbeef", "secret")[0]
        assert validate_hex_string("deadbeef", "secret", expected_bytes=4)[0]

    @pytest.mark.parametrize("value", ["0xabc", "0xzz", 123])
    def test_invalid(self, value):
        assert not validate_hex_string(value, "secret")[0]

    def test_wrong_size(self):
        assert not validate_hex_string("0xdead", "secret", expected_bytes=4)[0]


class TestCheckedArithmetic:
    def test_add(self):
        assert checked_add(1, 2) == 3
        assert checked_add(MAX_UINT256, 0) == MAX_UINT256
        assert checked_add(MAX_UINT256, 1) is None
        assert checked_add(5, 6, limit=10) is None

    def test_sub(self):
        assert checked_sub(5, 5) == 0
        assert checked_sub(4, 5) is None
