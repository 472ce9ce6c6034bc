"""Tests for amount conversion, address checks and transfer validation."""

from decimal import Decimal

import pytest

from smartsend.errors import ValidationError
from smartsend.services.transfer_builder import (
    encode_transfer_call,
    is_valid_transfer,
    validate_transfer,
)
from smartsend.units import format_balance, format_units, is_valid_address, to_minor_units

RECIPIENT = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"

INVALID_ADDRESSES = [
    "not-an-address",
    "",
    "0x",
    "0x123",
    "d8dA6BF26964aF9D7eEd9e03E53415D37aA96045",    # no prefix
    "0xD8dA6BF26964aF9D7eEd9e03E53415D37aA96045",  # broken checksum
    "0x" + "g" * 40,
    "0x" + "a" * 41,
]

INVALID_AMOUNTS = ["0", "0.0", "0.000000", "-1", "-0.5", "", ".", "abc", "1e5", "1.2.3", "0.0000001", "1,5", "١٠", "５"]


class TestAddressValidation:
    """Tests for account address checks."""

    @pytest.mark.parametrize("address", [RECIPIENT, USDC_BASE, RECIPIENT.lower(), "0x" + "ab" * 20])
    def test_valid_addresses(self, address):
        assert is_valid_address(address)

    @pytest.mark.parametrize("address", INVALID_ADDRESSES)
    def test_invalid_addresses(self, address):
        assert not is_valid_address(address)


class TestMinorUnits:
    """Tests for decimal <-> minor unit conversion."""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            ("10.50", 10_500_000),
            ("1", 1_000_000),
            ("0.000001", 1),
            (".5", 500_000),
            ("5.", 5_000_000),
            ("1.1234560", 1_123_456),
            (" 2.5 ", 2_500_000),
        ],
    )
    def test_to_minor_units(self, amount, expected):
        assert to_minor_units(amount, 6) == expected

    def test_negative_amount_keeps_sign(self):
        assert to_minor_units("-1.5", 6) == -1_500_000

    def test_too_many_decimals_rejected(self):
        with pytest.raises(ValueError, match="Too many decimals"):
            to_minor_units("0.0000001", 6)

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError, match="out of range"):
            to_minor_units(str(2**256), 6)

    def test_non_string_rejected(self):
        with pytest.raises(ValueError):
            to_minor_units(10.5, 6)

    @pytest.mark.parametrize(
        "amount,expected",
        [(10_500_000, "10.5"), (1_000_000, "1.0"), (0, "0.0"), (1, "0.000001"), (123_456_789, "123.456789")],
    )
    def test_format_units(self, amount, expected):
        assert format_units(amount, 6) == expected

    def test_format_rejects_negative(self):
        with pytest.raises(ValueError):
            format_units(-1, 6)

    @pytest.mark.parametrize("amount", ["10.50", "0.000001", "1", "123456.789", "0.1", "999999999.999999"])
    def test_format_reads_back_user_amount(self, amount):
        """format() is the left inverse of the minor-unit conversion."""
        assert Decimal(format_units(to_minor_units(amount, 6), 6)) == Decimal(amount)

    def test_format_balance_fallbacks(self):
        assert format_balance(10_500_000, 6, "USDC") == "10.5 USDC"
        assert format_balance("2500000", 6, "USDC") == "2.5 USDC"
        assert format_balance(None, 6, "USDC") == "0.00 USDC"
        assert format_balance("garbage", 6, "USDC") == "0.00 USDC"


class TestTransferValidation:
    """Tests for is_valid_transfer."""

    def test_scenario_valid_request(self):
        """Valid address + "10.50" converts to 10500000 minor units."""
        assert is_valid_transfer(RECIPIENT, "10.50")
        assert validate_transfer(RECIPIENT, "10.50") == 10_500_000

    def test_scenario_invalid_address(self):
        assert not is_valid_transfer("not-an-address", "5")

    @pytest.mark.parametrize("address", INVALID_ADDRESSES)
    @pytest.mark.parametrize("amount", ["5", "10.50", "0.000001"])
    def test_invalid_address_fails_regardless_of_amount(self, address, amount):
        assert not is_valid_transfer(address, amount)

    @pytest.mark.parametrize("amount", INVALID_AMOUNTS)
    def test_invalid_amounts_fail(self, amount):
        assert not is_valid_transfer(RECIPIENT, amount)

    def test_validate_raises_validation_error(self):
        with pytest.raises(ValidationError):
            validate_transfer(RECIPIENT, "0")

    def test_missing_input(self):
        assert not is_valid_transfer("", "")
        assert not is_valid_transfer(RECIPIENT, "")


class TestTransferEncoding:
    """Tests for ERC-20 transfer call encoding."""

    def test_encode_transfer_call(self):
        data = encode_transfer_call(RECIPIENT, 10_500_000)

        assert len(data) == 4 + 32 + 32
        assert data[:4].hex() == "a9059cbb"
        assert data[4:36] == bytes(12) + bytes.fromhex(RECIPIENT[2:])
        assert int.from_bytes(data[36:], "big") == 10_500_000
