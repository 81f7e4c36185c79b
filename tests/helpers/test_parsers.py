"""Tests for hex, address and fixed-point parsing helpers."""

import pytest

from stakewatch.helpers.parsers import (
    decode_address_topic,
    decode_uint_topic,
    encode_address_topic,
    encode_uint_topic,
    format_token_amount,
    format_units,
    normalize_address,
    parse_hex_int,
    parse_hex_timestamp,
    parse_units,
    split_data_words,
)


class TestParseHexInt:
    """Tests for parse_hex_int function."""

    def test_parses_hex(self) -> None:
        """Test parsing a plain hex value."""
        assert parse_hex_int("0xff") == 255

    def test_none_returns_default(self) -> None:
        """Test None falls back to the default."""
        assert parse_hex_int(None, 7) == 7

    def test_bare_prefix_is_zero(self) -> None:
        """Test a bare 0x (as Etherscan encodes zero) gives the default."""
        assert parse_hex_int("0x") == 0

    def test_parse_hex_timestamp(self) -> None:
        """Test hex timestamps become aware UTC datetimes."""
        moment = parse_hex_timestamp(hex(1_700_000_000))
        assert moment.year == 2023
        assert moment.tzinfo is not None


class TestAddressTopics:
    """Tests for address topic encoding and decoding."""

    @pytest.mark.parametrize(
        "address",
        [
            "0x0000000000000000000000000000000000000000",
            "0xffffffffffffffffffffffffffffffffffffffff",
            "0x28c6c06298d514db089934071355e5743bf21d60",
            "0x" + "a1" * 20,
        ],
    )
    def test_decode_then_encode_reproduces_word(self, address: str) -> None:
        """Test decoding a padded address word and re-encoding gives it back."""
        word = "0x" + "0" * 24 + address[2:]
        assert encode_address_topic(decode_address_topic(word)) == word

    def test_decode_lower_cases(self) -> None:
        """Test decoded addresses are lower case."""
        word = "0x" + "0" * 24 + "AB" * 20
        assert decode_address_topic(word) == "0x" + "ab" * 20

    def test_decode_rejects_short_word(self) -> None:
        """Test a topic shorter than 32 bytes is rejected."""
        with pytest.raises(ValueError, match="32-byte word"):
            decode_address_topic("0x" + "ab" * 20)

    def test_decode_rejects_non_hex(self) -> None:
        """Test non-hex characters are rejected."""
        with pytest.raises(ValueError, match="Invalid hex"):
            decode_address_topic("0x" + "zz" * 32)

    def test_encode_rejects_invalid_address(self) -> None:
        """Test encoding validates the address first."""
        with pytest.raises(ValueError, match="Invalid address"):
            encode_address_topic("0x1234")

    def test_normalize_address(self) -> None:
        """Test normalize_address lower-cases valid addresses."""
        assert normalize_address("0x" + "AB" * 20) == "0x" + "ab" * 20


class TestUintTopics:
    """Tests for integer topic words."""

    def test_round_trip(self) -> None:
        """Test encoding then decoding an integer topic."""
        assert decode_uint_topic(encode_uint_topic(123)) == 123

    def test_encode_pads_to_word(self) -> None:
        """Test encoded topics are full 32-byte words."""
        assert len(encode_uint_topic(7)) == 66

    def test_encode_rejects_negative(self) -> None:
        """Test negative values are rejected."""
        with pytest.raises(ValueError, match="uint256"):
            encode_uint_topic(-1)


class TestSplitDataWords:
    """Tests for split_data_words function."""

    def test_splits_words(self) -> None:
        """Test a two-word blob decodes to two integers."""
        data = "0x" + format(5, "064x") + format(6, "064x")
        assert split_data_words(data) == [5, 6]

    def test_empty_blob(self) -> None:
        """Test an empty blob has no words."""
        assert split_data_words("0x") == []

    def test_rejects_partial_word(self) -> None:
        """Test data shorter than a word is rejected."""
        with pytest.raises(ValueError, match="multiple of 32"):
            split_data_words("0x" + "00" * 16)


class TestFormatUnits:
    """Tests for format_units and parse_units."""

    @pytest.mark.parametrize(
        "value",
        [
            0,
            1,
            10**18,
            15 * 10**17,
            2**53 + 1,
            2**64 + 12345,
            123_456_789_012_345_678_901_234_567_890,
        ],
    )
    def test_round_trip_is_exact(self, value: int) -> None:
        """Test formatting then parsing reconstructs the exact value."""
        assert parse_units(format_units(value)) == value

    def test_trims_trailing_zeros(self) -> None:
        """Test trailing fractional zeros are trimmed."""
        assert format_units(1_500_000_000_000_000_000) == "1.5"
        assert format_units(2 * 10**18) == "2"

    def test_negative(self) -> None:
        """Test negative amounts keep their sign."""
        assert format_units(-25, 2) == "-0.25"
        assert parse_units("-0.25", 2) == -25

    def test_zero_decimals(self) -> None:
        """Test zero-decimal formatting."""
        assert format_units(42, 0) == "42"

    def test_parse_rejects_too_many_digits(self) -> None:
        """Test parse_units refuses to drop precision."""
        with pytest.raises(ValueError, match="fractional digits"):
            parse_units("0.123", 2)

    def test_parse_rejects_garbage(self) -> None:
        """Test parse_units rejects non-decimal text."""
        with pytest.raises(ValueError, match="Invalid decimal"):
            parse_units("1e18")


class TestFormatTokenAmount:
    """Tests for format_token_amount function."""

    def test_thousands_and_truncation(self) -> None:
        """Test separators are added and the fraction truncated, not rounded."""
        assert format_token_amount(1_234_567_891_000_000_000_000) == "1,234.56"

    def test_zero(self) -> None:
        """Test zero renders with two places."""
        assert format_token_amount(0) == "0.00"

    def test_negative(self) -> None:
        """Test negative amounts."""
        assert format_token_amount(-5 * 10**17) == "-0.50"

    def test_no_places(self) -> None:
        """Test places=0 drops the fraction."""
        assert format_token_amount(10**21, places=0) == "1,000"
