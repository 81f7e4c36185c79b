"""Parsing utilities for hex words, addresses and fixed-point amounts."""

import re
from datetime import UTC, datetime

from stakewatch.helpers.constants import TOKEN_DECIMALS

WORD_HEX_LENGTH = 64
ADDRESS_HEX_LENGTH = 40
_ADDRESS_PADDING = "0" * (WORD_HEX_LENGTH - ADDRESS_HEX_LENGTH)

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")
_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_DECIMAL_RE = re.compile(r"^(-)?(\d+)(?:\.(\d+))?$")


def parse_hex_int(hex_value: str | None, default: int = 0) -> int:
    """Parse hex string to integer.

    Args:
        hex_value: Hex-encoded string or None
        default: Default value if hex_value is None, empty or a bare "0x"

    Returns:
        int: Parsed integer value

    Example:
        >>> parse_hex_int("0xff")
        255
        >>> parse_hex_int(None, 0)
        0
    """
    # Etherscan encodes zero as a bare "0x"
    if not hex_value or hex_value in ("0x", "0X"):
        return default
    return int(hex_value, 16)


def parse_hex_timestamp(hex_timestamp: str) -> datetime:
    """Parse Unix timestamp from hex string to datetime.

    Example:
        >>> parse_hex_timestamp("0x63a1b2c3")
        datetime.datetime(2022, 12, 20, ...)
    """
    return datetime.fromtimestamp(int(hex_timestamp, 16), tz=UTC)


def _strip_hex(value: str) -> str:
    if not isinstance(value, str) or not value.startswith(("0x", "0X")):
        msg = f"Expected 0x-prefixed hex string, got {value!r}"
        raise ValueError(msg)
    body = value[2:]
    if not _HEX_RE.match(body):
        msg = f"Invalid hex string: {value!r}"
        raise ValueError(msg)
    return body


def _word_body(word: str) -> str:
    body = _strip_hex(word)
    if len(body) != WORD_HEX_LENGTH:
        msg = f"Expected a 32-byte word, got {len(body) // 2} bytes"
        raise ValueError(msg)
    return body


def normalize_address(address: str) -> str:
    """Lower-case a 20-byte hex address.

    Raises:
        ValueError: If the value is not a 0x-prefixed 40 hex digit string
    """
    if not isinstance(address, str) or not _ADDRESS_RE.match(address):
        msg = f"Invalid address: {address!r}"
        raise ValueError(msg)
    return address.lower()


def decode_address_topic(topic: str) -> str:
    """Extract the address held in the low 20 bytes of a topic word.

    Example:
        >>> decode_address_topic("0x" + "0" * 24 + "ab" * 20)
        '0xabababababababababababababababababababab'
    """
    body = _word_body(topic)
    return "0x" + body[-ADDRESS_HEX_LENGTH:].lower()


def encode_address_topic(address: str) -> str:
    """Left-pad an address with 12 zero bytes into a topic word."""
    return "0x" + _ADDRESS_PADDING + normalize_address(address)[2:]


def decode_uint_topic(topic: str) -> int:
    """Interpret a full topic word as a big-endian unsigned integer."""
    return int(_word_body(topic), 16)


def encode_uint_topic(value: int) -> str:
    """Encode a non-negative integer as a 32-byte topic word.

    Example:
        >>> encode_uint_topic(7)[-4:]
        '0007'
    """
    if value < 0 or value >= 1 << 256:
        msg = f"Value out of uint256 range: {value}"
        raise ValueError(msg)
    return "0x" + format(value, f"0{WORD_HEX_LENGTH}x")


def split_data_words(data: str) -> list[int]:
    """Split a log's data blob into 32-byte slots decoded as unsigned ints.

    Raises:
        ValueError: If the blob is not hex or not a whole number of words
    """
    body = _strip_hex(data)
    if len(body) % WORD_HEX_LENGTH:
        msg = f"Data length {len(body) // 2} bytes is not a multiple of 32"
        raise ValueError(msg)
    return [
        int(body[i : i + WORD_HEX_LENGTH], 16)
        for i in range(0, len(body), WORD_HEX_LENGTH)
    ]


def format_units(value: int, decimals: int = TOKEN_DECIMALS) -> str:
    """Format an integer amount of base units as a decimal string.

    Uses integer arithmetic only. Trailing zeros of the fractional part are
    trimmed and an all-zero fraction is omitted.

    Example:
        >>> format_units(1_000_000_000_000_000_000)
        '1'
        >>> format_units(1_500_000_000_000_000_000)
        '1.5'
        >>> format_units(-25, 2)
        '-0.25'
    """
    sign = "-" if value < 0 else ""
    magnitude = -value if value < 0 else value
    if decimals == 0:
        return f"{sign}{magnitude}"

    base = 10**decimals
    integer, fraction = divmod(magnitude, base)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")

    if fraction_str:
        return f"{sign}{integer}.{fraction_str}"
    return f"{sign}{integer}"


def parse_units(text: str, decimals: int = TOKEN_DECIMALS) -> int:
    """Parse a decimal string into an integer amount of base units.

    Example:
        >>> parse_units("1.5")
        1500000000000000000

    Raises:
        ValueError: If the text is not a plain decimal or has too many
            fractional digits
    """
    match = _DECIMAL_RE.match(text.strip())
    if not match:
        msg = f"Invalid decimal amount: {text!r}"
        raise ValueError(msg)

    negative, integer, fraction = match.groups()
    fraction = fraction or ""
    if len(fraction) > decimals:
        msg = f"Amount {text!r} has more than {decimals} fractional digits"
        raise ValueError(msg)

    value = int(integer) * 10**decimals + int(fraction.ljust(decimals, "0") or "0")
    return -value if negative else value


def format_token_amount(value: int, decimals: int = TOKEN_DECIMALS, places: int = 2) -> str:
    """Format base units for display with thousands separators.

    The fraction is truncated to ``places`` digits, never rounded through a
    float.

    Example:
        >>> format_token_amount(1_234_567_891_000_000_000_000)
        '1,234.56'
    """
    sign = "-" if value < 0 else ""
    magnitude = -value if value < 0 else value
    integer, fraction = divmod(magnitude, 10**decimals)
    text = f"{sign}{integer:,}"
    if places > 0:
        digits = str(fraction).rjust(decimals, "0")[:places]
        text = f"{text}.{digits}"
    return text


__all__ = [
    "decode_address_topic",
    "decode_uint_topic",
    "encode_address_topic",
    "encode_uint_topic",
    "format_token_amount",
    "format_units",
    "normalize_address",
    "parse_hex_int",
    "parse_hex_timestamp",
    "parse_units",
    "split_data_words",
]
