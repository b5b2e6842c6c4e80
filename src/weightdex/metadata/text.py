"""Charset guessing for text pulled out of binary image containers."""

from __future__ import annotations

import json

from weightdex.constants.metadata import (
    ENCODING_SNIFF_BYTES,
    EXIF_CHARSET_PREFIXES,
    UTF16_BE_BOM,
    UTF16_LE_BOM,
    UTF16_ZERO_DOMINANCE,
    UTF16_ZERO_MIN_SHARE,
)
from weightdex.types import JsonObject

_UNICODE_PREFIX = b"UNICODE\x00"


def normalize_text(value: object) -> str:
    """Return *value* as text with embedded NUL code points removed.

    Byte values carry no declared charset, so the encoding is guessed: a UTF-16
    byte-order mark wins, then a zero-byte parity heuristic, then UTF-8 with a
    Latin-1 fallback.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return _strip_nul(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return decode_bytes(bytes(value))
    if isinstance(value, (tuple, list)) and value and all(isinstance(item, int) and 0 <= item < 256 for item in value):
        return decode_bytes(bytes(value))
    return _strip_nul(str(value))


def decode_bytes(data: bytes) -> str:
    """Decode bytes of unknown charset."""
    utf16_hint = False
    for prefix in EXIF_CHARSET_PREFIXES:
        if data.startswith(prefix):
            utf16_hint = prefix == _UNICODE_PREFIX
            data = data[len(prefix) :]
            break

    if data.startswith(UTF16_LE_BOM):
        return _strip_nul(data[len(UTF16_LE_BOM) :].decode("utf-16-le", errors="ignore"))
    if data.startswith(UTF16_BE_BOM):
        return _strip_nul(data[len(UTF16_BE_BOM) :].decode("utf-16-be", errors="ignore"))

    guessed = guess_utf16_byte_order(data)
    if guessed is None and utf16_hint:
        # EXIF writers commonly emit "UNICODE" payloads in big-endian order.
        guessed = "utf-16-be"
    if guessed is not None:
        return _strip_nul(data.decode(guessed, errors="ignore"))

    try:
        return _strip_nul(data.decode("utf-8"))
    except UnicodeDecodeError:
        return _strip_nul(data.decode("latin-1"))


def guess_utf16_byte_order(data: bytes, *, sniff_bytes: int = ENCODING_SNIFF_BYTES) -> str | None:
    """Guess UTF-16 byte order from where zero bytes fall within 2-byte units.

    ASCII-range text in little-endian order zeroes the second byte of every
    unit; big-endian order zeroes the first. Returns a codec name or ``None``
    when neither side clearly dominates.
    """
    sample = data[:sniff_bytes]
    units = len(sample) // 2
    if units == 0:
        return None

    first_zeros = sum(1 for index in range(0, units * 2, 2) if sample[index] == 0)
    second_zeros = sum(1 for index in range(1, units * 2, 2) if sample[index] == 0)
    min_count = units * UTF16_ZERO_MIN_SHARE

    if second_zeros >= min_count and second_zeros > first_zeros * UTF16_ZERO_DOMINANCE:
        return "utf-16-le"
    if first_zeros >= min_count and first_zeros > second_zeros * UTF16_ZERO_DOMINANCE:
        return "utf-16-be"
    return None


def parse_json_object(text: str) -> JsonObject | None:
    """Parse *text* as JSON, returning it only when it is an object."""
    stripped = text.strip()
    if not stripped.startswith("{"):
        return None
    try:
        parsed = json.loads(stripped)
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _strip_nul(text: str) -> str:
    return text.replace("\x00", "")
