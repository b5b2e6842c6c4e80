"""Bounds-checked cursor over an immutable byte buffer."""

from __future__ import annotations

from weightdex.exceptions import TruncatedDataError


class ByteReader:
    """Sequential reader whose every read is checked against the buffer end.

    Reads never return short data: running past the end raises
    ``TruncatedDataError`` and leaves the cursor where it was, so callers can
    stop parsing and keep whatever they decoded so far.
    """

    __slots__ = ("_data", "_offset")

    def __init__(self, data: bytes | bytearray | memoryview, offset: int = 0) -> None:
        self._data = bytes(data)
        if offset < 0 or offset > len(self._data):
            raise TruncatedDataError(f"Start offset {offset} outside buffer of {len(self._data)} bytes")
        self._offset = offset

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def _require(self, count: int) -> None:
        if count < 0 or count > self.remaining:
            raise TruncatedDataError(
                f"Need {count} bytes at offset {self._offset}, only {self.remaining} available"
            )

    def read(self, count: int) -> bytes:
        self._require(count)
        start = self._offset
        self._offset += count
        return self._data[start : self._offset]

    def skip(self, count: int) -> None:
        self._require(count)
        self._offset += count

    def read_u8(self) -> int:
        return self.read(1)[0]

    def read_u16_be(self) -> int:
        return int.from_bytes(self.read(2), "big")

    def read_u32_be(self) -> int:
        return int.from_bytes(self.read(4), "big")

    def read_until(self, delimiter: bytes = b"\x00") -> bytes:
        """Read up to *delimiter* and consume it; without one, read to the end."""
        index = self._data.find(delimiter, self._offset)
        if index < 0:
            return self.read_rest()
        value = self._data[self._offset : index]
        self._offset = index + len(delimiter)
        return value

    def read_rest(self) -> bytes:
        return self.read(self.remaining)

    def find(self, needle: bytes) -> int:
        """Return the absolute offset of *needle* at or after the cursor, or -1."""
        return self._data.find(needle, self._offset)
