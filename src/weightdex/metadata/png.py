"""PNG chunk stream and ancillary text chunk decoding."""

from __future__ import annotations

import logging
import zlib
from dataclasses import dataclass

from weightdex.constants.metadata import (
    MAX_INFLATED_TEXT_BYTES,
    PNG_CHUNK_IEND,
    PNG_CHUNK_ITXT,
    PNG_CHUNK_TEXT,
    PNG_CHUNK_ZTXT,
    PNG_SIGNATURE,
)
from weightdex.exceptions import TruncatedDataError
from weightdex.io import ByteReader
from weightdex.metadata.text import normalize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PngChunk:
    """One ``(type, data)`` record from a PNG chunk stream."""

    chunk_type: str
    data: bytes


@dataclass(frozen=True)
class PngTextEntry:
    """A decoded ``tEXt``/``zTXt``/``iTXt`` key/value pair."""

    key: str
    value: str


def is_png(data: bytes) -> bool:
    return data.startswith(PNG_SIGNATURE)


def read_png_chunks(data: bytes) -> list[PngChunk]:
    """Parse the chunk stream after the signature, stopping at ``IEND``.

    A chunk whose declared length runs past the buffer ends parsing; chunks
    decoded before it are returned.
    """
    chunks: list[PngChunk] = []
    reader = ByteReader(data)
    try:
        reader.skip(len(PNG_SIGNATURE))
    except TruncatedDataError:
        return chunks

    while reader.remaining >= 8:
        try:
            length = reader.read_u32_be()
            chunk_type = reader.read(4).decode("latin-1")
            body = reader.read(length)
        except TruncatedDataError as exc:
            logger.debug("PNG chunk stream truncated: %s", exc)
            break
        chunks.append(PngChunk(chunk_type=chunk_type, data=body))
        if chunk_type == PNG_CHUNK_IEND:
            break
        try:
            reader.skip(4)  # CRC
        except TruncatedDataError:
            break
    return chunks


def decode_text_chunk(chunk: PngChunk) -> PngTextEntry | None:
    """Decode an ancillary text chunk; other chunk types yield ``None``."""
    try:
        if chunk.chunk_type == PNG_CHUNK_TEXT:
            return _decode_text(chunk.data)
        if chunk.chunk_type == PNG_CHUNK_ZTXT:
            return _decode_ztxt(chunk.data)
        if chunk.chunk_type == PNG_CHUNK_ITXT:
            return _decode_itxt(chunk.data)
    except TruncatedDataError as exc:
        logger.debug("Malformed %s chunk: %s", chunk.chunk_type, exc)
    return None


def extract_png_text_blocks(data: bytes) -> dict[str, list[str]]:
    """Collect text chunk values by key, in chunk order."""
    blocks: dict[str, list[str]] = {}
    for chunk in read_png_chunks(data):
        entry = decode_text_chunk(chunk)
        if entry is not None:
            blocks.setdefault(entry.key, []).append(entry.value)
    return blocks


def _decode_text(data: bytes) -> PngTextEntry | None:
    reader = ByteReader(data)
    if reader.find(b"\x00") < 0:
        return None
    key = _decode_key(reader.read_until(b"\x00"))
    return PngTextEntry(key=key, value=normalize_text(reader.read_rest()))


def _decode_ztxt(data: bytes) -> PngTextEntry | None:
    reader = ByteReader(data)
    if reader.find(b"\x00") < 0:
        return None
    key = _decode_key(reader.read_until(b"\x00"))
    reader.skip(1)  # compression method
    if reader.at_end():
        return None
    inflated = _inflate(reader.read_rest())
    return PngTextEntry(key=key, value=normalize_text(inflated) if inflated is not None else "")


def _decode_itxt(data: bytes) -> PngTextEntry | None:
    reader = ByteReader(data)
    key = _decode_key(reader.read_until(b"\x00"))
    if not key:
        return None
    compressed = reader.read_u8() if not reader.at_end() else 0
    if not reader.at_end():
        reader.skip(1)  # compression method
    reader.read_until(b"\x00")  # language tag
    reader.read_until(b"\x00")  # translated keyword
    text = reader.read_rest()
    if compressed:
        inflated = _inflate(text)
        if inflated is not None:
            text = inflated
    return PngTextEntry(key=key, value=text.decode("utf-8", errors="replace").replace("\x00", ""))


def _decode_key(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _inflate(data: bytes) -> bytes | None:
    decompressor = zlib.decompressobj()
    try:
        return decompressor.decompress(data, MAX_INFLATED_TEXT_BYTES)
    except zlib.error as exc:
        logger.debug("Failed to inflate PNG text chunk: %s", exc)
        return None
