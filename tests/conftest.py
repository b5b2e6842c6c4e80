"""Shared pytest fixtures for synthetic images and model libraries."""

from __future__ import annotations

import io
import zlib
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo

EXIF_IMAGE_DESCRIPTION = 0x010E
EXIF_SOFTWARE = 0x0131

type ImageFactory = Callable[..., bytes]


def png_chunk(chunk_type: bytes, data: bytes) -> bytes:
    """Encode one PNG chunk with a valid CRC."""
    crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    return len(data).to_bytes(4, "big") + chunk_type + data + crc.to_bytes(4, "big")


def insert_jpeg_comments(data: bytes, comments: Iterable[bytes | str]) -> bytes:
    """Insert COM segments right after the start-of-image marker."""
    segments = b""
    for comment in comments:
        payload = comment.encode("utf-8") if isinstance(comment, str) else comment
        segments += b"\xff\xfe" + (len(payload) + 2).to_bytes(2, "big") + payload
    return data[:2] + segments + data[2:]


@pytest.fixture()
def build_png_chunk() -> Callable[[bytes, bytes], bytes]:
    """Return the raw PNG chunk encoder."""
    return png_chunk


@pytest.fixture()
def make_png() -> ImageFactory:
    """Return a builder for real PNG files carrying text chunks."""

    def _make(
        text: Iterable[tuple[str, str]] = (),
        *,
        compressed: Iterable[tuple[str, str]] = (),
        international: Iterable[tuple[str, str]] = (),
    ) -> bytes:
        info = PngInfo()
        for key, value in text:
            info.add_text(key, value)
        for key, value in compressed:
            info.add_text(key, value, zip=True)
        for key, value in international:
            info.add_itxt(key, value)
        buffer = io.BytesIO()
        Image.new("RGB", (4, 4), "white").save(buffer, format="PNG", pnginfo=info)
        return buffer.getvalue()

    return _make


@pytest.fixture()
def make_jpeg() -> ImageFactory:
    """Return a builder for real JPEG (or WEBP) files with EXIF tags and COM segments."""

    def _make(
        *,
        description: str | None = None,
        software: str | None = None,
        comments: Iterable[bytes | str] = (),
        image_format: str = "JPEG",
    ) -> bytes:
        exif = Image.Exif()
        if description is not None:
            exif[EXIF_IMAGE_DESCRIPTION] = description
        if software is not None:
            exif[EXIF_SOFTWARE] = software
        buffer = io.BytesIO()
        image = Image.new("RGB", (8, 8), "gray")
        if len(exif):
            image.save(buffer, format=image_format, exif=exif.tobytes())
        else:
            image.save(buffer, format=image_format)
        data = buffer.getvalue()
        comments = list(comments)
        return insert_jpeg_comments(data, comments) if comments else data

    return _make


@pytest.fixture()
def model_library(tmp_path: Path) -> Path:
    """Create a small library of weight files plus a non-matching file."""
    root = tmp_path / "models"
    (root / "checkpoints").mkdir(parents=True)
    (root / "loras" / "style").mkdir(parents=True)
    (root / "checkpoints" / "base.safetensors").write_bytes(b"base-weights" * 64)
    (root / "loras" / "style" / "ink.safetensors").write_bytes(b"ink-lora")
    (root / "loras" / "legacy.ckpt").write_bytes(b"legacy")
    (root / "loras" / "notes.txt").write_text("not a model", encoding="utf-8")
    return root
