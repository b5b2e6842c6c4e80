"""JPEG comment segments and EXIF-like tags for JPEG and WEBP containers."""

from __future__ import annotations

import html
import io
import logging

from PIL import Image
from PIL.ExifTags import TAGS

from weightdex.constants.metadata import (
    EXIF_IFD_POINTER,
    JPEG_MARKER_COM,
    JPEG_MARKER_EOI,
    JPEG_MARKER_PREFIX,
    JPEG_MARKER_SOI,
    JPEG_MARKER_SOS,
    JPEG_SOI,
    JPEG_STANDALONE_MARKERS,
    RIFF_MAGIC,
    WEBP_MAGIC,
    XMP_DESCRIPTION_FIELD,
    XMP_DESCRIPTION_PATTERNS,
    XMP_INFO_KEY,
)
from weightdex.exceptions import TruncatedDataError
from weightdex.io import ByteReader
from weightdex.metadata.text import normalize_text
from weightdex.types import JsonScalar

logger = logging.getLogger(__name__)


def is_jpeg(data: bytes) -> bool:
    return data.startswith(JPEG_SOI)


def is_webp(data: bytes) -> bool:
    return data.startswith(RIFF_MAGIC) and data[8:12] == WEBP_MAGIC


def container_format(data: bytes) -> str:
    """Name the container sniffed from magic bytes, for diagnostics."""
    if is_jpeg(data):
        return "jpeg"
    if is_webp(data):
        return "webp"
    return "unknown"


def read_jpeg_comments(data: bytes) -> list[bytes]:
    """Return the payloads of JPEG ``COM`` segments preceding the image scan.

    Segments are walked marker by marker from the start-of-image; walking stops
    at start-of-scan, end-of-image, a malformed marker, or a truncated segment.
    Non-JPEG input yields no comments.
    """
    if not is_jpeg(data):
        return []

    comments: list[bytes] = []
    reader = ByteReader(data, len(JPEG_SOI))
    try:
        while not reader.at_end():
            if reader.read_u8() != JPEG_MARKER_PREFIX:
                break
            marker = reader.read_u8()
            while marker == JPEG_MARKER_PREFIX:
                marker = reader.read_u8()
            if marker in (JPEG_MARKER_SOS, JPEG_MARKER_EOI):
                break
            if marker == JPEG_MARKER_SOI or marker in JPEG_STANDALONE_MARKERS:
                continue
            length = reader.read_u16_be()
            if length < 2:
                break
            body = reader.read(length - 2)
            if marker == JPEG_MARKER_COM:
                comments.append(body)
    except TruncatedDataError as exc:
        logger.debug("JPEG segment stream truncated: %s", exc)
    return comments


def read_exif_tags(data: bytes) -> dict[str, JsonScalar]:
    """Read EXIF (IFD0 + Exif IFD) and XMP description tags by name.

    Values are flattened to JSON scalars; byte values go through charset
    guessing. Corrupt or absent tags yield an empty mapping.
    """
    tags: dict[str, JsonScalar] = {}
    try:
        with Image.open(io.BytesIO(data)) as image:
            exif = image.getexif()
            for tag_id, value in exif.items():
                if tag_id == EXIF_IFD_POINTER:
                    continue
                tags[_tag_name(tag_id)] = _flatten(value)
            for tag_id, value in exif.get_ifd(EXIF_IFD_POINTER).items():
                tags.setdefault(_tag_name(tag_id), _flatten(value))
            description = _xmp_description(image.info.get(XMP_INFO_KEY))
            if description:
                tags.setdefault(XMP_DESCRIPTION_FIELD, description)
    except Exception as exc:
        # Pillow raises a wide range of types on hostile input.
        logger.debug("No readable EXIF tags: %s", exc)
        return {}
    return tags


def _tag_name(tag_id: int) -> str:
    return TAGS.get(tag_id, str(tag_id))


def _flatten(value: object) -> JsonScalar:
    if value is None or isinstance(value, (str, bool, int, float)):
        return normalize_text(value) if isinstance(value, str) else value
    if isinstance(value, (bytes, bytearray, tuple, list)):
        return normalize_text(value)
    numerator = getattr(value, "numerator", None)
    denominator = getattr(value, "denominator", None)
    if numerator is not None and denominator:
        return float(numerator) / float(denominator)
    return normalize_text(str(value))


def _xmp_description(xmp: object) -> str:
    if not xmp:
        return ""
    text = normalize_text(xmp)
    for pattern in XMP_DESCRIPTION_PATTERNS:
        match = pattern.search(text)
        if match:
            return html.unescape(match.group(1)).strip()
    return ""
