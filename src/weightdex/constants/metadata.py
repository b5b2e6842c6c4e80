"""Constants for image container sniffing and generation metadata parsing."""

from __future__ import annotations

import re
from typing import Final

PNG_SIGNATURE: bytes = b"\x89PNG\r\n\x1a\n"
JPEG_SOI: bytes = b"\xff\xd8"
RIFF_MAGIC: bytes = b"RIFF"
WEBP_MAGIC: bytes = b"WEBP"

PNG_CHUNK_IEND: str = "IEND"
PNG_CHUNK_TEXT: str = "tEXt"
PNG_CHUNK_ZTXT: str = "zTXt"
PNG_CHUNK_ITXT: str = "iTXt"

JPEG_MARKER_PREFIX: int = 0xFF
JPEG_MARKER_COM: int = 0xFE
JPEG_MARKER_SOS: int = 0xDA
JPEG_MARKER_EOI: int = 0xD9
JPEG_MARKER_SOI: int = 0xD8
# Markers that carry no length field.
JPEG_STANDALONE_MARKERS: frozenset[int] = frozenset({0x01, *range(0xD0, 0xD8)})

TOOL_A1111: Final = "A1111"
TOOL_COMFYUI: Final = "ComfyUI"
TOOL_INVOKEAI: Final = "InvokeAI"
TOOL_NOVELAI: Final = "NovelAI"
TOOL_UNKNOWN: Final = "Unknown"
VALID_TOOLS: frozenset[str] = frozenset({TOOL_A1111, TOOL_COMFYUI, TOOL_INVOKEAI, TOOL_NOVELAI, TOOL_UNKNOWN})

COMFYUI_TEXT_KEYS: tuple[str, ...] = ("workflow", "ComfyUI", "sd-metadata")
A1111_TEXT_KEYS: tuple[str, ...] = ("parameters", "Parameters", "prompt")
NOVELAI_COMMENT_KEY: str = "Comment"
NOVELAI_MARKER: str = "NovelAI"
INVOKEAI_MARKER: str = "Invoke"
GENERIC_JSON_MARKER_KEYS: tuple[str, ...] = ("prompt", "parameters", "workflow")

# Ordered EXIF-like fields consulted after JPEG COM segments.
EXIF_CANDIDATE_FIELDS: tuple[str, ...] = (
    "UserComment",
    "ImageDescription",
    "Description",
    "Comment",
    "XPComment",
    "Software",
    "parameters",
)
EXIF_SOFTWARE_FIELD: str = "Software"

# EXIF UserComment values start with an 8-byte character code.
EXIF_CHARSET_PREFIXES: tuple[bytes, ...] = (
    b"ASCII\x00\x00\x00",
    b"UNICODE\x00",
    b"JIS\x00\x00\x00\x00\x00",
    b"\x00\x00\x00\x00\x00\x00\x00\x00",
)

UTF16_LE_BOM: bytes = b"\xff\xfe"
UTF16_BE_BOM: bytes = b"\xfe\xff"
ENCODING_SNIFF_BYTES: int = 256
# One side must hold this share of code units and dominate the other side.
UTF16_ZERO_MIN_SHARE: float = 0.25
UTF16_ZERO_DOMINANCE: int = 3

NEGATIVE_PROMPT_MARKER: str = "Negative prompt:"
SETTINGS_START_PATTERN: re.Pattern[str] = re.compile(
    r"\b(Steps|Sampler|CFG|Seed|Size|Model|Model hash)\b",
    re.IGNORECASE,
)
A1111_SIGNATURE_PATTERN: re.Pattern[str] = re.compile(
    r"Negative prompt:|\bSteps:\s*\d+|\bSampler:\s*[^\s,]+",
    re.IGNORECASE,
)
# Longest run of printable text around a signature hit in a decoded buffer.
PRINTABLE_RUN_PATTERN: re.Pattern[str] = re.compile(r"[^\x00-\x08\x0b\x0c\x0e-\x1f\ufffd]+")

JSON_PROMPT_KEYS: tuple[str, ...] = ("prompt", "positive")
JSON_NEGATIVE_KEYS: tuple[str, ...] = ("negative", "negative_prompt")
JSON_SETTINGS_KEY: str = "settings"

# Upper bound on inflated zTXt/iTXt payloads.
MAX_INFLATED_TEXT_BYTES: int = 16 * 1024 * 1024

EXIF_IFD_POINTER: int = 0x8769
XMP_INFO_KEY: str = "xmp"
XMP_DESCRIPTION_FIELD: str = "Description"
XMP_DESCRIPTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<dc:description\b[^>]*>.*?<rdf:li\b[^>]*>(.*?)</rdf:li>", re.DOTALL),
    re.compile(r"\bdc:description=\"([^\"]*)\""),
)

COM_SOURCE: str = "COM"
# Decodings tried, in order, by the whole-buffer sweep.
SWEEP_ENCODINGS: tuple[str, ...] = ("utf-8", "latin-1", "utf-16-le", "utf-16-be")
