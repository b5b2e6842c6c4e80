"""Generation metadata extraction for preview images."""

from .a1111 import parse_a1111_parameters, tokenize_settings
from .engine import extract_metadata
from .text import normalize_text

__all__ = ["extract_metadata", "normalize_text", "parse_a1111_parameters", "tokenize_settings"]
