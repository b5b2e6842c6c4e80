"""Parser for A1111-style ``parameters`` blobs.

The format is free text: the positive prompt, an optional line starting with
``Negative prompt:``, then a flat ``Key: value, Key: value`` settings list on
the last line.
"""

from __future__ import annotations

from weightdex.constants.metadata import (
    A1111_SIGNATURE_PATTERN,
    NEGATIVE_PROMPT_MARKER,
    PRINTABLE_RUN_PATTERN,
    SETTINGS_START_PATTERN,
)
from weightdex.model import A1111Parameters


def parse_a1111_parameters(text: str) -> A1111Parameters:
    """Split a parameter blob into positive prompt, negative prompt, and settings."""
    joined = text.replace("\r", "")
    marker_index = joined.find(NEGATIVE_PROMPT_MARKER)
    if marker_index < 0:
        return A1111Parameters(positive=joined.strip())

    positive = joined[:marker_index].strip()
    after_marker = joined[marker_index + len(NEGATIVE_PROMPT_MARKER) :]

    settings_match = SETTINGS_START_PATTERN.search(after_marker)
    if settings_match is None:
        return A1111Parameters(positive=positive, negative=after_marker.strip())

    negative = after_marker[: settings_match.start()].strip()
    tail = after_marker[settings_match.start() :].strip()
    # Wrapped tails keep the flat settings list on their last line.
    last_line = tail.split("\n")[-1]
    return A1111Parameters(positive=positive, negative=negative, settings=tokenize_settings(last_line))


def tokenize_settings(line: str) -> dict[str, str]:
    """Parse ``Key: value`` pairs separated by commas outside parentheses."""
    tokens: list[str] = []
    current: list[str] = []
    depth = 0
    for char in line:
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        if char == "," and depth == 0:
            tokens.append("".join(current))
            current = []
        else:
            current.append(char)
    tokens.append("".join(current))

    settings: dict[str, str] = {}
    for token in tokens:
        key, separator, value = token.partition(":")
        if not separator:
            continue
        key = key.strip()
        if not key:
            continue
        settings[key] = value.strip()
    return settings


def looks_like_a1111(text: str) -> bool:
    """Whether *text* carries an A1111 signature token."""
    return A1111_SIGNATURE_PATTERN.search(text) is not None


def find_a1111_block(text: str) -> str | None:
    """Return the printable run around the first A1111 signature in *text*.

    Used on whole decoded buffers, where the parameter block sits between
    stretches of binary noise.
    """
    match = A1111_SIGNATURE_PATTERN.search(text)
    if match is None:
        return None
    for run in PRINTABLE_RUN_PATTERN.finditer(text):
        if run.start() <= match.start() < run.end():
            return run.group().strip()
    return None
