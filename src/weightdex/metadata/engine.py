"""Generation metadata extraction from raw image bytes.

``extract_metadata`` is total: whatever the input, it returns a
``GenerationMetadata`` whose ``tool`` is set, falling back to ``Unknown``.
"""

from __future__ import annotations

import logging

from weightdex.constants.metadata import (
    A1111_TEXT_KEYS,
    COM_SOURCE,
    COMFYUI_TEXT_KEYS,
    EXIF_CANDIDATE_FIELDS,
    EXIF_SOFTWARE_FIELD,
    GENERIC_JSON_MARKER_KEYS,
    INVOKEAI_MARKER,
    JSON_NEGATIVE_KEYS,
    JSON_PROMPT_KEYS,
    JSON_SETTINGS_KEY,
    NOVELAI_COMMENT_KEY,
    NOVELAI_MARKER,
    SWEEP_ENCODINGS,
    TOOL_A1111,
    TOOL_COMFYUI,
    TOOL_INVOKEAI,
    TOOL_NOVELAI,
    TOOL_UNKNOWN,
)
from weightdex.metadata.a1111 import find_a1111_block, looks_like_a1111, parse_a1111_parameters
from weightdex.metadata.jpeg import container_format, read_exif_tags, read_jpeg_comments
from weightdex.metadata.png import extract_png_text_blocks, is_png
from weightdex.metadata.text import normalize_text, parse_json_object
from weightdex.model import GenerationMetadata
from weightdex.types import GenerationTool, JsonObject, JsonValue

logger = logging.getLogger(__name__)


def extract_metadata(data: bytes | bytearray | memoryview) -> GenerationMetadata:
    """Map one image's bytes to normalized generation metadata. Never raises."""
    try:
        buffer = bytes(data)
        if is_png(buffer):
            return _extract_from_png(buffer)
        return _extract_from_tagged_image(buffer)
    except Exception as exc:
        logger.debug("Metadata extraction failed, reporting Unknown: %s", exc)
        return GenerationMetadata(tool=TOOL_UNKNOWN, raw={"error": f"{type(exc).__name__}: {exc}"})


def _extract_from_png(buffer: bytes) -> GenerationMetadata:
    text_blocks = extract_png_text_blocks(buffer)
    raw_text: JsonObject = {key: list(values) for key, values in text_blocks.items()}

    workflow = _first_value(text_blocks, COMFYUI_TEXT_KEYS)
    if workflow:
        parsed = parse_json_object(workflow)
        return GenerationMetadata(
            tool=TOOL_COMFYUI,
            raw={"format": "png", "workflow": parsed if parsed is not None else workflow, "text": raw_text},
        )

    parameters = _first_value(text_blocks, A1111_TEXT_KEYS)
    if parameters:
        parsed_parameters = parse_a1111_parameters(parameters)
        comment = _first_value(text_blocks, (NOVELAI_COMMENT_KEY,)) or ""
        return GenerationMetadata(
            tool=TOOL_NOVELAI if NOVELAI_MARKER in comment else TOOL_A1111,
            positive_prompt=parsed_parameters.positive,
            negative_prompt=parsed_parameters.negative,
            settings=dict(parsed_parameters.settings),
            raw={"format": "png", "parameters": parameters, "text": raw_text},
        )

    for key, values in text_blocks.items():
        for value in values:
            payload = parse_json_object(value)
            if payload is None or not any(payload.get(marker) for marker in GENERIC_JSON_MARKER_KEYS):
                continue
            return _from_json_payload(
                payload,
                tool=TOOL_UNKNOWN,
                raw={"format": "png", "key": key, "json": payload, "text": raw_text},
            )

    return GenerationMetadata(tool=TOOL_UNKNOWN, raw={"format": "png", "text": raw_text})


def _extract_from_tagged_image(buffer: bytes) -> GenerationMetadata:
    exif = read_exif_tags(buffer)
    comments = [normalize_text(comment) for comment in read_jpeg_comments(buffer)]
    software = normalize_text(exif.get(EXIF_SOFTWARE_FIELD))
    base_raw: JsonObject = {
        "format": container_format(buffer),
        "exif": dict(exif),
        "comments": list(comments),
    }

    candidates: list[tuple[str, str]] = [(COM_SOURCE, comment) for comment in comments if comment]
    for field in EXIF_CANDIDATE_FIELDS:
        value = normalize_text(exif.get(field))
        if value:
            candidates.append((field, value))

    for source, candidate in candidates:
        payload = parse_json_object(candidate)
        if payload is not None:
            if "workflow" in payload:
                tool: GenerationTool = TOOL_COMFYUI
            elif NOVELAI_MARKER in software:
                tool = TOOL_NOVELAI
            else:
                tool = TOOL_UNKNOWN
            return _from_json_payload(payload, tool=tool, raw={**base_raw, "source": source, "json": payload})

        if looks_like_a1111(candidate):
            from_exif_field = source != COM_SOURCE
            tool = TOOL_INVOKEAI if from_exif_field and INVOKEAI_MARKER in software else TOOL_A1111
            return _from_parameters(candidate, tool=tool, raw={**base_raw, "source": source, "parameters": candidate})

    swept = _sweep_buffer(buffer)
    if swept is not None:
        encoding, block = swept
        return _from_parameters(
            block,
            tool=TOOL_A1111,
            raw={**base_raw, "source": "sweep", "sweep_encoding": encoding, "parameters": block},
        )

    return GenerationMetadata(tool=TOOL_UNKNOWN, raw=base_raw)


def _sweep_buffer(buffer: bytes) -> tuple[str, str] | None:
    """Look for an A1111 block anywhere in the buffer under each candidate decoding."""
    for encoding in SWEEP_ENCODINGS:
        decoded = buffer.decode(encoding, errors="replace")
        block = find_a1111_block(decoded)
        if block:
            logger.debug("A1111 parameters found by %s buffer sweep", encoding)
            return encoding, block
    return None


def _from_parameters(text: str, *, tool: GenerationTool, raw: JsonObject) -> GenerationMetadata:
    parsed = parse_a1111_parameters(text)
    return GenerationMetadata(
        tool=tool,
        positive_prompt=parsed.positive,
        negative_prompt=parsed.negative,
        settings=dict(parsed.settings),
        raw=raw,
    )


def _from_json_payload(payload: JsonObject, *, tool: GenerationTool, raw: JsonObject) -> GenerationMetadata:
    settings_value = payload.get(JSON_SETTINGS_KEY)
    settings: dict[str, JsonValue] = dict(settings_value) if isinstance(settings_value, dict) else {}
    return GenerationMetadata(
        tool=tool,
        positive_prompt=_first_string(payload, JSON_PROMPT_KEYS),
        negative_prompt=_first_string(payload, JSON_NEGATIVE_KEYS),
        settings=settings,
        raw=raw,
    )


def _first_value(blocks: dict[str, list[str]], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        values = blocks.get(key)
        if values and values[0]:
            return values[0]
    return None


def _first_string(payload: JsonObject, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None
