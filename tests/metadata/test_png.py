"""Tests for PNG text chunk decoding and PNG tool detection."""

from __future__ import annotations

import json
import zlib
from collections.abc import Callable

from weightdex.constants.metadata import PNG_SIGNATURE
from weightdex.metadata import extract_metadata
from weightdex.metadata.png import PngChunk, decode_text_chunk, extract_png_text_blocks, read_png_chunks

PARAMETERS = "a cat\nNegative prompt: blurry\nSteps: 20, Sampler: Euler a, Seed: 123"


def test_a1111_parameters_round_trip(make_png: Callable[..., bytes]) -> None:
    metadata = extract_metadata(make_png([("parameters", PARAMETERS)]))

    assert metadata.tool == "A1111"
    assert metadata.positive_prompt == "a cat"
    assert metadata.negative_prompt == "blurry"
    assert metadata.settings == {"Steps": "20", "Sampler": "Euler a", "Seed": "123"}
    assert metadata.raw["format"] == "png"


def test_compressed_and_international_text_chunks_decode(make_png: Callable[..., bytes]) -> None:
    data = make_png(compressed=[("parameters", PARAMETERS)], international=[("Title", "黒猫")])

    blocks = extract_png_text_blocks(data)

    assert blocks["parameters"] == [PARAMETERS]
    assert blocks["Title"] == ["黒猫"]


def test_comfyui_workflow_wins_over_parameters(make_png: Callable[..., bytes]) -> None:
    workflow = {"nodes": [{"id": 1, "type": "KSampler"}]}
    data = make_png([("parameters", PARAMETERS), ("workflow", json.dumps(workflow))])

    metadata = extract_metadata(data)

    assert metadata.tool == "ComfyUI"
    assert metadata.raw["workflow"] == workflow


def test_unparseable_workflow_is_kept_as_text(make_png: Callable[..., bytes]) -> None:
    metadata = extract_metadata(make_png([("workflow", "{broken")]))

    assert metadata.tool == "ComfyUI"
    assert metadata.raw["workflow"] == "{broken"


def test_novelai_comment_marks_parameters_as_novelai(make_png: Callable[..., bytes]) -> None:
    data = make_png([("parameters", PARAMETERS), ("Comment", '{"source": "NovelAI Diffusion"}')])

    assert extract_metadata(data).tool == "NovelAI"


def test_generic_json_text_yields_unknown_with_prompt(make_png: Callable[..., bytes]) -> None:
    payload = {"prompt": "a fox", "negative_prompt": "rain", "settings": {"steps": 12}}
    data = make_png([("Description", json.dumps(payload))])

    metadata = extract_metadata(data)

    assert metadata.tool == "Unknown"
    assert metadata.positive_prompt == "a fox"
    assert metadata.negative_prompt == "rain"
    assert metadata.settings == {"steps": 12}


def test_png_without_text_is_unknown(make_png: Callable[..., bytes]) -> None:
    metadata = extract_metadata(make_png())

    assert metadata.tool == "Unknown"
    assert metadata.positive_prompt is None
    assert metadata.settings == {}


def test_truncated_chunk_keeps_chunks_before_it(build_png_chunk: Callable[[bytes, bytes], bytes]) -> None:
    good = build_png_chunk(b"tEXt", b"parameters\x00" + PARAMETERS.encode("latin-1"))
    truncated = (500).to_bytes(4, "big") + b"tEXt" + b"short"
    data = PNG_SIGNATURE + good + truncated

    chunks = read_png_chunks(data)

    assert [chunk.chunk_type for chunk in chunks] == ["tEXt"]
    assert extract_metadata(data).tool == "A1111"


def test_parsing_stops_at_iend(build_png_chunk: Callable[[bytes, bytes], bytes]) -> None:
    data = (
        PNG_SIGNATURE
        + build_png_chunk(b"IEND", b"")
        + build_png_chunk(b"tEXt", b"parameters\x00" + PARAMETERS.encode("latin-1"))
    )

    assert [chunk.chunk_type for chunk in read_png_chunks(data)] == ["IEND"]
    assert extract_metadata(data).tool == "Unknown"


def test_corrupt_ztxt_payload_decodes_to_empty_text() -> None:
    chunk = PngChunk(chunk_type="zTXt", data=b"parameters\x00\x00not-deflate-data")

    entry = decode_text_chunk(chunk)

    assert entry is not None
    assert entry.key == "parameters"
    assert entry.value == ""


def test_compressed_itxt_is_inflated() -> None:
    body = b"prompt\x00\x01\x00en\x00\x00" + zlib.compress("a heron".encode("utf-8"))

    entry = decode_text_chunk(PngChunk(chunk_type="iTXt", data=body))

    assert entry is not None
    assert (entry.key, entry.value) == ("prompt", "a heron")


def test_text_chunk_without_separator_is_ignored() -> None:
    assert decode_text_chunk(PngChunk(chunk_type="tEXt", data=b"no-separator")) is None
