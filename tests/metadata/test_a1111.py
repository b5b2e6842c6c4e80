"""Tests for the A1111-style parameter parser."""

from __future__ import annotations

import pytest

from weightdex.metadata import parse_a1111_parameters, tokenize_settings
from weightdex.metadata.a1111 import find_a1111_block, looks_like_a1111


def test_parses_prompts_and_settings() -> None:
    parsed = parse_a1111_parameters("a cat\nNegative prompt: blurry\nSteps: 20, Sampler: Euler a, Seed: 123")

    assert parsed.positive == "a cat"
    assert parsed.negative == "blurry"
    assert parsed.settings == {"Steps": "20", "Sampler": "Euler a", "Seed": "123"}


def test_commas_inside_parentheses_do_not_split_values() -> None:
    settings = tokenize_settings("Steps: 20, Size: (512, 768), Seed: 5")

    assert settings == {"Steps": "20", "Size": "(512, 768)", "Seed": "5"}


def test_nested_parentheses_stay_in_one_value() -> None:
    settings = tokenize_settings("Lora hashes: (a: (1, 2), b: 3), CFG scale: 7")

    assert settings == {"Lora hashes": "(a: (1, 2), b: 3)", "CFG scale": "7"}


def test_value_keeps_colons_after_the_first() -> None:
    assert tokenize_settings("Model hash: abc:def") == {"Model hash": "abc:def"}


@pytest.mark.parametrize("line", ["", "no pairs here", ", ,", ": orphan value"])
def test_tokens_without_a_key_are_discarded(line: str) -> None:
    assert tokenize_settings(line) == {}


def test_blob_without_negative_marker_is_all_positive() -> None:
    parsed = parse_a1111_parameters("  a castle on a hill\r\nat sunset  ")

    assert parsed.positive == "a castle on a hill\nat sunset"
    assert parsed.negative == ""
    assert parsed.settings == {}


def test_negative_prompt_without_settings() -> None:
    parsed = parse_a1111_parameters("portrait\nNegative prompt: lowres, bad hands")

    assert parsed.positive == "portrait"
    assert parsed.negative == "lowres, bad hands"
    assert parsed.settings == {}


def test_settings_are_read_from_the_last_line_of_a_wrapped_tail() -> None:
    text = "forest\nNegative prompt: text\nSteps: 30 extra notes\nSteps: 30, CFG scale: 6.5, Size: 640x960"

    parsed = parse_a1111_parameters(text)

    assert parsed.negative == "text"
    assert parsed.settings == {"Steps": "30", "CFG scale": "6.5", "Size": "640x960"}


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("a cat\nNegative prompt: dog", True),
        ("Steps: 25, Seed: 1", True),
        ("sampler: DDIM", True),
        ("Steps: many", False),
        ("just a caption", False),
    ],
)
def test_signature_detection(text: str, expected: bool) -> None:
    assert looks_like_a1111(text) is expected


def test_find_block_isolates_printable_run_around_signature() -> None:
    noisy = "\x00\x01garbage\x02a cat\nNegative prompt: blurry\nSteps: 20\x00\x00tail"

    assert find_a1111_block(noisy) == "a cat\nNegative prompt: blurry\nSteps: 20"
