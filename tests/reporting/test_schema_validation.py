"""Tests for JSON Schema validation of the cache document and scan summary."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import pytest

from weightdex.model import ScanErrorDetail, ScanSummary
from weightdex.scanner import ScanOrchestrator
from weightdex.scanner.store import InMemoryRecordStore

SCHEMAS_DIR: Path = Path(__file__).resolve().parents[2] / "schemas"
CACHE_SCHEMA_PATH: Path = SCHEMAS_DIR / "cache.schema.json"
SUMMARY_SCHEMA_PATH: Path = SCHEMAS_DIR / "summary.schema.json"


def _load_schema(path: Path) -> dict[str, Any]:
    """Load a JSON Schema file from disk."""
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture()
def cache_schema() -> dict[str, Any]:
    """Load the cache JSON Schema."""
    return _load_schema(CACHE_SCHEMA_PATH)


@pytest.fixture()
def summary_schema() -> dict[str, Any]:
    """Load the summary JSON Schema."""
    return _load_schema(SUMMARY_SCHEMA_PATH)


def test_schemas_are_valid_draft_2020_12(cache_schema: dict[str, Any], summary_schema: dict[str, Any]) -> None:
    jsonschema.Draft202012Validator.check_schema(cache_schema)
    jsonschema.Draft202012Validator.check_schema(summary_schema)


def test_persisted_cache_matches_schema(model_library: Path, tmp_path: Path, cache_schema: dict[str, Any]) -> None:
    cache_path = tmp_path / "cache.json"

    ScanOrchestrator(InMemoryRecordStore(), cache_path=cache_path).scan([model_library])

    document = json.loads(cache_path.read_text(encoding="utf-8"))
    jsonschema.validate(document, cache_schema)
    assert len(document["files"]) == 3


def test_scan_summary_matches_schema(
    model_library: Path, tmp_path: Path, summary_schema: dict[str, Any]
) -> None:
    summary = ScanOrchestrator(InMemoryRecordStore()).scan([model_library, tmp_path / "missing"])

    jsonschema.validate(summary.to_dict(), summary_schema)
    assert summary.to_dict()["error_details"][0]["kind"] == "enumeration"


def test_summary_with_unknown_error_kind_is_rejected(summary_schema: dict[str, Any]) -> None:
    summary = ScanSummary(
        processed=0,
        skipped=0,
        total_candidates=1,
        errors=1,
        error_details=(ScanErrorDetail(path="/x", message="boom", kind="cosmic-ray"),),
    )

    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(summary.to_dict(), summary_schema)
