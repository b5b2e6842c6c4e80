"""Frozen dataclasses shared across the scanner and metadata engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from weightdex.constants.metadata import TOOL_UNKNOWN, VALID_TOOLS
from weightdex.types import GenerationTool, JsonObject, JsonValue, ScanPhase


@dataclass(frozen=True)
class CandidateFile:
    """A discovered file with the stat signature observed during this scan."""

    path: Path
    size_bytes: int
    modified_at_epoch: float


@dataclass(frozen=True)
class FileFingerprint:
    """Last-seen stat signature stored in the change cache."""

    path: str
    size_bytes: int
    modified_at_epoch: float

    def matches(self, candidate: CandidateFile) -> bool:
        """Return True when size and mtime both equal the candidate's."""
        return self.size_bytes == candidate.size_bytes and self.modified_at_epoch == candidate.modified_at_epoch


@dataclass(frozen=True)
class A1111Parameters:
    """Prompts and flat settings parsed from an A1111-style parameter blob."""

    positive: str
    negative: str = ""
    settings: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GenerationMetadata:
    """Normalized generation metadata extracted from one image.

    ``tool`` is always populated; ``Unknown`` with empty settings is the
    terminal value for images without recognizable metadata.
    """

    tool: GenerationTool = TOOL_UNKNOWN
    positive_prompt: str | None = None
    negative_prompt: str | None = None
    settings: dict[str, JsonValue] = field(default_factory=dict)
    raw: JsonObject = field(default_factory=dict)

    def to_dict(self) -> JsonObject:
        """Serialize for stores and JSON output."""
        return {
            "tool": self.tool,
            "positive_prompt": self.positive_prompt,
            "negative_prompt": self.negative_prompt,
            "settings": dict(self.settings),
            "raw": self.raw,
        }

    @classmethod
    def from_dict(cls, payload: object) -> GenerationMetadata:
        """Rebuild from ``to_dict`` output; unrecognized shapes become ``Unknown``."""
        if not isinstance(payload, dict):
            return cls()
        tool = payload.get("tool")
        positive = payload.get("positive_prompt")
        negative = payload.get("negative_prompt")
        settings = payload.get("settings")
        raw = payload.get("raw")
        return cls(
            tool=tool if isinstance(tool, str) and tool in VALID_TOOLS else TOOL_UNKNOWN,  # type: ignore[arg-type]
            positive_prompt=positive if isinstance(positive, str) else None,
            negative_prompt=negative if isinstance(negative, str) else None,
            settings=dict(settings) if isinstance(settings, dict) else {},
            raw=dict(raw) if isinstance(raw, dict) else {},
        )


@dataclass(frozen=True)
class ScanProgress:
    """A progress event emitted to the scan's progress callback."""

    phase: ScanPhase
    processed: int
    total: int
    current_path: str | None = None


@dataclass(frozen=True)
class ScanErrorDetail:
    """A per-file failure recorded during a scan."""

    path: str
    message: str
    kind: str

    def to_dict(self) -> dict[str, str]:
        """Serialize as a JSON object."""
        return {"path": self.path, "message": self.message, "kind": self.kind}


@dataclass(frozen=True)
class ScanSummary:
    """Final result of one scan invocation."""

    processed: int
    skipped: int
    total_candidates: int
    errors: int
    error_details: tuple[ScanErrorDetail, ...] = ()
    cancelled: bool = False
    pruned: int = 0
    metadata_extracted: int = 0
    duration_seconds: float = 0.0
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> JsonObject:
        """Serialize as a JSON object."""
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "total_candidates": self.total_candidates,
            "errors": self.errors,
            "error_details": [detail.to_dict() for detail in self.error_details],
            "cancelled": self.cancelled,
            "pruned": self.pruned,
            "metadata_extracted": self.metadata_extracted,
            "duration_seconds": round(self.duration_seconds, 6),
            "warnings": list(self.warnings),
        }
