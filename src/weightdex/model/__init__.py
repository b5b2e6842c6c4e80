"""Core data models for Weightdex."""

from .entities import (
    A1111Parameters,
    CandidateFile,
    FileFingerprint,
    GenerationMetadata,
    ScanErrorDetail,
    ScanProgress,
    ScanSummary,
)

__all__ = [
    "A1111Parameters",
    "CandidateFile",
    "FileFingerprint",
    "GenerationMetadata",
    "ScanErrorDetail",
    "ScanProgress",
    "ScanSummary",
]
