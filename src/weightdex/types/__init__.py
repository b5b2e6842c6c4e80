"""Shared type aliases for Weightdex."""

from .cache import CacheFileEntry, CachePayload
from .common import (
    ChangeClassification,
    ContentIdentity,
    GenerationTool,
    JsonObject,
    JsonScalar,
    JsonValue,
    ScanMode,
    ScanPhase,
)

__all__ = [
    "CacheFileEntry",
    "CachePayload",
    "ChangeClassification",
    "ContentIdentity",
    "GenerationTool",
    "JsonObject",
    "JsonScalar",
    "JsonValue",
    "ScanMode",
    "ScanPhase",
]
