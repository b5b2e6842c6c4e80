"""Cross-module type aliases."""

from __future__ import annotations

from typing import Literal

type ScanMode = Literal["incremental", "full"]
type ScanPhase = Literal["enumerating", "hashing", "metadata", "done"]
type ChangeClassification = Literal["unchanged", "new-or-changed"]
type GenerationTool = Literal["A1111", "ComfyUI", "InvokeAI", "NovelAI", "Unknown"]

type ContentIdentity = str

type JsonScalar = str | int | float | bool | None
type JsonValue = JsonScalar | list["JsonValue"] | dict[str, "JsonValue"]
type JsonObject = dict[str, JsonValue]
