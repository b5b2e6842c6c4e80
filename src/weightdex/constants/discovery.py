"""Constants for filesystem discovery and preview lookup."""

from __future__ import annotations

DEFAULT_MODEL_EXTENSIONS: tuple[str, ...] = (".safetensors", ".pt", ".ckpt", ".lora", ".gguf")
DEFAULT_PREVIEW_EXTENSIONS: tuple[str, ...] = (".png", ".jpg", ".jpeg", ".webp")

# Sibling preview names probed for each weight file, ``{stem}`` substituted.
PREVIEW_NAME_TEMPLATES: tuple[str, ...] = (
    "{stem}.preview.png",
    "{stem}.preview.jpg",
    "{stem}.preview.jpeg",
    "{stem}.preview.webp",
    "{stem}.png",
    "{stem}.jpg",
    "{stem}.jpeg",
    "{stem}.webp",
)
