"""JSON persistence for the change cache and the record index document.

Both documents are rewritten wholesale on every checkpoint, so writes go to a
sibling temp file that replaces the target only once fully flushed. A reader
never observes a half-written cache.
"""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import suppress
from pathlib import Path


def load_json_file(path: Path) -> object:
    """Parse a UTF-8 JSON document; shape validation is left to the caller."""
    return json.loads(path.read_text(encoding="utf-8"))


def write_json_atomic(
    *,
    path: Path,
    payload: object,
    temp_prefix: str,
    temp_suffix: str,
) -> None:
    """Write *payload* beside *path* and swap it into place.

    Keys are sorted so successive checkpoints of an unchanged library produce
    identical bytes. The temp file is removed if serialization or the final
    rename fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=temp_prefix,
        suffix=temp_suffix,
        delete=False,
    ) as handle:
        temp_path = Path(handle.name)
        try:
            json.dump(payload, handle, indent=2, sort_keys=True)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        except BaseException:
            handle.close()
            with suppress(FileNotFoundError):
                temp_path.unlink()
            raise

    try:
        os.replace(temp_path, path)
    except OSError:
        with suppress(FileNotFoundError):
            temp_path.unlink()
        raise
