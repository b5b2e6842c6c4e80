"""Tests for content hashing, JSON IO helpers and the byte reader."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from blake3 import blake3

from weightdex.constants.cache import CONTENT_IDENTITY_LENGTH
from weightdex.exceptions import HashError, TruncatedDataError
from weightdex.io import (
    ByteReader,
    compute_content_identity,
    file_content_identity,
    json_io,
    load_json_file,
    write_json_atomic,
)


class _FailingStream(io.RawIOBase):
    def __init__(self, fail_after: int) -> None:
        self._reads = 0
        self._fail_after = fail_after

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        self._reads += 1
        if self._reads > self._fail_after:
            raise OSError("device went away")
        return b"x" * max(size, 1)


def test_identity_is_blake3_hex_of_content() -> None:
    data = b"weights" * 1000

    identity = compute_content_identity(io.BytesIO(data))

    assert identity == blake3(data).hexdigest()
    assert len(identity) == CONTENT_IDENTITY_LENGTH


def test_identity_does_not_depend_on_chunk_size() -> None:
    data = bytes(range(256)) * 300

    small = compute_content_identity(io.BytesIO(data), chunk_size=7)
    large = compute_content_identity(io.BytesIO(data), chunk_size=1 << 20)

    assert small == large


def test_identity_differs_when_one_byte_changes() -> None:
    original = bytearray(b"\x00" * 4096)
    changed = bytearray(original)
    changed[2048] = 1

    assert compute_content_identity(io.BytesIO(bytes(original))) != compute_content_identity(
        io.BytesIO(bytes(changed))
    )


def test_empty_stream_has_a_stable_identity() -> None:
    assert compute_content_identity(io.BytesIO(b"")) == blake3(b"").hexdigest()


def test_read_failure_raises_hash_error_instead_of_partial_digest() -> None:
    with pytest.raises(HashError, match="device went away"):
        compute_content_identity(_FailingStream(fail_after=2), chunk_size=16)  # type: ignore[arg-type]


def test_file_content_identity_matches_stream_identity(tmp_path: Path) -> None:
    path = tmp_path / "model.safetensors"
    path.write_bytes(b"tensor-data" * 99)

    assert file_content_identity(path) == compute_content_identity(io.BytesIO(path.read_bytes()))


def test_file_content_identity_missing_file_raises_hash_error(tmp_path: Path) -> None:
    missing = tmp_path / "gone.ckpt"

    with pytest.raises(HashError) as excinfo:
        file_content_identity(missing)

    assert excinfo.value.path == missing
    assert isinstance(excinfo.value, OSError)


def test_write_json_atomic_round_trip(tmp_path: Path) -> None:
    out_path = tmp_path / "nested" / "doc.json"

    write_json_atomic(path=out_path, payload={"b": 2, "a": [1]}, temp_prefix=".tmp-", temp_suffix=".json")

    assert load_json_file(out_path) == {"a": [1], "b": 2}
    assert [item.name for item in out_path.parent.iterdir()] == ["doc.json"]


def test_write_json_atomic_cleans_temp_file_on_error(tmp_path: Path) -> None:
    out_path = tmp_path / "report.json"
    temp_prefix = ".tmp-"
    temp_suffix = ".json"

    with pytest.raises(TypeError):
        write_json_atomic(
            path=out_path,
            payload={"bad": object()},
            temp_prefix=temp_prefix,
            temp_suffix=temp_suffix,
        )

    leftovers = [
        item for item in tmp_path.iterdir() if item.name.startswith(temp_prefix) and item.name.endswith(temp_suffix)
    ]
    assert not leftovers
    assert not out_path.exists()


def test_write_json_atomic_keeps_existing_document_when_rename_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    out_path = tmp_path / "weightdex-index.json"
    out_path.write_text("{\"previous\": true}\n", encoding="utf-8")

    def failing_replace(src: object, dst: object) -> None:
        raise PermissionError("target locked")

    monkeypatch.setattr(json_io.os, "replace", failing_replace)

    with pytest.raises(PermissionError):
        write_json_atomic(path=out_path, payload={"files": {}}, temp_prefix=".index-", temp_suffix=".json")

    assert [item.name for item in tmp_path.iterdir()] == ["weightdex-index.json"]
    assert load_json_file(out_path) == {"previous": True}


def test_byte_reader_reads_big_endian_integers() -> None:
    reader = ByteReader(b"\x01\x02\x03\x00\x00\x01\x00")

    assert reader.read_u8() == 1
    assert reader.read_u16_be() == 0x0203
    assert reader.read_u32_be() == 0x00000100
    assert reader.at_end()


def test_byte_reader_overrun_raises_and_keeps_cursor() -> None:
    reader = ByteReader(b"abc")
    reader.skip(1)

    with pytest.raises(TruncatedDataError):
        reader.read(5)

    assert reader.offset == 1
    assert reader.read_rest() == b"bc"


def test_byte_reader_read_until_consumes_delimiter_or_reads_to_end() -> None:
    reader = ByteReader(b"key\x00value")

    assert reader.read_until(b"\x00") == b"key"
    assert reader.read_until(b"\x00") == b"value"
    assert reader.at_end()


@pytest.mark.parametrize("offset", [-1, 4])
def test_byte_reader_rejects_out_of_range_offsets(offset: int) -> None:
    with pytest.raises(TruncatedDataError):
        ByteReader(b"abc", offset)
