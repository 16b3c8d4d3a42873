"""Unit tests for manifest serialization and the two-phase self-hashing write."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from kushn.errors import DigestError, ManifestWriteError, PatternError, SerializationError
from kushn.manifest import (
    DEFAULT_OUTPUT_NAME,
    generate_manifest,
    serialize_entries,
    write_manifest,
)
from kushn.models import FileEntry


def _sha(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@pytest.fixture
def entries() -> list[FileEntry]:
    return [
        FileEntry(path="a.txt", hash=_sha(b"a")),
        FileEntry(path="dir/b.txt", hash=_sha(b"b")),
    ]


# --- serialize_entries ---


def test_serialize_entries_pretty_json_path_first(entries: list[FileEntry]) -> None:
    data = serialize_entries(entries)
    text = data.decode("utf-8")
    assert text.startswith("[\n  {\n    \"path\": \"a.txt\",\n    \"hash\": ")
    assert json.loads(text) == [e.to_dict() for e in entries]
    for obj in json.loads(text):
        assert list(obj) == ["path", "hash"]


def test_serialize_entries_empty() -> None:
    assert serialize_entries([]) == b"[]"


def test_serialize_entries_keeps_unicode_paths() -> None:
    data = serialize_entries([FileEntry(path="café/日本.txt", hash="0" * 64)])
    assert "café/日本.txt".encode("utf-8") in data


def test_serialize_entries_unencodable_path_raises() -> None:
    """File names that are not valid UTF-8 surface as SerializationError."""
    bad = FileEntry(path="bad\udcff.txt", hash="0" * 64)
    with pytest.raises(SerializationError):
        serialize_entries([bad])


# --- write_manifest ---


def test_write_manifest_self_entry_hashes_phase_one_bytes(tmp_path: Path, entries: list[FileEntry]) -> None:
    final = write_manifest(entries, tmp_path, "out.json")
    out = tmp_path / "out.json"
    assert final[:-1] == entries
    assert final[-1].path == "out.json"
    assert final[-1].hash == _sha(serialize_entries(entries))
    # Final bytes include the self-entry, so they do not hash to the recorded value
    assert out.read_bytes() == serialize_entries(final)
    assert _sha(out.read_bytes()) != final[-1].hash


def test_write_manifest_does_not_mutate_input(tmp_path: Path, entries: list[FileEntry]) -> None:
    before = list(entries)
    write_manifest(entries, tmp_path, "out.json")
    assert entries == before


def test_write_manifest_empty_entries(tmp_path: Path) -> None:
    final = write_manifest([], tmp_path)
    assert final == [FileEntry(path=DEFAULT_OUTPUT_NAME, hash=_sha(b"[]"))]
    data = json.loads((tmp_path / DEFAULT_OUTPUT_NAME).read_text(encoding="utf-8"))
    assert data == [{"path": DEFAULT_OUTPUT_NAME, "hash": _sha(b"[]")}]


def test_write_manifest_truncates_existing_file(tmp_path: Path, entries: list[FileEntry]) -> None:
    out = tmp_path / "out.json"
    out.write_text("x" * 10000)
    final = write_manifest(entries, tmp_path, "out.json")
    assert out.read_bytes() == serialize_entries(final)


def test_write_manifest_name_in_subdirectory(tmp_path: Path, entries: list[FileEntry]) -> None:
    (tmp_path / "reports").mkdir()
    final = write_manifest(entries, tmp_path, "reports\\hashes.json")
    assert final[-1].path == "reports/hashes.json"
    assert (tmp_path / "reports" / "hashes.json").is_file()


def test_write_manifest_unwritable_destination(tmp_path: Path, entries: list[FileEntry]) -> None:
    with pytest.raises(ManifestWriteError) as exc_info:
        write_manifest(entries, tmp_path, "no/such/dir/out.json")
    assert isinstance(exc_info.value, OSError)


def test_write_manifest_reread_failure(tmp_path: Path, entries: list[FileEntry]) -> None:
    with patch("kushn.manifest.content_hash", side_effect=DigestError("vanished")):
        with pytest.raises(ManifestWriteError, match="re-read"):
            write_manifest(entries, tmp_path, "out.json")


@pytest.mark.parametrize("name", ["/abs.json", "../out.json", "a/../../out.json", "..\\out.json", "C:\\out.json", "", "."])
def test_write_manifest_rejects_names_outside_root(tmp_path: Path, entries: list[FileEntry], name: str) -> None:
    root = tmp_path / "root"
    (root / "a").mkdir(parents=True)
    with pytest.raises(ManifestWriteError, match="inside the root"):
        write_manifest(entries, root, name)
    assert not (tmp_path / "out.json").exists()
    assert list(root.rglob("*.json")) == []


def test_write_manifest_strips_current_dir_prefix(tmp_path: Path, entries: list[FileEntry]) -> None:
    final = write_manifest(entries, tmp_path, "./out.json")
    assert final[-1].path == "out.json"
    assert (tmp_path / "out.json").is_file()


# --- generate_manifest ---


def test_generate_manifest_keep_skip_scenario(tmp_path: Path) -> None:
    (tmp_path / "keep.txt").write_bytes(b"keep")
    (tmp_path / "skip").mkdir()
    (tmp_path / "skip" / "ignored.txt").write_bytes(b"ignored")
    result = generate_manifest(tmp_path, ["skip"])
    pre_self = [FileEntry(path="keep.txt", hash=_sha(b"keep"))]
    assert result.entries[:-1] == pre_self
    assert result.self_entry == FileEntry(path=DEFAULT_OUTPUT_NAME, hash=_sha(serialize_entries(pre_self)))
    assert result.output_path == tmp_path / DEFAULT_OUTPUT_NAME
    assert result.skipped == []
    on_disk = json.loads(result.output_path.read_text(encoding="utf-8"))
    assert on_disk == [e.to_dict() for e in result.entries]


def test_generate_manifest_rerun_does_not_list_old_output(tmp_path: Path) -> None:
    """A manifest from a previous run only appears as the self-entry."""
    (tmp_path / "a.txt").write_bytes(b"hello world")
    first = generate_manifest(tmp_path)
    second = generate_manifest(tmp_path)
    assert [e.path for e in second.entries] == ["a.txt", DEFAULT_OUTPUT_NAME]
    assert first.entries == second.entries


def test_generate_manifest_invalid_pattern_fails_before_writing(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_bytes(b"a")
    with patch("kushn.manifest.collect_entries") as walk:
        with pytest.raises(PatternError):
            generate_manifest(tmp_path, ["[unclosed"])
    walk.assert_not_called()
    assert not (tmp_path / DEFAULT_OUTPUT_NAME).exists()


def test_generate_manifest_output_outside_root_fails_before_walking(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    (root / "a.txt").write_bytes(b"a")
    with patch("kushn.manifest.collect_entries") as walk:
        with pytest.raises(ManifestWriteError):
            generate_manifest(root, [], "../escaped.json")
    walk.assert_not_called()
    assert not (tmp_path / "escaped.json").exists()


def test_generate_manifest_passes_policy_and_reports_skipped(tmp_path: Path) -> None:
    def fake_walk(root, matcher, *, strict, skipped):
        assert strict is False
        skipped.append("locked")
        return [FileEntry(path="x.txt", hash=_sha(b"x"))]

    with patch("kushn.manifest.collect_entries", side_effect=fake_walk):
        result = generate_manifest(tmp_path, [], "m.json", strict=False)
    assert result.skipped == ["locked"]
    assert [e.path for e in result.entries] == ["x.txt", "m.json"]


def test_generate_manifest_digest_failure_leaves_no_manifest(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_bytes(b"a")
    with patch("kushn.traversal.content_hash", side_effect=DigestError("gone")):
        with pytest.raises(DigestError):
            generate_manifest(tmp_path)
    assert not (tmp_path / DEFAULT_OUTPUT_NAME).exists()
