"""
Manifest serialization and the two-phase self-hashing write.

A manifest is a JSON array of {"path", "hash"} objects. Its last element always
describes the manifest file itself. That entry's hash is the SHA-256 of the
manifest as first written, i.e. WITHOUT the self-entry:

    1. write entries            -> bytes B1
    2. hash B1 from disk        -> H
    3. append {path: name, hash: H}, overwrite the file with the result

The final bytes therefore do not hash to H. Consumers verifying a manifest must
drop the last element, re-serialize the rest exactly as serialize_entries does,
and compare that digest with H. Making H describe the final bytes would need a
fixed point (every rewrite changes the hash it records), so do not "fix" this.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Iterable

from kushn.errors import DigestError, ManifestWriteError, SerializationError
from kushn.models import FileEntry
from kushn.traversal import collect_entries
from kushn.utils.hashing import content_hash
from kushn.utils.ignore import IgnoreMatcher, normalize_rel_path

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_NAME = "kushn_result.json"


@dataclass
class ManifestResult:
    """Outcome of generate_manifest."""

    entries: list[FileEntry]  # Final manifest contents, self-entry last
    output_path: Path
    skipped: list[str] = field(default_factory=list)  # Lenient mode only

    @property
    def self_entry(self) -> FileEntry:
        return self.entries[-1]


def serialize_entries(entries: Iterable[FileEntry]) -> bytes:
    """Encode entries as a pretty-printed UTF-8 JSON array ('path' before 'hash')."""
    try:
        text = json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot encode manifest entries: {e}") from e
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        # Lone surrogates from undecodable file names
        raise SerializationError(f"Cannot encode manifest entries as UTF-8: {e}") from e


def _write_bytes(path: Path, data: bytes) -> None:
    """Create or truncate path and write data in one pass."""
    try:
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise ManifestWriteError(f"Cannot write manifest {path}: {e.strerror or e}") from e


def _output_rel_path(output_name: str) -> str:
    """
    output_name as a '/'-separated path inside the root. Raises ManifestWriteError
    for names that are empty, absolute or climb out of the root with '..'.
    """
    name = normalize_rel_path(output_name)
    parts = PurePosixPath(name).parts
    if not parts or name.startswith("/") or PureWindowsPath(output_name).drive or ".." in parts:
        raise ManifestWriteError(f"Output name must be a relative path inside the root: {output_name!r}")
    return "/".join(parts)


def write_manifest(
    entries: Iterable[FileEntry],
    root: Path | str,
    output_name: str = DEFAULT_OUTPUT_NAME,
) -> list[FileEntry]:
    """
    Write entries to root/output_name, then append the manifest's own entry and rewrite.

    The self-entry's path is output_name as given ('/'-normalized; it must stay inside
    root) and its hash is the digest of the first write (see module docstring).
    Returns the final list; the input is not modified.
    """
    name = _output_rel_path(output_name)
    output_path = Path(root) / name
    final = list(entries)

    # Phase 1: entries only
    _write_bytes(output_path, serialize_entries(final))

    # Phase 2: digest of what is on disk now
    try:
        self_hash = content_hash(output_path)
    except DigestError as e:
        raise ManifestWriteError(f"Cannot re-read manifest {output_path}: {e}") from e
    final.append(FileEntry(path=name, hash=self_hash))

    # Phase 3: entries + self-entry; self_hash still describes phase 1
    _write_bytes(output_path, serialize_entries(final))
    logger.info("Wrote %d entries to %s (self hash %s)", len(final), output_path, self_hash)
    return final


def generate_manifest(
    root: Path | str,
    rules: Iterable[str] = (),
    output_name: str = DEFAULT_OUTPUT_NAME,
    *,
    strict: bool = True,
) -> ManifestResult:
    """
    Hash every non-ignored file under root and write the self-describing manifest.

    Ignore rules and the output name are checked before anything is read, so a bad
    pattern or an output path outside root fails fast.
    A manifest left at output_name by an earlier run is not listed as a regular
    entry; it only appears as the self-entry.
    """
    root = Path(root)
    matcher = IgnoreMatcher(rules)
    name = _output_rel_path(output_name)

    skipped: list[str] = []
    entries = collect_entries(root, matcher, strict=strict, skipped=skipped)
    before = len(entries)
    entries = [e for e in entries if e.path != name]
    if len(entries) != before:
        logger.debug("Dropped previous manifest %s from traversal results", name)

    final = write_manifest(entries, root, name)
    return ManifestResult(entries=final, output_path=root / name, skipped=skipped)
