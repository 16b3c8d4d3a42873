"""Directory traversal: depth-first walk with ignore pruning, hashing every surviving file."""

from __future__ import annotations

import logging
from pathlib import Path
from stat import S_ISDIR, S_ISREG

from kushn.errors import TraversalError
from kushn.models import FileEntry
from kushn.utils.hashing import content_hash
from kushn.utils.ignore import IgnoreMatcher, normalize_rel_path

logger = logging.getLogger(__name__)


def _relative(path: Path, root: Path) -> str:
    return normalize_rel_path(path.relative_to(root))


def collect_entries(
    root: Path | str,
    matcher: IgnoreMatcher,
    *,
    strict: bool = True,
    skipped: list[str] | None = None,
) -> list[FileEntry]:
    """
    Walk root depth-first and return a FileEntry for every non-excluded regular file.

    Siblings are visited in name order, so output is stable for an unchanged tree.
    Symbolic links are followed. A link leading back to a directory that is still being
    walked (an ancestor, same device and inode) is not followed, so symlink cycles end;
    a directory reachable through several non-cyclic paths is listed under each of them.
    Excluded directories are pruned without being listed.

    Paths are relative to root with '/' separators. A directory that cannot be
    listed, or an entry that cannot be stat'ed (e.g. a dangling symlink), raises
    TraversalError when strict; otherwise it is logged, appended to skipped (when
    given) and the walk continues. Hashing failures always propagate as DigestError.
    """
    root = Path(root)
    if not root.is_dir():
        raise TraversalError(root.as_posix(), "Not a directory")

    entries: list[FileEntry] = []
    # Directories on the current recursion path
    active_dirs: set[tuple[int, int]] = set()

    def entry_failed(path: Path, message: str, error: OSError) -> None:
        rel = _relative(path, root) or "."
        if strict:
            raise TraversalError(rel, f"{message} ({error.strerror or error})") from error
        logger.warning("Skipping %s: %s (%s)", rel, message, error.strerror or error)
        if skipped is not None:
            skipped.append(rel)

    def recurse(current: Path) -> None:
        try:
            st = current.stat()
        except OSError as e:
            entry_failed(current, "Cannot stat directory", e)
            return
        key = (st.st_dev, st.st_ino)
        if key in active_dirs:
            logger.warning(
                "Not following %s: symlink loop back to an enclosing directory",
                _relative(current, root) or ".",
            )
            return
        active_dirs.add(key)
        try:
            walk_children(current)
        finally:
            active_dirs.discard(key)

    def walk_children(current: Path) -> None:
        try:
            children = sorted(current.iterdir(), key=lambda p: p.name)
        except OSError as e:
            entry_failed(current, "Cannot read directory", e)
            return

        for child in children:
            rel = _relative(child, root)
            try:
                st = child.stat()
            except OSError as e:
                entry_failed(child, "Cannot stat entry", e)
                continue
            if S_ISDIR(st.st_mode):
                if matcher.excludes_dir(rel):
                    logger.debug("Pruned directory %s", rel)
                    continue
                recurse(child)
            elif S_ISREG(st.st_mode):
                if matcher.excludes_file(rel):
                    logger.debug("Ignored file %s", rel)
                    continue
                entries.append(FileEntry(path=rel, hash=content_hash(child)))
            else:
                logger.debug("Skipping %s: not a regular file or directory", rel)

    recurse(root)
    logger.info("Hashed %d file(s) under %s", len(entries), root)
    return entries


def hash_single_file(path: Path | str, root: Path | str, matcher: IgnoreMatcher) -> FileEntry | None:
    """
    Hash one file relative to an explicit root. Returns None when the matcher excludes it.
    Raises ValueError if path is not under root, DigestError if it cannot be read.
    """
    root = Path(root)
    path = Path(path)
    if not path.is_absolute():
        path = root / path
    rel = _relative(path, root)
    if matcher.excludes_file(rel):
        return None
    return FileEntry(path=rel, hash=content_hash(path))

