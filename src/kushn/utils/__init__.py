"""Shared utilities: hashing, path normalization, ignore rules."""

from kushn.utils.hashing import content_hash
from kushn.utils.ignore import (
    IgnoreMatcher,
    load_patterns,
    normalize_rel_path,
    parse_ignore_file,
)

__all__ = [
    "IgnoreMatcher",
    "content_hash",
    "load_patterns",
    "normalize_rel_path",
    "parse_ignore_file",
]
