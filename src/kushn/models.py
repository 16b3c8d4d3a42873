"""Data model for manifest entries."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FileEntry:
    """A single hashed file in a manifest."""

    path: str  # Relative to the processed root, '/' separators
    hash: str  # Lowercase hex SHA-256 of the raw bytes

    def to_dict(self) -> dict[str, str]:
        """JSON-ready mapping; 'path' always precedes 'hash'."""
        return {"path": self.path, "hash": self.hash}
