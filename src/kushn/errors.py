"""Failure kinds raised by kushn. All derive from KushnError so the CLI can report them uniformly."""

from __future__ import annotations


class KushnError(Exception):
    """Base class for every failure kushn reports to its caller."""


class DigestError(KushnError, OSError):
    """Raised when a file cannot be opened or fully read for hashing."""


class ManifestWriteError(KushnError, OSError):
    """Raised when the output manifest cannot be written or re-read."""


class PatternError(KushnError, ValueError):
    """Raised when an ignore rule is not a valid glob."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid ignore pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class TraversalError(KushnError, OSError):
    """Raised when a directory entry cannot be read during a strict walk."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


class SerializationError(KushnError, ValueError):
    """Raised when manifest entries cannot be encoded as JSON."""
