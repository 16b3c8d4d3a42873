"""Content hashing (SHA-256) for manifest entries."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from kushn.errors import DigestError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def content_hash(path: Path | str) -> str:
    """
    Compute the SHA-256 hash of a file's contents as 64 lowercase hex characters.

    The file is read as raw bytes in fixed-size chunks, so results do not depend on
    platform line endings or encodings and memory use stays bounded. Raises
    DigestError if the file cannot be opened or a read fails; no partial digest
    is ever returned.
    """
    path = Path(path)
    hasher = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(CHUNK_SIZE)
                if not chunk:
                    break
                hasher.update(chunk)
    except OSError as e:
        raise DigestError(f"Cannot hash {path}: {e.strerror or e}") from e
    digest = hasher.hexdigest()
    logger.debug("sha256 %s %s", digest, path)
    return digest
