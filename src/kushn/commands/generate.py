"""Generate the manifest for a root directory (the default and only command)."""

from __future__ import annotations

import logging
import sys
from argparse import Namespace
from pathlib import Path

from kushn.config import load_config
from kushn.errors import KushnError
from kushn.manifest import generate_manifest
from kushn.utils.ignore import load_patterns

logger = logging.getLogger(__name__)


def run(args: Namespace) -> None:
    """
    Run the generate command: load config and ignore rules for the root, write the
    manifest, and report. Any kushn failure is printed to stderr with exit status 1.
    """
    root: Path = Path(getattr(args, "path", Path("."))).resolve()
    if not root.is_dir():
        print(f"Error: {root.as_posix()} is not a directory.", file=sys.stderr)
        sys.exit(1)

    config = load_config(root)
    output_name = getattr(args, "name", None) or config.get("output_name") or "kushn_result.json"
    strict = getattr(args, "strict", None)
    if strict is None:
        strict = bool((config.get("traversal") or {}).get("strict", True))

    try:
        patterns = load_patterns(root, config)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: cannot read ignore file: {e}", file=sys.stderr)
        sys.exit(1)
    logger.debug("Root %s, output %s, strict=%s, %d pattern(s)", root, output_name, strict, len(patterns))

    try:
        result = generate_manifest(root, patterns, output_name, strict=strict)
    except KushnError as e:
        logger.debug("Manifest generation failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    for rel in result.skipped:
        print(f"Note: skipped unreadable entry {rel}", file=sys.stderr)
    print(f"File hashes generated and saved to {output_name}.")
