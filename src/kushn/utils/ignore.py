"""Ignore rule support: .kushnignore parsing and the compiled directory/file matcher."""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePath
from typing import Any, Iterable

from pathspec import PathSpec
from pathspec.pattern import RegexPattern

from kushn.errors import PatternError

logger = logging.getLogger(__name__)

KUSHNIGNORE = ".kushnignore"


def parse_ignore_file(path: Path) -> list[str]:
    """
    Patterns from an ignore file, one per line, in file order.

    Lines are whitespace-trimmed and blank lines or '#' comments dropped. A UTF-8
    byte-order mark (editors on Windows add one) is not part of the first pattern.
    A missing file yields no patterns.
    """
    if not path.is_file():
        return []
    with open(path, encoding="utf-8-sig") as f:
        stripped = (line.strip() for line in f)
        patterns = [s for s in stripped if s and not s.startswith("#")]
    logger.debug("Read %d ignore pattern(s) from %s", len(patterns), path)
    return patterns


def load_patterns(root: Path, config: dict[str, Any]) -> list[str]:
    """
    Build the raw rule list for a root: the ignore file (ignore.file, default .kushnignore)
    followed by ignore.additional_patterns from config. Order is preserved.
    """
    ignore_cfg = config.get("ignore", {}) or {}
    ignore_file = ignore_cfg.get("file") or KUSHNIGNORE
    patterns = parse_ignore_file(Path(root) / ignore_file)
    patterns.extend(ignore_cfg.get("additional_patterns", []) or [])
    return patterns


def normalize_rel_path(path: PurePath | str) -> str:
    """Relative path as a '/'-separated string, whatever the host convention."""
    if isinstance(path, PurePath):
        path = path.as_posix()
    return path.replace("\\", "/")


def _class_end(rule: str, start: int) -> int:
    """Index of the ']' closing the character class opened at start, or -1."""
    j = start + 1
    if rule[j : j + 1] == "!":
        j += 1
    # A ']' right after the opener is a literal member of the class
    if rule[j : j + 1] == "]":
        j += 1
    return rule.find("]", j)


def _check_glob(rule: str) -> None:
    """Raise PatternError if rule is not a well-formed glob."""
    if "***" in rule:
        raise PatternError(rule, "wildcards are either '*' or '**'")
    for component in rule.split("/"):
        if "**" in component and component != "**":
            raise PatternError(rule, "'**' must form a whole path component")
    i = 0
    while i < len(rule):
        if rule[i] == "[":
            close = _class_end(rule, i)
            if close == -1:
                raise PatternError(rule, "unterminated character class")
            i = close
        i += 1


def glob_to_regex(glob: str) -> str:
    """
    Translate a '/'-separated glob into an anchored regex.

    ``*`` and ``?`` also match '/', ``**`` as a whole component matches zero or more
    directories, ``[...]``/``[!...]`` are character classes. Everything else is literal,
    so a pattern only matches paths it describes in full.
    """
    out: list[str] = ["^"]
    i = 0
    n = len(glob)
    while i < n:
        c = glob[i]
        if glob.startswith("**", i):
            if i + 2 < n:
                # '**/' spans any number of leading directories, including none
                out.append("(?:.*/)?")
                i += 3
            else:
                out.append(".*")
                i += 2
            continue
        if c == "*":
            out.append(".*")
        elif c == "?":
            out.append(".")
        elif c == "[":
            close = _class_end(glob, i)
            members = glob[i + 1 : close]
            negate = members.startswith("!")
            if negate:
                members = members[1:]
            body = "".join(ch if ch == "-" else re.escape(ch) for ch in members)
            out.append(f"[{'^' if negate else ''}{body}]")
            i = close
        else:
            out.append(re.escape(c))
        i += 1
    out.append("$")
    return "".join(out)


def _compile(globs: list[str]) -> PathSpec:
    # Inline (?s) so file names with newlines still match; the re2/hyperscan
    # backends read only the pattern text, not compile flags.
    # include=True: a precompiled regex is otherwise a no-op pattern.
    return PathSpec([RegexPattern(re.compile("(?s)" + glob_to_regex(g)), include=True) for g in globs])


class IgnoreMatcher:
    """
    Compiled ignore rules. Each raw rule yields two patterns:

    - directory form ``rule/**``: the directory named by the rule (relative to the
      root) and everything beneath it;
    - file form ``**/rule``: any path in the tree whose trailing components match.
      A file-form match covers the path itself only: ``skip`` excludes a file at
      ``nested/skip`` but keeps ``nested/skip/a.txt``.

    Backslashes in rules are treated as path separators so rule files are portable.
    Matching is case-sensitive. Instances are immutable after construction.
    """

    def __init__(self, rules: Iterable[str] = ()) -> None:
        normalized: list[str] = []
        dir_globs: list[str] = []
        file_globs: list[str] = []
        for raw in rules:
            rule = raw.replace("\\", "/")
            if not rule.strip("/"):
                continue
            _check_glob(rule)
            normalized.append(rule)
            dir_globs.append(rule.strip("/") + "/**")
            file_globs.append("**/" + rule.lstrip("/"))
        try:
            self._dir_spec = _compile(dir_globs)
            self._file_spec = _compile(file_globs)
        except (re.error, ValueError) as e:
            raise PatternError(", ".join(normalized), str(e)) from e
        self._rules = tuple(normalized)
        logger.debug("Compiled %d ignore rule(s): %s", len(self._rules), list(self._rules))

    @property
    def rules(self) -> tuple[str, ...]:
        """Normalized rules, in the order given."""
        return self._rules

    def excludes_dir(self, rel_path: PurePath | str) -> bool:
        """True if the directory is excluded; its subtree must not be visited."""
        rel = normalize_rel_path(rel_path).rstrip("/")
        if not rel:
            return False
        # Directory-form patterns end in '/**', which needs a trailing slash to match
        return self._dir_spec.match_file(rel) or self._dir_spec.match_file(rel + "/")

    def excludes_file(self, rel_path: PurePath | str) -> bool:
        """True if the file lies in an excluded subtree or matches a file-form rule."""
        rel = normalize_rel_path(rel_path)
        return self._dir_spec.match_file(rel) or self._file_spec.match_file(rel)

    def excludes(self, rel_path: PurePath | str, is_dir: bool) -> bool:
        if is_dir:
            return self.excludes_dir(rel_path)
        return self.excludes_file(rel_path)
