"""Hunk mapping: which new-file lines does a staged diff introduce?

``parse_staged_diff`` walks a unified diff once and records, per file, the
line numbers (in the *new* file) of every added line. Context lines advance
the new-file counter; removals do not.

A file whose additions appear without a usable ``@@ -a,b +c,d @@`` header is
still mapped, with a running counter starting at 1, but it is reported as
unreliable so callers never treat those line numbers as authoritative.
"""

from __future__ import annotations

import fnmatch
import logging
import re

from commitguard.core.models import StagedChangeMap

logger = logging.getLogger("commitguard.diff")

FILE_HEADER_RE = re.compile(r"^diff --git a/(.+) b/(.+)$")
HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


class _FileState:
    """Mutable per-file bookkeeping while scanning one file block."""

    def __init__(self, path: str):
        self.path = path
        self.lines: set[int] = set()
        self.counter = 0
        self.old_left = 0
        self.new_left = 0
        self.in_hunk = False
        self.seen_header = False
        self.fallback = False
        self.deleted = False

    def start_fallback(self) -> None:
        if not self.fallback:
            logger.warning(
                "No usable hunk header for %s; line numbers are best-effort", self.path
            )
        self.fallback = True
        self.in_hunk = True
        if self.counter == 0:
            self.counter = 1

    def consume(self, kind: str) -> None:
        """Advance the hunk budgets for one body line."""
        if self.fallback:
            return
        if kind in ("context", "add"):
            self.new_left -= 1
        if kind in ("context", "remove"):
            self.old_left -= 1
        if self.new_left <= 0 and self.old_left <= 0:
            self.in_hunk = False


def parse_staged_diff(diff_text: str, exclude: tuple[str, ...] | list[str] = ()) -> StagedChangeMap:
    """Map a unified diff to the staged line numbers of each file."""
    files: dict[str, frozenset[int]] = {}
    unreliable: set[str] = set()
    current: _FileState | None = None

    def flush() -> None:
        if current is None or current.deleted:
            return
        if is_excluded(current.path, exclude):
            return
        files[current.path] = frozenset(current.lines)
        if current.fallback:
            unreliable.add(current.path)

    for raw in diff_text.splitlines():
        header = FILE_HEADER_RE.match(raw)
        if header:
            flush()
            current = _FileState(_strip_quotes(header.group(2)))
            continue
        if current is None:
            continue

        if not current.in_hunk or current.fallback:
            if raw.startswith("+++ "):
                target = _strip_quotes(raw[4:].strip())
                if target == "/dev/null":
                    current.deleted = True
                elif target.startswith("b/"):
                    current.path = target[2:]
                continue
            if raw.startswith("--- "):
                continue

        if raw.startswith("@@"):
            hunk = HUNK_HEADER_RE.match(raw)
            if hunk is None:
                logger.warning("Malformed hunk header in %s: %r", current.path, raw)
                current.start_fallback()
                continue
            current.counter = int(hunk.group(3))
            current.old_left = int(hunk.group(2)) if hunk.group(2) is not None else 1
            current.new_left = int(hunk.group(4)) if hunk.group(4) is not None else 1
            current.in_hunk = current.old_left > 0 or current.new_left > 0
            current.seen_header = True
            continue

        if raw.startswith("Binary files ") or raw.startswith("GIT binary patch"):
            current.deleted = True
            continue

        if not current.in_hunk:
            # past the budget of a real hunk: ignore until the next header
            if current.seen_header or not raw.startswith("+") or raw.startswith("+++"):
                continue
            current.start_fallback()

        if raw.startswith("\\"):
            # "\ No newline at end of file"
            continue
        if raw.startswith("+"):
            current.lines.add(current.counter)
            current.counter += 1
            current.consume("add")
        elif raw.startswith("-"):
            current.consume("remove")
        else:
            # " " context, or an empty line whose leading space was stripped
            current.counter += 1
            current.consume("context")

    flush()
    return StagedChangeMap(files=files, unreliable=frozenset(unreliable))


def filter_meaningful_diff(diff_text: str, exclude: tuple[str, ...] | list[str] = ()) -> str:
    """Drop file blocks for excluded paths and binary files."""
    kept: list[str] = []
    block: list[str] = []
    block_path: str | None = None

    def flush() -> None:
        if not block:
            return
        if block_path is not None and is_excluded(block_path, exclude):
            return
        if any(line.startswith("Binary files ") or line.startswith("GIT binary patch") for line in block):
            return
        kept.extend(block)

    for raw in diff_text.splitlines():
        header = FILE_HEADER_RE.match(raw)
        if header:
            flush()
            block = [raw]
            block_path = _strip_quotes(header.group(2))
            continue
        block.append(raw)
    flush()

    text = "\n".join(kept)
    return text + "\n" if text else ""


def is_excluded(path: str, patterns: tuple[str, ...] | list[str]) -> bool:
    """Match a repo-relative path against exclusion patterns.

    ``dir/`` patterns match any path segment, glob patterns match the basename
    or the full path, anything else matches the basename exactly.
    """
    name = path.rsplit("/", 1)[-1]
    for pattern in patterns:
        if pattern.endswith("/"):
            segment = pattern.rstrip("/")
            if segment in path.split("/")[:-1]:
                return True
        elif any(ch in pattern for ch in "*?["):
            if fnmatch.fnmatch(name, pattern) or fnmatch.fnmatch(path, pattern):
                return True
        elif name == pattern or path == pattern:
            return True
    return False


def _strip_quotes(path: str) -> str:
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        return path[1:-1]
    return path
