"""Fix application against working-tree files."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from commitguard.core.models import Fix, PatchResult
from commitguard.fix.backup import BackupSession

logger = logging.getLogger("commitguard.fix")


class PatchApplier:
    """Applies one file's fixes in a single descending pass."""

    def __init__(self, project_path: Path, backups: BackupSession):
        self.project_path = project_path
        self.backups = backups

    def apply_file(self, file: str, fixes: list[Fix]) -> PatchResult:
        """Apply ``fixes`` to ``file``; the file is backed up before the first write.

        Fixes are applied from the highest line to the lowest so that an
        insertion never shifts the text a later fix is looking for. Each fix
        replaces the first occurrence of its original text, searching from its
        own line onward and then from the top of the file. A fix whose text is
        gone is reported as skipped.
        """
        result = PatchResult(file=file)
        file_path = self._resolve_file(file)

        try:
            original = file_path.read_bytes()
        except OSError as exc:
            logger.error("Cannot read %s: %s", file, exc)
            result.error = str(exc)
            result.skipped = list(fixes)
            return result

        content = original.decode("utf-8", errors="surrogateescape")
        for fix in sorted(fixes, key=lambda f: f.line, reverse=True):
            updated = _replace_first(content, fix)
            if updated is None:
                logger.warning(
                    "Skipping stale fix %s at %s:%d: original text not found",
                    fix.rule_id, file, fix.line,
                )
                result.skipped.append(fix)
                continue
            content = updated
            result.applied.append(fix)

        new_bytes = content.encode("utf-8", errors="surrogateescape")
        if not result.applied or new_bytes == original:
            return result

        try:
            self.backups.begin(file)
            atomic_write_bytes(file_path, new_bytes)
        except OSError as exc:
            logger.error("Failed to write %s: %s", file, exc)
            self.backups.abort(file)
            result.error = str(exc)
            result.skipped.extend(result.applied)
            result.applied = []
            return result

        result.modified = True
        logger.info("Applied %d fix(es) to %s", len(result.applied), file)
        return result

    def _resolve_file(self, file: str) -> Path:
        path = Path(file)
        if path.is_absolute():
            return path
        return self.project_path / path


def _replace_first(content: str, fix: Fix) -> str | None:
    if not fix.original_text:
        return None
    index = content.find(fix.original_text, _line_offset(content, fix.line))
    if index < 0:
        index = content.find(fix.original_text)
    if index < 0:
        return None
    return content[:index] + fix.replacement_text + content[index + len(fix.original_text):]


def _line_offset(content: str, line: int) -> int:
    """Character offset of the start of 1-based ``line``; 0 if out of range."""
    offset = 0
    for _ in range(line - 1):
        newline = content.find("\n", offset)
        if newline < 0:
            return 0
        offset = newline + 1
    return offset


def atomic_write_bytes(file_path: Path, data: bytes) -> None:
    """Write ``data`` via a temp file in the same directory and an atomic rename."""
    fd, temp_name = tempfile.mkstemp(
        dir=str(file_path.parent), prefix=f".{file_path.name}.", suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        try:
            os.chmod(temp_name, file_path.stat().st_mode & 0o7777)
        except OSError:
            logger.debug("Could not copy permissions onto %s", temp_name)
        os.replace(temp_name, file_path)
    except BaseException:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise
