"""Per-session file backups with restore-on-rejection.

A ``BackupSession`` is a scoped transaction over the files it touches::

    with BackupSession(project_path) as backups:
        backups.begin("src/app.js")      # snapshot before first write
        ...                              # write the file
        backups.commit("src/app.js")     # keep changes, drop snapshot
        # or backups.abort("src/app.js") # restore snapshot byte-for-byte

Leaving the ``with`` block through an exception restores every file that is
still pending.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from commitguard.core.models import BackupRecord

logger = logging.getLogger("commitguard.fix")


class BackupSession:
    """Tracks exactly one live backup per modified file."""

    def __init__(self, project_path: Path, suffix: str = ".guard-backup"):
        self.project_path = project_path
        self.suffix = suffix
        self._records: dict[str, BackupRecord] = {}

    def __enter__(self) -> BackupSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None and self._records:
            logger.warning("Restoring %d file(s) after error: %s", len(self._records), exc)
            self.abort_all()

    def begin(self, file: str) -> BackupRecord:
        """Snapshot ``file`` unless a backup for it already exists."""
        record = self._records.get(file)
        if record is not None:
            return record

        target = self._resolve(file)
        backup_path = target.with_name(target.name + self.suffix)
        shutil.copy2(target, backup_path)
        record = BackupRecord(file=target, backup_path=backup_path)
        self._records[file] = record
        logger.debug("Backed up %s to %s", file, backup_path)
        return record

    def has_backup(self, file: str) -> bool:
        return file in self._records

    def get(self, file: str) -> BackupRecord | None:
        return self._records.get(file)

    def pending(self) -> list[BackupRecord]:
        return list(self._records.values())

    def commit(self, file: str) -> None:
        """Accept the current content of ``file`` and delete its backup."""
        record = self._records.pop(file, None)
        if record is None:
            return
        try:
            record.backup_path.unlink()
        except FileNotFoundError:
            logger.debug("Backup for %s already removed", file)

    def abort(self, file: str) -> bool:
        """Restore ``file`` from its backup. Returns False if the restore failed."""
        record = self._records.get(file)
        if record is None:
            return True
        try:
            shutil.copyfile(record.backup_path, record.file)
            record.backup_path.unlink()
        except OSError as exc:
            logger.error("Could not restore %s from %s: %s", file, record.backup_path, exc)
            return False
        del self._records[file]
        logger.debug("Restored %s", file)
        return True

    def commit_all(self) -> None:
        for file in list(self._records):
            self.commit(file)

    def abort_all(self) -> list[str]:
        """Restore every pending file; returns the files that could not be restored."""
        return [file for file in list(self._records) if not self.abort(file)]

    def _resolve(self, file: str) -> Path:
        path = Path(file)
        if path.is_absolute():
            return path
        return self.project_path / path
