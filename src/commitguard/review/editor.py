"""Open a file at a line in the user's editor."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Mapping

logger = logging.getLogger("commitguard.review")

_PLUS_LINE_EDITORS = {"vim", "nvim", "vi", "nano", "emacs", "emacsclient", "hx", "micro", "kak"}
_GOTO_EDITORS = {"code", "code-insiders", "codium", "cursor"}


def editor_command(
    path: Path,
    line: int,
    environ: Mapping[str, str] | None = None,
) -> list[str] | None:
    """Build the command that opens ``path`` at ``line``, or None if no editor is known.

    Preference order: ``$VISUAL``, ``$EDITOR``, then VS Code's ``code`` on PATH.
    """
    if environ is None:
        environ = os.environ

    for var in ("VISUAL", "EDITOR"):
        value = environ.get(var, "").strip()
        if not value:
            continue
        parts = shlex.split(value)
        program = Path(parts[0]).name.lower()
        if program in _GOTO_EDITORS:
            return parts + ["-g", f"{path}:{line}"]
        if program in _PLUS_LINE_EDITORS:
            return parts + [f"+{line}", str(path)]
        return parts + [str(path)]

    code = shutil.which("code")
    if code:
        return [code, "-g", f"{path}:{line}"]
    return None


def open_in_editor(
    path: Path,
    line: int,
    timeout_ms: int = 2000,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Launch the editor; True if it started.

    Waits at most ``timeout_ms`` for the launcher. An editor still running
    after that counts as launched and is left alone.
    """
    command = editor_command(path, line, environ)
    if command is None:
        logger.info("No editor configured; set $EDITOR to open %s:%d", path, line)
        return False

    logger.debug("Opening editor: %s", " ".join(command))
    try:
        process = subprocess.Popen(command)
    except OSError as exc:
        logger.warning("Could not start editor %s: %s", command[0], exc)
        return False

    try:
        returncode = process.wait(timeout=max(timeout_ms, 0) / 1000)
    except subprocess.TimeoutExpired:
        return True

    if returncode != 0:
        logger.warning("Editor %s exited with code %d", command[0], returncode)
        return False
    return True
