"""Thin subprocess wrapper around the git CLI."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Mapping

from commitguard.core.errors import GitError

logger = logging.getLogger("commitguard.git")


class Git:
    """Runs git commands inside a working tree."""

    def __init__(self, repo_path: Path | None = None):
        self.repo_path = (repo_path or Path.cwd()).resolve()

    def _run(self, args: list[str], env: Mapping[str, str] | None = None) -> str:
        full_env = None
        if env:
            full_env = {**os.environ, **env}
        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                cwd=str(self.repo_path),
                env=full_env,
            )
        except OSError as exc:
            raise GitError(args, -1, str(exc)) from exc
        if result.returncode != 0:
            raise GitError(args, result.returncode, result.stderr)
        return result.stdout

    def repo_root(self) -> Path:
        return Path(self._run(["rev-parse", "--show-toplevel"]).strip())

    def hooks_dir(self) -> Path:
        """Directory git reads hooks from (honours worktrees and core.hooksPath)."""
        path = Path(self._run(["rev-parse", "--git-path", "hooks"]).strip())
        if not path.is_absolute():
            path = self.repo_path / path
        return path

    def staged_diff(self) -> str:
        """Unified diff of the index against HEAD."""
        return self._run(["diff", "--cached", "--no-color", "--no-ext-diff", "-U3"])

    def staged_files(self) -> list[str]:
        out = self._run(["diff", "--cached", "--name-only"])
        return [line for line in out.splitlines() if line.strip()]

    def unstaged_files(self) -> list[str]:
        """Tracked files whose working-tree content differs from the index."""
        out = self._run(["diff", "--name-only", "--no-ext-diff"])
        return [line for line in out.splitlines() if line.strip()]

    def has_unstaged_changes(self) -> bool:
        out = self._run(["status", "--porcelain"])
        for line in out.splitlines():
            # porcelain: XY path; Y is the worktree column, "??" is untracked
            if len(line) >= 2 and (line[1] != " " or line.startswith("??")):
                return True
        return False

    def add(self, paths: list[str]) -> None:
        if paths:
            self._run(["add", "--", *paths])

    def add_all(self) -> None:
        self._run(["add", "-A"])

    def commit(self, message: str, env: Mapping[str, str] | None = None) -> str:
        return self._run(["commit", "-m", message], env=env)

    def current_branch(self) -> str:
        try:
            return self._run(["rev-parse", "--abbrev-ref", "HEAD"]).strip()
        except GitError:
            # unborn branch: no HEAD yet
            return self._run(["symbolic-ref", "--short", "HEAD"]).strip()
