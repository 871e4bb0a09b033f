"""Re-stage fixed files and commit them without re-triggering the hook."""

from __future__ import annotations

import logging
import re

from commitguard.core.config import SKIP_ENV_VAR, FixConfig
from commitguard.core.errors import GitError
from commitguard.core.git import Git
from commitguard.core.models import RecommitResult

logger = logging.getLogger("commitguard.fix")

TICKET_RE = re.compile(r"[A-Z][A-Z0-9]+-\d+")
DEFAULT_TICKET = "chore"


def ticket_from_branch(branch: str) -> str:
    """First ``ABC-123`` style token of ``branch``, or ``chore``."""
    match = TICKET_RE.search(branch or "")
    return match.group(0) if match else DEFAULT_TICKET


class Recommitter:
    """Creates the follow-up commit containing applied fixes."""

    def __init__(self, git: Git, config: FixConfig | None = None):
        self.git = git
        self.config = config or FixConfig()

    def build_message(self, file_count: int) -> str:
        if self.config.commit_message:
            return self.config.commit_message
        try:
            branch = self.git.current_branch()
        except GitError as exc:
            logger.debug("Could not determine branch: %s", exc)
            branch = ""
        return f"{ticket_from_branch(branch)}: apply commitguard fixes to {file_count} file(s)"

    def restage(self, files: list[str]) -> None:
        self.git.add(files)

    def commit(self, message: str, files: list[str] | None = None) -> RecommitResult:
        """Commit whatever is staged with the hook bypass set."""
        files = list(files or [])
        try:
            self.git.commit(message, env={SKIP_ENV_VAR: "1"})
        except GitError as exc:
            logger.error("Recommit failed: %s", exc.stderr.strip() or exc)
            return RecommitResult(
                success=False,
                message=f"Commit failed: {exc.stderr.strip() or exc}",
                commit_message=message,
                files=files,
            )
        logger.info("Committed %d file(s): %s", len(files), message)
        return RecommitResult(
            success=True,
            message="Committed fixes",
            commit_message=message,
            files=files,
        )

    def recommit(self, files: list[str]) -> RecommitResult:
        """Re-stage ``files`` and commit them in one step."""
        message = self.build_message(len(files))
        try:
            self.restage(files)
        except GitError as exc:
            logger.error("Could not re-stage fixed files: %s", exc.stderr.strip() or exc)
            return RecommitResult(
                success=False,
                message=f"Re-staging failed: {exc.stderr.strip() or exc}",
                commit_message=message,
                files=list(files),
            )
        return self.commit(message, files)
