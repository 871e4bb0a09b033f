"""End-to-end commit check: staged diff -> scan -> remote review -> fixes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path

from rich.console import Console

from commitguard.core import output
from commitguard.core.config import GuardConfig, load_config
from commitguard.core.errors import GitError
from commitguard.core.git import Git
from commitguard.core.models import StagedChangeMap
from commitguard.diff.hunks import filter_meaningful_diff, parse_staged_diff
from commitguard.fix.engine import EXIT_ALLOW, FixEngine, FixOutcome
from commitguard.fix.synthesizer import FixSynthesizer
from commitguard.review.confirm import ConfirmationController
from commitguard.review.remote import RemoteFeedback, RemoteReviewer
from commitguard.scanner.engine import Scanner, ScanResult
from commitguard.scanner.rules import load_rules

logger = logging.getLogger("commitguard.pipeline")


@dataclass
class CheckResult:
    exit_code: int
    reason: str
    scan: ScanResult | None = None
    feedback: RemoteFeedback | None = None
    outcome: FixOutcome | None = None


class CommitGuard:
    """Runs one commit-time check over the current staged change."""

    def __init__(
        self,
        project_path: Path | None = None,
        config: GuardConfig | None = None,
        git: Git | None = None,
        controller: ConfirmationController | None = None,
        reviewer: RemoteReviewer | None = None,
        out: Console | None = None,
    ):
        self.project_path = (project_path or Path.cwd()).resolve()
        self.config = config or load_config(self.project_path)
        self.git = git or Git(self.project_path)
        self.out = out or output.console
        self.controller = controller or ConfirmationController(self.config.review, console=self.out)
        self.reviewer = reviewer or RemoteReviewer(self.config.remote)
        self.rules = load_rules(self.config.scan)

    def check(self) -> CheckResult:
        try:
            raw_diff = self.git.staged_diff()
        except GitError as exc:
            logger.error("Could not read staged changes: %s", exc)
            self.out.print("  [yellow]Could not read staged changes; commit allowed.[/yellow]")
            return CheckResult(EXIT_ALLOW, "staged diff unavailable")

        exclude = self.config.scan.exclude
        diff_text = filter_meaningful_diff(raw_diff, exclude)
        staged = parse_staged_diff(diff_text, exclude)
        if not staged:
            logger.info("No reviewable staged files")
            return CheckResult(EXIT_ALLOW, "nothing to review")

        staged = self._mark_partially_staged(staged)

        scan = Scanner(self.project_path, self.config, self.rules).scan(staged)
        output.print_scan_result(scan, out=self.out)

        feedback = None
        if self.config.remote.enabled:
            feedback = self.reviewer.review(diff_text)
            if feedback is not None and feedback.rate_limited:
                if self.config.remote.skip_on_rate_limit:
                    self.out.print("  [cyan]Remote review rate-limited; commit allowed.[/cyan]")
                    return CheckResult(EXIT_ALLOW, "remote review rate-limited", scan=scan, feedback=feedback)
                self.out.print("  [yellow]Remote review rate-limited; continuing with local analysis.[/yellow]")
            elif feedback is not None:
                output.print_remote_feedback(feedback, out=self.out)

        engine = FixEngine(
            self.project_path,
            self.config,
            controller=self.controller,
            git=self.git,
            synthesizer=FixSynthesizer(self.rules),
            out=self.out,
        )
        outcome = engine.run(scan)
        logger.info("Check finished: %s (exit %d)", outcome.reason, outcome.exit_code)
        return CheckResult(outcome.exit_code, outcome.reason, scan=scan, feedback=feedback, outcome=outcome)

    def _mark_partially_staged(self, staged: StagedChangeMap) -> StagedChangeMap:
        """Staged files with further unstaged edits become informational only.

        Hunk line numbers describe the index version, but the scanner reads
        the working tree, and re-staging such a file would pull in the
        unstaged edits.
        """
        try:
            dirty = set(self.git.unstaged_files())
        except GitError as exc:
            logger.warning("Could not list unstaged changes, no file will be patched: %s", exc)
            dirty = set(staged)

        partial = dirty & set(staged)
        if not partial:
            return staged
        for file in sorted(partial):
            logger.warning("%s has unstaged changes; its issues are informational only", file)
        return replace(staged, unreliable=staged.unreliable | frozenset(partial))
