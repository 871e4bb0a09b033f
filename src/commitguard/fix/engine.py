"""Fix engine: reviews, applies and finalizes fixes for one commit attempt."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from commitguard.core import output
from commitguard.core.config import GuardConfig
from commitguard.core.errors import GitError
from commitguard.core.git import Git
from commitguard.core.models import (
    Fix,
    Issue,
    PatchResult,
    RecommitResult,
    ReviewDecision,
    ReviewMode,
    ReviewState,
)
from commitguard.fix.applier import PatchApplier
from commitguard.fix.backup import BackupSession
from commitguard.fix.recommit import Recommitter
from commitguard.fix.synthesizer import FixSynthesizer
from commitguard.review.confirm import ConfirmationController
from commitguard.review.editor import open_in_editor
from commitguard.scanner.engine import ScanResult
from commitguard.scanner.rules import load_rules

logger = logging.getLogger("commitguard.fix")

EXIT_ALLOW = 0
EXIT_BLOCK = 1


@dataclass
class FixOutcome:
    """What happened to the fixes of one run, and whether the commit may proceed."""

    exit_code: int
    reason: str
    fixes: list[Fix] = field(default_factory=list)
    decisions: list[ReviewDecision] = field(default_factory=list)
    patches: list[PatchResult] = field(default_factory=list)
    recommit: RecommitResult | None = None
    restore_failures: list[str] = field(default_factory=list)
    opened_in_editor: list[str] = field(default_factory=list)

    @property
    def modified_files(self) -> list[str]:
        return [p.file for p in self.patches if p.modified]


class FixEngine:
    """Drives fix synthesis, review, application and the follow-up commit."""

    def __init__(
        self,
        project_path: Path | None = None,
        config: GuardConfig | None = None,
        controller: ConfirmationController | None = None,
        git: Git | None = None,
        synthesizer: FixSynthesizer | None = None,
        out: Console | None = None,
    ):
        self.project_path = (project_path or Path.cwd()).resolve()
        self.config = config or GuardConfig()
        self.controller = controller or ConfirmationController(self.config.review)
        self.git = git or Git(self.project_path)
        self.synthesizer = synthesizer or FixSynthesizer(load_rules(self.config.scan))
        self.recommitter = Recommitter(self.git, self.config.fix)
        self.out = out or output.console

    def run(self, scan: ScanResult) -> FixOutcome:
        fixes = self.synthesizer.synthesize(scan.actionable, scan.sources)
        opened = self._open_unfixable(scan.actionable, fixes)

        if not fixes:
            return FixOutcome(EXIT_ALLOW, "no fixes to apply", opened_in_editor=opened)

        outcome = self.review(fixes)
        outcome.opened_in_editor = opened
        if outcome.exit_code != EXIT_ALLOW:
            return outcome

        accepted = [fix for d in outcome.decisions if d.accepted for fix in d.fixes]
        if not accepted:
            outcome.reason = "all fixes declined"
            return outcome

        return self.apply_and_finalize(accepted, outcome)

    def review(self, fixes: list[Fix]) -> FixOutcome:
        """Ask for each review unit; stop at the first decision that aborts."""
        outcome = FixOutcome(EXIT_ALLOW, "reviewed", fixes=list(fixes))
        show_diff = self.config.review.show_diff

        for unit, unit_fixes in self._review_units(fixes):
            output.print_fix_preview(unit, unit_fixes, show_diff, out=self.out)
            decision = self.controller.decide(
                unit, f"Apply {len(unit_fixes)} fix(es) for {unit}?", unit_fixes, allow_cancel=True,
            )
            outcome.decisions.append(decision)
            logger.info("Review %s: accepted=%s source=%s", unit, decision.accepted, decision.source.value)
            if decision.aborts:
                outcome.exit_code = EXIT_BLOCK
                outcome.reason = "commit cancelled"
                return outcome

        return outcome

    def apply_and_finalize(self, accepted: list[Fix], outcome: FixOutcome | None = None) -> FixOutcome:
        """Apply ``accepted`` fixes, confirm the result, then commit or restore."""
        if outcome is None:
            outcome = FixOutcome(EXIT_ALLOW, "applied", fixes=list(accepted))

        with BackupSession(self.project_path, self.config.fix.backup_suffix) as backups:
            applier = PatchApplier(self.project_path, backups)
            for file, file_fixes in _group_by_file(accepted).items():
                outcome.patches.append(applier.apply_file(file, file_fixes))
            output.print_patch_results(outcome.patches, out=self.out)

            modified = outcome.modified_files
            if not modified:
                outcome.exit_code = EXIT_ALLOW
                outcome.reason = "no file changed"
                return outcome

            final = self.controller.decide(
                "final", f"Fixes applied to {len(modified)} file(s). Keep them and continue?",
            )
            outcome.decisions.append(final)

            if not final.accepted:
                outcome.restore_failures = backups.abort_all()
                declined = final.aborts or final.state is not ReviewState.TIMED_OUT
                outcome.exit_code = EXIT_BLOCK if declined else EXIT_ALLOW
                outcome.reason = "fixes reverted"
                self.out.print("  [yellow]Files restored to their original state.[/yellow]")
                return outcome

            return self._finalize(modified, backups, outcome)

    def _finalize(self, modified: list[str], backups: BackupSession, outcome: FixOutcome) -> FixOutcome:
        if self.config.fix.auto_recommit:
            result = self.recommitter.recommit(modified)
            outcome.recommit = result
            output.print_recommit_result(result, out=self.out)
            if not result.success:
                # leave files modified and backups on disk for manual recovery
                outcome.exit_code = EXIT_BLOCK
                outcome.reason = "recommit failed"
                return outcome
            outcome.reason = "fixes committed"
        else:
            try:
                self.recommitter.restage(modified)
            except GitError as exc:
                logger.error("Could not re-stage fixed files: %s", exc)
                outcome.exit_code = EXIT_BLOCK
                outcome.reason = "re-staging failed"
                return outcome
            outcome.reason = "fixes staged"

        backups.commit_all()
        outcome.exit_code = EXIT_ALLOW
        return outcome

    def _review_units(self, fixes: list[Fix]) -> list[tuple[str, list[Fix]]]:
        mode = self.config.review.mode
        if mode is ReviewMode.SESSION:
            return [("all staged files", list(fixes))]
        if mode is ReviewMode.FIX:
            return [(f"{fix.file}:{fix.line}", [fix]) for fix in fixes]
        return list(_group_by_file(fixes).items())

    def _open_unfixable(self, actionable: list[Issue], fixes: list[Fix]) -> list[str]:
        """Open the editor at the first unfixable actionable issue of each file."""
        review = self.config.review
        if not review.auto_open_editor or not self.controller.interactive:
            return []

        fixed = {(fix.file, fix.line) for fix in fixes}
        opened: list[str] = []
        for issue in sorted(actionable, key=lambda i: (i.file, i.line)):
            if (issue.file, issue.line) in fixed or issue.file in opened:
                continue
            if open_in_editor(self.project_path / issue.file, issue.line, review.editor_timeout_ms):
                opened.append(issue.file)
        return opened


def _group_by_file(fixes: list[Fix]) -> dict[str, list[Fix]]:
    grouped: dict[str, list[Fix]] = defaultdict(list)
    for fix in fixes:
        grouped[fix.file].append(fix)
    return dict(grouped)
