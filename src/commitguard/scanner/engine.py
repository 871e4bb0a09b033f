"""Scanner engine: runs the detector over every file touched by the staged diff."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from commitguard.core.config import GuardConfig
from commitguard.core.models import Issue, Rule, StagedChangeMap
from commitguard.scanner.detector import detect_issues
from commitguard.scanner.rules import load_rules

logger = logging.getLogger("commitguard.scanner")


@dataclass
class ScanResult:
    """Issues for one invocation plus the file contents they were found in."""

    issues: list[Issue] = field(default_factory=list)
    sources: dict[str, str] = field(default_factory=dict)
    skipped: dict[str, str] = field(default_factory=dict)
    unreliable: list[str] = field(default_factory=list)

    @property
    def actionable(self) -> list[Issue]:
        return [i for i in self.issues if i.actionable]

    @property
    def informational(self) -> list[Issue]:
        return [i for i in self.issues if not i.actionable]

    @property
    def files_scanned(self) -> int:
        return len(self.sources)


class Scanner:
    """Reads touched files and evaluates the rule set against them."""

    def __init__(
        self,
        project_path: Path | None = None,
        config: GuardConfig | None = None,
        rules: list[Rule] | None = None,
    ):
        self.project_path = (project_path or Path.cwd()).resolve()
        self.config = config or GuardConfig()
        self.rules = rules if rules is not None else load_rules(self.config.scan)

    def scan(self, staged: StagedChangeMap) -> ScanResult:
        """Detect issues in every file of ``staged``; unreadable files are skipped."""
        result = ScanResult(unreliable=sorted(staged.unreliable))

        for file in sorted(staged):
            path = self.project_path / file
            try:
                source = path.read_bytes().decode("utf-8")
            except FileNotFoundError:
                logger.warning("Skipping %s: file not found in working tree", file)
                result.skipped[file] = "file not found"
                continue
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping %s: %s", file, exc)
                result.skipped[file] = str(exc)
                continue

            result.sources[file] = source
            result.issues.extend(detect_issues(file, source, staged, self.rules))

        return result
