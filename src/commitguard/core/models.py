"""Shared data models used across commitguard modules."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


class Severity(enum.Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def is_fixable(self) -> bool:
        """Only critical and high findings are eligible for automatic rewriting."""
        return self in (Severity.CRITICAL, Severity.HIGH)

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


class RewriteStrategy(enum.Enum):
    """Closed set of rewrite strategies a rule may carry."""

    TOKEN = "token"
    CALL = "call"
    COMMENT_OUT = "comment_out"
    INSERT_DECLARATION = "insert_declaration"


class CancelPolicy(enum.Enum):
    """What a timed-out or non-interactive review resolves to."""

    CANCEL = "cancel"
    SKIP = "skip"
    AUTO_APPLY = "auto-apply"


class ReviewMode(enum.Enum):
    SESSION = "session"
    FILE = "file"
    FIX = "fix"


class ReviewState(enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"


class DecisionSource(enum.Enum):
    USER = "user"
    TIMEOUT_DEFAULT = "timeout-default"
    NON_INTERACTIVE_DEFAULT = "non-interactive-default"
    SIMULATED = "simulated"


@dataclass(frozen=True)
class Rule:
    """A single detection rule.

    ``find``/``replace`` parameterise the rewrite strategy. When
    ``checks_declaration`` is set, capture group 1 of ``pattern`` is an
    identifier and the rule only fires if that identifier is undeclared.
    """

    rule_id: str
    pattern: re.Pattern[str]
    severity: Severity
    message: str
    category: str = "code_quality"
    suggestion: str = ""
    strategy: RewriteStrategy | None = None
    find: str = ""
    replace: str = ""
    checks_declaration: bool = False


@dataclass(frozen=True)
class StagedChangeMap:
    """Lines of the new file versions that belong to the staged change."""

    files: dict[str, frozenset[int]] = field(default_factory=dict)
    unreliable: frozenset[str] = frozenset()

    def lines_for(self, file: str) -> frozenset[int]:
        return self.files.get(file, frozenset())

    def is_staged(self, file: str, line: int) -> bool:
        return line in self.lines_for(file)

    def is_reliable(self, file: str) -> bool:
        """False when the file was mapped without real hunk coordinates."""
        return file not in self.unreliable

    def __contains__(self, file: object) -> bool:
        return file in self.files

    def __iter__(self):
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)


@dataclass(frozen=True)
class Issue:
    """A rule match on one line of a file."""

    rule_id: str
    file: str
    line: int
    severity: Severity
    message: str
    matched_text: str
    actionable: bool
    suggestion: str = ""

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Fix:
    """A literal original-to-replacement substitution for one line."""

    file: str
    line: int
    original_text: str
    replacement_text: str
    rule_id: str = ""
    description: str = ""


@dataclass
class BackupRecord:
    """Sibling copy of a file taken before its first write."""

    file: Path
    backup_path: Path
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ReviewDecision:
    """Resolution of a single review unit."""

    unit: str
    accepted: bool
    source: DecisionSource
    state: ReviewState
    fixes: tuple[Fix, ...] = ()
    aborts: bool = False


@dataclass
class PatchResult:
    """Outcome of applying one file's fixes."""

    file: str
    applied: list[Fix] = field(default_factory=list)
    skipped: list[Fix] = field(default_factory=list)
    modified: bool = False
    error: str = ""


@dataclass
class RecommitResult:
    """Outcome of re-staging and committing fixed files."""

    success: bool
    message: str
    commit_message: str = ""
    files: list[str] = field(default_factory=list)
    committed_at: datetime = field(default_factory=datetime.now)
