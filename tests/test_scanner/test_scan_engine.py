"""Tests for the scanner engine and rule loading."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from commitguard.core.config import GuardConfig, ScanConfig
from commitguard.core.models import Severity, StagedChangeMap
from commitguard.scanner.engine import Scanner
from commitguard.scanner.rules import DEFAULT_RULES, load_rules


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.js").write_text(
        'const apiKey = "sk-live-123";\n'
        "debugger;\n"
        "var legacy = true;\n"
    )
    return tmp_path


class TestScanner:
    def test_scan_collects_issues_and_sources(self, project: Path):
        staged = StagedChangeMap(files={"src/app.js": frozenset({2})})
        result = Scanner(project).scan(staged)

        assert result.files_scanned == 1
        assert "src/app.js" in result.sources
        ids = {i.rule_id for i in result.issues}
        assert {"SEC-002", "QUAL-005", "MOD-001"} <= ids

        actionable = result.actionable
        assert [i.rule_id for i in actionable] == ["QUAL-005"]
        assert len(result.informational) == len(result.issues) - 1

    def test_missing_file_is_skipped_with_warning(self, project: Path, caplog):
        staged = StagedChangeMap(files={"src/gone.js": frozenset({1}), "src/app.js": frozenset({1})})

        with caplog.at_level(logging.WARNING, logger="commitguard.scanner"):
            result = Scanner(project).scan(staged)

        assert "src/gone.js" in result.skipped
        assert "src/app.js" in result.sources
        assert "gone.js" in caplog.text

    def test_undecodable_file_is_skipped(self, project: Path):
        (project / "src" / "blob.js").write_bytes(b"\xff\xfe\x00bad")
        staged = StagedChangeMap(files={"src/blob.js": frozenset({1})})

        result = Scanner(project).scan(staged)

        assert "src/blob.js" in result.skipped
        assert result.issues == []

    def test_unreliable_files_are_reported(self, project: Path):
        staged = StagedChangeMap(
            files={"src/app.js": frozenset({2})},
            unreliable=frozenset({"src/app.js"}),
        )
        result = Scanner(project).scan(staged)

        assert result.unreliable == ["src/app.js"]
        assert result.actionable == []


class TestLoadRules:
    def test_defaults(self):
        rules = load_rules()
        assert len(rules) == len(DEFAULT_RULES)
        assert len({r.rule_id for r in rules}) == len(rules)

    def test_disabled_rules_are_removed(self):
        rules = load_rules(ScanConfig(disabled_rules=("MOD-004", "PERF-002")))
        ids = {r.rule_id for r in rules}
        assert "MOD-004" not in ids
        assert "PERF-002" not in ids

    def test_severity_override(self):
        rules = load_rules(ScanConfig(severity={"PERF-001": Severity.HIGH}))
        perf = next(r for r in rules if r.rule_id == "PERF-001")
        assert perf.severity == Severity.HIGH
        original = next(r for r in DEFAULT_RULES if r.rule_id == "PERF-001")
        assert original.severity == Severity.MEDIUM

    def test_scanner_uses_configured_rules(self, tmp_path: Path):
        (tmp_path / "a.js").write_text("debugger;\n")
        config = GuardConfig(scan=ScanConfig(disabled_rules=("QUAL-005",)))
        staged = StagedChangeMap(files={"a.js": frozenset({1})})

        result = Scanner(tmp_path, config).scan(staged)

        assert result.issues == []
