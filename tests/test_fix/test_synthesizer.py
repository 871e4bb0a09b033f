"""Tests for rule-based fix synthesis."""

from __future__ import annotations

import pytest

from commitguard.core.models import Issue, Severity, StagedChangeMap
from commitguard.fix.applier import PatchApplier
from commitguard.fix.backup import BackupSession
from commitguard.fix.synthesizer import FixSynthesizer
from commitguard.scanner.detector import detect_issues
from commitguard.scanner.rules import DEFAULT_RULES


@pytest.fixture
def synthesizer() -> FixSynthesizer:
    return FixSynthesizer(DEFAULT_RULES)


def _issues(source: str, lines: set[int], file: str = "a.js") -> list[Issue]:
    staged = StagedChangeMap(files={file: frozenset(lines)})
    return detect_issues(file, source, staged, DEFAULT_RULES)


def _issue(rule_id: str, line: int, severity: Severity = Severity.HIGH, actionable: bool = True) -> Issue:
    return Issue(
        rule_id=rule_id,
        file="a.js",
        line=line,
        severity=severity,
        message="test",
        matched_text="",
        actionable=actionable,
    )


class TestFixSynthesizer:
    def test_empty_catch_gets_logging(self, synthesizer: FixSynthesizer):
        source = "try {\n  run();\n} catch (e) {}\n"
        fixes = synthesizer.synthesize(_issues(source, {3}), {"a.js": source})

        assert len(fixes) == 1
        fix = fixes[0]
        assert fix.line == 3
        assert fix.original_text == "} catch (e) {}"
        assert fix.replacement_text == "} catch (e) { console.error(e); }"
        assert fix.rule_id == "QUAL-004"

    def test_debugger_is_commented_out_keeping_indent(self, synthesizer: FixSynthesizer):
        source = "function f() {\n    debugger;\n}\n"
        fix = synthesizer.try_fix(_issue("QUAL-005", 2), source)

        assert fix is not None
        assert fix.replacement_text == "    // debugger;"

    def test_token_rewrite(self, synthesizer: FixSynthesizer):
        source = "var count = 0;\n"
        fix = synthesizer.try_fix(_issue("MOD-001", 1), source)

        assert fix is not None
        assert fix.replacement_text == "let count = 0;"

    def test_loose_null_rewrite(self, synthesizer: FixSynthesizer):
        source = "if (a == null || b != null) {}\n"
        fix = synthesizer.try_fix(_issue("MOD-002", 1), source)

        assert fix is not None
        assert fix.replacement_text == "if (a === null || b !== null) {}"

    def test_call_rewrite_requires_single_match(self, synthesizer: FixSynthesizer):
        single = "if (list.indexOf(x) !== -1) {}\n"
        double = "if (a.indexOf(x) !== -1 && b.indexOf(y) !== -1) {}\n"

        fix = synthesizer.try_fix(_issue("MOD-003", 1), single)
        assert fix is not None
        assert fix.replacement_text == "if (list.includes(x)) {}"

        assert synthesizer.try_fix(_issue("MOD-003", 1), double) is None

    def test_insert_declaration_arithmetic(self, synthesizer: FixSynthesizer):
        source = "function f() {\n  total += 1;\n}\n"
        fixes = synthesizer.synthesize(_issues(source, {2}), {"a.js": source})

        assert len(fixes) == 1
        assert fixes[0].original_text == "  total += 1;"
        assert fixes[0].replacement_text == "  let total = 0;\n  total += 1;"

    def test_insert_declaration_collection(self, synthesizer: FixSynthesizer):
        source = "results.push(item);\n"
        fix = synthesizer.try_fix(_issue("DECL-001", 1), source)

        assert fix is not None
        assert fix.replacement_text == "let results = [];\nresults.push(item);"

    def test_insert_declaration_string(self, synthesizer: FixSynthesizer):
        source = "html += '<li>';\n"
        fix = synthesizer.try_fix(_issue("DECL-001", 1), source)

        assert fix is not None
        assert fix.replacement_text.startswith('let html = "";')

    def test_insert_declaration_keeps_crlf(self, synthesizer: FixSynthesizer):
        source = "count++;\r\nother();\r\n"
        fix = synthesizer.try_fix(_issue("DECL-001", 1), source)

        assert fix is not None
        assert fix.replacement_text == "let count = 0;\r\ncount++;"

    def test_insert_declaration_skips_declared_name(self, synthesizer: FixSynthesizer):
        source = "let count = 0;\ncount++;\n"
        assert synthesizer.try_fix(_issue("DECL-001", 2), source) is None

    def test_non_actionable_issue_gets_no_fix(self, synthesizer: FixSynthesizer):
        source = "debugger;\n"
        assert synthesizer.try_fix(_issue("QUAL-005", 1, actionable=False), source) is None

    def test_rule_without_strategy_gets_no_fix(self, synthesizer: FixSynthesizer):
        source = 'const password = "secret";\n'
        assert synthesizer.try_fix(_issue("SEC-001", 1, Severity.CRITICAL), source) is None

    def test_line_out_of_range(self, synthesizer: FixSynthesizer):
        assert synthesizer.try_fix(_issue("QUAL-005", 9), "debugger;\n") is None

    def test_one_fix_per_line(self, synthesizer: FixSynthesizer):
        issues = [_issue("QUAL-005", 1), _issue("QUAL-005", 1)]
        fixes = synthesizer.synthesize(issues, {"a.js": "debugger;\n"})
        assert len(fixes) == 1

    def test_fixes_only_for_staged_lines(self, synthesizer: FixSynthesizer):
        source = "debugger;\nrun();\ndebugger;\n"
        fixes = synthesizer.synthesize(_issues(source, {3}), {"a.js": source})
        assert [f.line for f in fixes] == [3]

    def test_repeated_undeclared_name_is_declared_once(self, synthesizer: FixSynthesizer):
        source = "function f() {\n  total += 1;\n  total += 2;\n}\n"
        fixes = synthesizer.synthesize(_issues(source, {2, 3}), {"a.js": source})

        assert [f.line for f in fixes] == [2]
        assert fixes[0].replacement_text == "  let total = 0;\n  total += 1;"

    def test_declaration_applies_cleanly_for_repeated_use(self, synthesizer: FixSynthesizer, tmp_path):
        source = "function f() {\n  total += 1;\n  total += 2;\n}\n"
        (tmp_path / "a.js").write_text(source)
        fixes = synthesizer.synthesize(_issues(source, {2, 3}), {"a.js": source})

        PatchApplier(tmp_path, BackupSession(tmp_path)).apply_file("a.js", fixes)

        result = (tmp_path / "a.js").read_text()
        assert result.count("let total") == 1
        assert result == "function f() {\n  let total = 0;\n  total += 1;\n  total += 2;\n}\n"

    def test_different_names_each_get_a_declaration(self, synthesizer: FixSynthesizer):
        source = "total += 1;\nitems.push(total);\ntotal += 2;\n"
        fixes = synthesizer.synthesize(_issues(source, {1, 2, 3}), {"a.js": source})

        assert [f.line for f in fixes] == [1, 2]
