"""Tests for issue detection and declared-identifier extraction."""

from __future__ import annotations

from commitguard.core.models import Severity, StagedChangeMap
from commitguard.diff.hunks import parse_staged_diff
from commitguard.scanner.detector import (
    declared_identifiers,
    detect_issues,
    is_trivial_line,
    source_lines,
)
from commitguard.scanner.rules import DEFAULT_RULES


def _numbered_source(lines: dict[int, str], total: int) -> str:
    """Build a file of ``total`` lines, with the given lines filled in."""
    body = [lines.get(n, f"step{n}();") for n in range(1, total + 1)]
    return "\n".join(body) + "\n"


class TestStagedVersusContext:
    def test_empty_catch_on_staged_line_is_actionable(self):
        source = _numbered_source({12: "  catch (e) {}"}, 14)
        staged = StagedChangeMap(files={"src/app.js": frozenset({12})})

        issues = detect_issues("src/app.js", source, staged, DEFAULT_RULES)

        catch_issues = [i for i in issues if i.rule_id == "QUAL-004"]
        assert len(catch_issues) == 1
        issue = catch_issues[0]
        assert issue.line == 12
        assert issue.severity == Severity.HIGH
        assert issue.actionable is True

    def test_token_on_context_line_is_informational(self):
        diff = (
            "diff --git a/src/auth.js b/src/auth.js\n"
            "--- a/src/auth.js\n"
            "+++ b/src/auth.js\n"
            "@@ -1,2 +1,3 @@\n"
            ' const userToken = "abc123";\n'
            "+const retries = 3;\n"
            " module.exports = userToken;\n"
        )
        source = 'const userToken = "abc123";\nconst retries = 3;\nmodule.exports = userToken;\n'
        staged = parse_staged_diff(diff)

        issues = detect_issues("src/auth.js", source, staged, DEFAULT_RULES)

        token_issues = [i for i in issues if i.rule_id == "SEC-003"]
        assert len(token_issues) == 1
        assert token_issues[0].line == 1
        assert token_issues[0].severity == Severity.CRITICAL
        assert token_issues[0].actionable is False


class TestActionability:
    def test_actionable_implies_staged(self):
        source = 'var a = 1;\nconst password = "hunter2";\neval(input);\nconst password2 = "x";\n'
        staged = StagedChangeMap(files={"a.js": frozenset({2, 3})})

        issues = detect_issues("a.js", source, staged, DEFAULT_RULES)

        assert issues
        for issue in issues:
            if issue.actionable:
                assert staged.is_staged("a.js", issue.line)
                assert issue.severity.is_fixable

    def test_medium_severity_is_never_actionable(self):
        source = "var a = 1;\n"
        staged = StagedChangeMap(files={"a.js": frozenset({1})})

        issues = detect_issues("a.js", source, staged, DEFAULT_RULES)

        var_issue = next(i for i in issues if i.rule_id == "MOD-001")
        assert var_issue.actionable is False

    def test_unreliable_file_is_never_actionable(self):
        source = "  catch (e) {}\n"
        staged = StagedChangeMap(
            files={"a.js": frozenset({1})},
            unreliable=frozenset({"a.js"}),
        )

        issues = detect_issues("a.js", source, staged, DEFAULT_RULES)

        assert issues
        assert not any(i.actionable for i in issues)

    def test_blank_and_comment_lines_are_skipped(self):
        source = '\n// const password = "secret";\n   \n'
        staged = StagedChangeMap(files={"a.js": frozenset({1, 2, 3})})
        assert detect_issues("a.js", source, staged, DEFAULT_RULES) == []

    def test_detection_is_idempotent(self):
        source = 'var x = 1;\ncount++;\nif (a == null) {}\ndebugger;\n'
        staged = StagedChangeMap(files={"a.js": frozenset({1, 2, 3, 4})})

        first = detect_issues("a.js", source, staged, DEFAULT_RULES)
        second = detect_issues("a.js", source, staged, DEFAULT_RULES)

        assert first == second


class TestUndeclaredIdentifiers:
    def test_undeclared_counter_is_flagged(self):
        source = "function run() {\n  total += 1;\n}\n"
        staged = StagedChangeMap(files={"a.js": frozenset({2})})

        issues = detect_issues("a.js", source, staged, DEFAULT_RULES)

        decl = [i for i in issues if i.rule_id == "DECL-001"]
        assert len(decl) == 1
        assert decl[0].line == 2
        assert decl[0].actionable is True

    def test_declared_anywhere_in_file_is_not_flagged(self):
        source = "count++;\nlet count = 0;\n"
        staged = StagedChangeMap(files={"a.js": frozenset({1})})

        issues = detect_issues("a.js", source, staged, DEFAULT_RULES)

        assert not any(i.rule_id == "DECL-001" for i in issues)

    def test_known_globals_are_not_flagged(self):
        source = "window[key] = value;\n"
        staged = StagedChangeMap(files={"a.js": frozenset({1})})

        issues = detect_issues("a.js", source, staged, DEFAULT_RULES)

        assert not any(i.rule_id == "DECL-001" for i in issues)


class TestDeclaredIdentifiers:
    def test_variable_declarations(self):
        names = declared_identifiers("var a = 1;\nlet b;\nconst c = 3;\n")
        assert {"a", "b", "c"} <= names

    def test_destructuring(self):
        names = declared_identifiers("const { a, b: renamed } = obj;\nconst [x, ...rest] = arr;\n")
        assert {"a", "renamed", "x", "rest"} <= names
        assert "b" not in names

    def test_functions_and_parameters(self):
        names = declared_identifiers("function add(left, right = 2) {\n  return left + right;\n}\n")
        assert {"add", "left", "right"} <= names

    def test_arrow_parameters(self):
        names = declared_identifiers("const f = (p, q) => p + q;\nitems.map(item => item.id);\n")
        assert {"f", "p", "q", "item"} <= names

    def test_classes_catch_and_imports(self):
        source = (
            'import React, { useState as useLocal } from "react";\n'
            'import * as fs from "fs";\n'
            "class Widget {}\n"
            "try { go(); } catch (err) { log(err); }\n"
        )
        names = declared_identifiers(source)
        assert {"React", "useLocal", "fs", "Widget", "err"} <= names

    def test_method_parameters(self):
        source = "class A {\n  render(props, state) {\n    if (props) {\n    }\n  }\n}\n"
        names = declared_identifiers(source)
        assert {"props", "state"} <= names


class TestHelpers:
    def test_source_lines_match_git_counting(self):
        assert source_lines("a\r\nb\n\nc") == ["a", "b", "", "c"]
        assert source_lines("a\n") == ["a"]
        assert source_lines("") == []

    def test_trivial_lines(self):
        assert is_trivial_line("")
        assert is_trivial_line("   // note")
        assert is_trivial_line(" * jsdoc")
        assert not is_trivial_line("x = 1; // trailing")
