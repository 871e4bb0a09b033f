"""Rule-based fix synthesis for actionable issues."""

from __future__ import annotations

import re

from commitguard.core.models import Fix, Issue, RewriteStrategy, Rule
from commitguard.scanner.detector import KNOWN_GLOBALS, declared_identifiers, source_lines

_COLLECTION_USE_RE = re.compile(r"\.(?:push|unshift)\(|\[[^\]]*\]\s*=(?!=)")
_STRING_USE_RE = re.compile(r"\+=\s*[\"'`]")
_ARITHMETIC_USE_RE = re.compile(r"\+\+|--|[-+*/%]=")


class FixSynthesizer:
    """Turns actionable issues into literal line substitutions."""

    def __init__(self, rules: list[Rule]):
        self.rules = {rule.rule_id: rule for rule in rules}

    def try_fix(self, issue: Issue, source: str) -> Fix | None:
        """Try to generate a fix. Returns None if no safe rewrite exists."""
        if not issue.actionable:
            return None
        rule = self.rules.get(issue.rule_id)
        if rule is None or rule.strategy is None:
            return None

        lines = source_lines(source)
        if issue.line < 1 or issue.line > len(lines):
            return None
        line = lines[issue.line - 1]

        handler = self._get_handler(rule.strategy)
        replacement = handler(rule, line, source)
        if replacement is None or replacement == line:
            return None

        return Fix(
            file=issue.file,
            line=issue.line,
            original_text=line,
            replacement_text=replacement,
            rule_id=rule.rule_id,
            description=rule.suggestion or rule.message,
        )

    def synthesize(self, issues: list[Issue], sources: dict[str, str]) -> list[Fix]:
        """Generate at most one fix per (file, line), most severe issue first.

        A name gets at most one inserted declaration per file, placed at its
        first flagged line so it precedes every later use.
        """
        fixes: list[Fix] = []
        taken: set[tuple[str, int]] = set()
        inserted: set[tuple[str, str]] = set()
        ordered = sorted(
            (i for i in issues if i.actionable),
            key=lambda i: (i.file, i.line, i.severity.rank),
        )
        for issue in ordered:
            key = (issue.file, issue.line)
            if key in taken or issue.file not in sources:
                continue
            name = self._declared_name(issue, sources[issue.file])
            if name is not None and (issue.file, name) in inserted:
                continue
            fix = self.try_fix(issue, sources[issue.file])
            if fix is not None:
                fixes.append(fix)
                taken.add(key)
                if name is not None:
                    inserted.add((issue.file, name))
        return fixes

    def _declared_name(self, issue: Issue, source: str) -> str | None:
        """Identifier an insert-declaration rule would declare for ``issue``."""
        rule = self.rules.get(issue.rule_id)
        if rule is None or rule.strategy is not RewriteStrategy.INSERT_DECLARATION:
            return None
        lines = source_lines(source)
        if issue.line < 1 or issue.line > len(lines):
            return None
        match = rule.pattern.search(lines[issue.line - 1])
        return match.group(1) if match else None

    def _get_handler(self, strategy: RewriteStrategy):
        handlers = {
            RewriteStrategy.TOKEN: self._rewrite_token,
            RewriteStrategy.CALL: self._rewrite_call,
            RewriteStrategy.COMMENT_OUT: self._comment_out,
            RewriteStrategy.INSERT_DECLARATION: self._insert_declaration,
        }
        return handlers[strategy]

    def _rewrite_token(self, rule: Rule, line: str, source: str) -> str | None:
        """Literal token substitution, e.g. ``var`` -> ``let``."""
        if not rule.find:
            return None
        return re.sub(rule.find, rule.replace, line)

    def _rewrite_call(self, rule: Rule, line: str, source: str) -> str | None:
        """Capture-and-re-emit; only when the capture is unambiguous."""
        if not rule.find:
            return None
        matches = list(re.finditer(rule.find, line))
        if len(matches) != 1:
            return None
        match = matches[0]
        return line[: match.start()] + match.expand(rule.replace) + line[match.end():]

    def _comment_out(self, rule: Rule, line: str, source: str) -> str | None:
        stripped = line.lstrip()
        if not stripped or stripped.startswith("//"):
            return None
        indent = line[: len(line) - len(stripped)]
        return f"{indent}// {stripped}"

    def _insert_declaration(self, rule: Rule, line: str, source: str) -> str | None:
        """Prepend ``let name = <default>;`` before the flagged line."""
        match = rule.pattern.search(line)
        if match is None:
            return None
        name = match.group(1)
        if name in KNOWN_GLOBALS or name in declared_identifiers(source):
            return None

        usage = line[match.end(1):].lstrip()
        if _COLLECTION_USE_RE.match(usage):
            initial = "[]"
        elif _STRING_USE_RE.match(usage):
            initial = '""'
        elif _ARITHMETIC_USE_RE.match(usage):
            initial = "0"
        else:
            return None

        newline = "\r\n" if "\r\n" in source else "\n"
        indent = line[: len(line) - len(line.lstrip())]
        return f"{indent}let {name} = {initial};{newline}{line}"
