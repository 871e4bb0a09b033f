"""Issue detection over whole-file content.

Every rule is evaluated against the entire current file so that rules needing
file-wide context (declared identifiers) see it. Actionability is narrower: an
issue is only actionable when its line is part of the staged change, the
file's line numbers came from real hunk headers, and the severity is critical
or high.
"""

from __future__ import annotations

import re

from commitguard.core.models import Issue, Rule, StagedChangeMap

_DECLARATION_RE = re.compile(r"\b(?:var|let|const)\s+([A-Za-z_$][\w$]*)")
_DESTRUCTURING_RE = re.compile(r"\b(?:var|let|const)\s*[{\[]([^}\]]*)[}\]]")
_FUNCTION_RE = re.compile(r"\bfunction\s*\*?\s*([A-Za-z_$][\w$]*)?\s*\(([^)]*)\)")
_ARROW_PARAMS_RE = re.compile(r"\(([^()]*)\)\s*=>")
_ARROW_SINGLE_RE = re.compile(r"([A-Za-z_$][\w$]*)\s*=>")
_CLASS_RE = re.compile(r"\bclass\s+([A-Za-z_$][\w$]*)")
_CATCH_RE = re.compile(r"\bcatch\s*\(\s*([A-Za-z_$][\w$]*)")
_IMPORT_DEFAULT_RE = re.compile(r"\bimport\s+([A-Za-z_$][\w$]*)\s*(?:,|from\b)")
_IMPORT_NAMED_RE = re.compile(r"\bimport\s+(?:[A-Za-z_$][\w$]*\s*,\s*)?\{([^}]*)\}")
_IMPORT_NAMESPACE_RE = re.compile(r"\bimport\s+\*\s+as\s+([A-Za-z_$][\w$]*)")
_METHOD_RE = re.compile(r"^\s*(?:static\s+)?(?:async\s+)?([A-Za-z_$][\w$]*)\s*\(([^)]*)\)\s*\{")
_IDENTIFIER_RE = re.compile(r"[A-Za-z_$][\w$]*")

_CONTROL_KEYWORDS = frozenset({"if", "for", "while", "switch", "catch", "with", "function"})

KNOWN_GLOBALS = frozenset({
    "arguments", "console", "document", "exports", "global", "globalThis",
    "module", "process", "require", "self", "this", "window",
})

_COMMENT_PREFIXES = ("//", "/*", "*", "*/", "#", "<!--")


def source_lines(source: str) -> list[str]:
    """Split on "\n" only, the way git counts lines; drop a trailing "\r"."""
    lines = source.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def is_trivial_line(line: str) -> bool:
    """Blank lines and lines that are nothing but a comment."""
    stripped = line.strip()
    if not stripped:
        return True
    return stripped.startswith(_COMMENT_PREFIXES)


def declared_identifiers(source: str) -> frozenset[str]:
    """Names declared anywhere in ``source``.

    Covers var/let/const (including destructuring), function names and
    parameters, arrow parameters, class names, catch bindings, imports and
    method parameters.
    """
    names: set[str] = set()

    names.update(_DECLARATION_RE.findall(source))
    for group in _DESTRUCTURING_RE.findall(source):
        names.update(_parameter_names(group))
    for name, params in _FUNCTION_RE.findall(source):
        if name:
            names.add(name)
        names.update(_parameter_names(params))
    for params in _ARROW_PARAMS_RE.findall(source):
        names.update(_parameter_names(params))
    names.update(_ARROW_SINGLE_RE.findall(source))
    names.update(_CLASS_RE.findall(source))
    names.update(_CATCH_RE.findall(source))
    names.update(_IMPORT_DEFAULT_RE.findall(source))
    names.update(_IMPORT_NAMESPACE_RE.findall(source))
    for group in _IMPORT_NAMED_RE.findall(source):
        for part in group.split(","):
            # "a as b" binds b
            tokens = part.split()
            if tokens:
                names.add(tokens[-1])

    for line in source.splitlines():
        method = _METHOD_RE.match(line)
        if method and method.group(1) not in _CONTROL_KEYWORDS:
            names.update(_parameter_names(method.group(2)))

    return frozenset(n for n in names if _IDENTIFIER_RE.fullmatch(n))


def _parameter_names(params: str) -> set[str]:
    """Extract bound names from a parameter or destructuring list."""
    names = set()
    for part in params.split(","):
        part = part.split("=", 1)[0]
        part = part.replace("...", " ").strip(" \t{}[]")
        if ":" in part:
            # { key: alias } binds alias
            part = part.split(":", 1)[1].strip(" \t{}[]")
        match = _IDENTIFIER_RE.match(part)
        if match:
            names.add(match.group(0))
    return names


def detect_issues(
    file: str,
    source: str,
    staged: StagedChangeMap,
    rules: list[Rule],
) -> list[Issue]:
    """Evaluate ``rules`` against every non-trivial line of ``source``."""
    issues: list[Issue] = []
    staged_lines = staged.lines_for(file)
    reliable = staged.is_reliable(file)
    declared: frozenset[str] | None = None

    for line_no, line in enumerate(source_lines(source), start=1):
        if is_trivial_line(line):
            continue
        for rule in rules:
            match = rule.pattern.search(line)
            if match is None:
                continue
            if rule.checks_declaration:
                if declared is None:
                    declared = declared_identifiers(source)
                name = match.group(1)
                if name in declared or name in KNOWN_GLOBALS:
                    continue
            issues.append(Issue(
                rule_id=rule.rule_id,
                file=file,
                line=line_no,
                severity=rule.severity,
                message=rule.message,
                matched_text=match.group(0),
                actionable=(
                    reliable
                    and line_no in staged_lines
                    and rule.severity.is_fixable
                ),
                suggestion=rule.suggestion,
            ))

    return issues
