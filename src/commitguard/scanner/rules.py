"""Default rule catalogue for JavaScript/TypeScript changes."""

from __future__ import annotations

import re
from dataclasses import replace

from commitguard.core.config import ScanConfig
from commitguard.core.models import RewriteStrategy, Rule, Severity


def _rule(rule_id: str, pattern: str, severity: Severity, message: str, **kwargs) -> Rule:
    return Rule(
        rule_id=rule_id,
        pattern=re.compile(pattern, kwargs.pop("flags", 0)),
        severity=severity,
        message=message,
        **kwargs,
    )


DEFAULT_RULES: list[Rule] = [
    # Security
    _rule(
        "SEC-001", r"password\s*[=:]\s*[\"'][^\"']+[\"']", Severity.CRITICAL,
        "Hardcoded password detected",
        category="security", flags=re.IGNORECASE,
        suggestion="Use environment variables or secure key management",
    ),
    _rule(
        "SEC-002", r"api[_-]?key\s*[=:]\s*[\"'][^\"']+[\"']", Severity.CRITICAL,
        "Hardcoded API key detected",
        category="security", flags=re.IGNORECASE,
        suggestion="Move to process.env.API_KEY",
    ),
    _rule(
        "SEC-003", r"token\s*[=:]\s*[\"'][^\"']+[\"']", Severity.CRITICAL,
        "Hardcoded token detected",
        category="security", flags=re.IGNORECASE,
        suggestion="Use secure token storage",
    ),
    _rule(
        "SEC-004", r"http://(?!localhost|127\.0\.0\.1)", Severity.HIGH,
        "Insecure HTTP protocol",
        category="security", flags=re.IGNORECASE,
        suggestion="Use HTTPS for all external requests",
    ),
    _rule(
        "SEC-005", r"\beval\s*\(", Severity.HIGH,
        "eval() usage detected - security risk",
        category="security",
        suggestion="Use safer alternatives like JSON.parse()",
    ),
    # Performance
    _rule(
        "PERF-001", r"\bconsole\.log\(", Severity.MEDIUM,
        "console.log in production code",
        category="performance",
        suggestion="Replace with proper logging (winston, pino) or remove",
        strategy=RewriteStrategy.COMMENT_OUT,
    ),
    _rule(
        "PERF-002", r"for\s*\(\s*(?:var|let|const)?\s*\w+\s+in\s+", Severity.MEDIUM,
        "for...in loop can be optimized",
        category="performance",
        suggestion="Use for...of, Object.keys(), or forEach()",
    ),
    # Modern JS
    _rule(
        "MOD-001", r"\bvar\s+", Severity.MEDIUM,
        "Legacy var declaration",
        category="modern_js",
        suggestion="Use 'const' for constants, 'let' for variables",
        strategy=RewriteStrategy.TOKEN, find=r"\bvar(\s+)", replace=r"let\1",
    ),
    _rule(
        "MOD-002", r"[^=!]==\s*null|!=\s*null", Severity.MEDIUM,
        "Loose equality with null",
        category="modern_js",
        suggestion="Use strict equality: === null or !== null",
        strategy=RewriteStrategy.TOKEN, find=r"(?<![=!])(==|!=)(\s*null)", replace=r"\1=\2",
    ),
    _rule(
        "MOD-003", r"\.indexOf\([^()]+\)\s*(?:!==?|>)\s*-1", Severity.LOW,
        "Legacy indexOf usage",
        category="modern_js",
        suggestion="Use .includes() for better readability",
        strategy=RewriteStrategy.CALL,
        find=r"\.indexOf\(([^()]+)\)\s*(?:!==?|>)\s*-1", replace=r".includes(\1)",
    ),
    _rule(
        "MOD-004", r"^\s*function\s+\w+\s*\(", Severity.LOW,
        "Traditional function syntax",
        category="modern_js",
        suggestion="Consider arrow functions for consistency and lexical this",
        strategy=RewriteStrategy.CALL,
        find=r"^(\s*)function\s+(\w+)\s*\(([^()]*)\)\s*\{", replace=r"\1const \2 = (\3) => {",
    ),
    # Code quality
    _rule(
        "QUAL-001", r"/\*\s*FIXME", Severity.MEDIUM,
        "FIXME comment found",
        suggestion="Address the FIXME or create an issue",
    ),
    _rule(
        "QUAL-002", r"/\*\s*HACK", Severity.MEDIUM,
        "HACK comment found",
        suggestion="Refactor to remove the hack",
    ),
    _rule(
        "QUAL-003", r"eslint-disable", Severity.MEDIUM,
        "ESLint rule disabled",
        suggestion="Fix the underlying issue instead of disabling rules",
    ),
    _rule(
        "QUAL-004", r"catch\s*\(\s*[\w$]+\s*\)\s*\{\s*\}", Severity.HIGH,
        "Empty catch block",
        category="error_handling",
        suggestion="Add proper error handling or logging",
        strategy=RewriteStrategy.CALL,
        find=r"catch\s*\(\s*([\w$]+)\s*\)\s*\{\s*\}", replace=r"catch (\1) { console.error(\1); }",
    ),
    _rule(
        "QUAL-005", r"^\s*debugger\s*;?\s*$", Severity.HIGH,
        "debugger statement left in code",
        suggestion="Remove the debugger statement before committing",
        strategy=RewriteStrategy.COMMENT_OUT,
    ),
    _rule(
        "QUAL-006", r"if\s*\([^)]*&&[^)]*&&[^)]*&&", Severity.MEDIUM,
        "Complex conditional logic",
        suggestion="Extract conditions into well-named variables or functions",
    ),
    # Undeclared identifiers: compound assignment, increment or collection use
    # of a bare name at the start of a statement.
    _rule(
        "DECL-001",
        r"^\s*([A-Za-z_$][\w$]*)\s*(?:\+\+|--|[-+*/%]=(?!=)|\.push\(|\[[^\]]*\]\s*=(?!=))",
        Severity.HIGH,
        "Possibly undeclared identifier",
        category="correctness",
        suggestion="Declare the variable with let or const before use",
        strategy=RewriteStrategy.INSERT_DECLARATION,
        checks_declaration=True,
    ),
]


def load_rules(scan_config: ScanConfig | None = None) -> list[Rule]:
    """Return the default rules with disabled rules removed and severities overridden."""
    if scan_config is None:
        return list(DEFAULT_RULES)

    rules = []
    for rule in DEFAULT_RULES:
        if rule.rule_id in scan_config.disabled_rules:
            continue
        severity = scan_config.severity.get(rule.rule_id)
        if severity is not None and severity != rule.severity:
            rule = replace(rule, severity=severity)
        rules.append(rule)
    return rules
