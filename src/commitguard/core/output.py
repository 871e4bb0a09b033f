"""Rich terminal formatting for commitguard output."""

from __future__ import annotations

import logging
import os
from collections import defaultdict
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from commitguard.core.models import Fix, Issue, PatchResult, RecommitResult, Severity

if TYPE_CHECKING:
    from commitguard.core.config import GuardConfig
    from commitguard.review.remote import RemoteFeedback
    from commitguard.scanner.engine import ScanResult

console = Console()
error_console = Console(stderr=True)


SEVERITY_ICONS = {
    Severity.CRITICAL: "[red]●[/red]",
    Severity.HIGH: "[bright_red]●[/bright_red]",
    Severity.MEDIUM: "[yellow]●[/yellow]",
    Severity.LOW: "[blue]●[/blue]",
}

SEVERITY_COLORS = {
    Severity.CRITICAL: "red",
    Severity.HIGH: "bright_red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}


def format_issue(issue: Issue) -> str:
    """Format a single issue for terminal output."""
    icon = SEVERITY_ICONS.get(issue.severity, "●")
    label = "" if issue.actionable else " [dim](existing code)[/dim]"
    text = f"  {icon} {issue.rule_id}  {escape(issue.message)}  {escape(issue.location)}{label}"
    if issue.suggestion:
        text += f"\n     [dim]{escape(issue.suggestion)}[/dim]"
    return text


def print_scan_result(result: ScanResult, out: Console | None = None) -> None:
    """Print issues grouped by severity, staged findings first."""
    out = out or console

    if not result.issues:
        out.print(f"\n  [green]✅ No issues found in {result.files_scanned} staged file(s).[/green]\n")
        return

    by_severity: dict[Severity, list[Issue]] = defaultdict(list)
    for issue in result.issues:
        by_severity[issue.severity].append(issue)

    lines = [""]
    for severity in sorted(by_severity, key=lambda s: s.rank):
        color = SEVERITY_COLORS[severity]
        lines.append(f"  [{color} bold]{severity.value.upper()}[/{color} bold]")
        for issue in sorted(by_severity[severity], key=lambda i: (not i.actionable, i.file, i.line)):
            lines.append(format_issue(issue))
        lines.append("")

    actionable = len(result.actionable)
    lines.append(
        f"  {actionable} in this commit | "
        f"{len(result.informational)} informational | "
        f"{result.files_scanned} file(s) scanned"
    )
    for file in result.unreliable:
        lines.append(f"  [yellow]{escape(file)} has approximate hunks or unstaged edits; no fixes offered.[/yellow]")
    for file, reason in result.skipped.items():
        lines.append(f"  [dim]Skipped {escape(file)}: {escape(reason)}[/dim]")
    lines.append("")

    border = "red" if actionable else "yellow"
    out.print(Panel(
        "\n".join(lines),
        title="[bold]commitguard: Staged Change Review[/bold]",
        border_style=border,
        padding=(0, 1),
    ))


def print_fix_preview(unit: str, fixes: list[Fix] | tuple[Fix, ...], show_diff: bool = True,
                      out: Console | None = None) -> None:
    """Print the fixes of one review unit."""
    out = out or console
    lines = []
    for fix in fixes:
        lines.append(f"  [bold]{escape(fix.file)}:{fix.line}[/bold]  {fix.rule_id}  {escape(fix.description)}")
        if show_diff:
            for old in fix.original_text.splitlines() or [""]:
                lines.append(f"  [red]- {escape(old)}[/red]")
            for new in fix.replacement_text.splitlines() or [""]:
                lines.append(f"  [green]+ {escape(new)}[/green]")
        lines.append("")

    out.print(Panel(
        "\n".join(lines).rstrip(),
        title=f"[bold]Proposed fixes: {escape(unit)}[/bold]",
        border_style="cyan",
        padding=(0, 1),
    ))


def print_patch_results(results: list[PatchResult], out: Console | None = None) -> None:
    out = out or console
    for result in results:
        if result.error:
            out.print(f"  [red]❌ {escape(result.file)}[/red]  {escape(result.error)}")
        elif result.modified:
            out.print(f"  [green]✅ {escape(result.file)}[/green]  {len(result.applied)} fix(es) applied")
        for fix in result.skipped:
            out.print(f"     [yellow]skipped {fix.rule_id} at line {fix.line}: source changed[/yellow]")


def print_recommit_result(result: RecommitResult, out: Console | None = None) -> None:
    out = out or console
    if result.success:
        out.print(f"  [green]✅ Committed:[/green] {escape(result.commit_message)}")
    else:
        out.print(f"  [red]❌ {escape(result.message)}[/red]")
        out.print("  [dim]Fixed files are still modified; backups were kept for recovery.[/dim]")


def print_remote_feedback(feedback: RemoteFeedback, out: Console | None = None) -> None:
    out = out or console
    out.print(Panel(
        escape(feedback.text),
        title="[bold]Remote review[/bold]",
        border_style="magenta",
        padding=(0, 1),
    ))


def mask_secret(value: str | None) -> str:
    """Show only the last four characters of a secret."""
    if not value:
        return "[dim]not set[/dim]"
    return f"***{value[-4:]}"


def print_config(config: GuardConfig, out: Console | None = None) -> None:
    """Print the effective configuration as a table."""
    out = out or console
    table = Table(title="commitguard configuration", show_lines=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    review = config.review
    rows = [
        ("review.default_on_cancel", review.default_on_cancel.value),
        ("review.prompt_timeout_ms", str(review.prompt_timeout_ms) if review.prompt_timeout_ms else "0 (wait forever)"),
        ("review.mode", review.mode.value),
        ("review.force_prompt", str(review.force_prompt).lower()),
        ("review.simulate", review.simulate or "[dim]not set[/dim]"),
        ("review.auto_open_editor", str(review.auto_open_editor).lower()),
        ("review.show_diff", str(review.show_diff).lower()),
        ("fix.auto_recommit", str(config.fix.auto_recommit).lower()),
        ("fix.backup_suffix", config.fix.backup_suffix),
        ("fix.commit_message", config.fix.commit_message or "[dim]branch ticket[/dim]"),
        ("remote.api_key", mask_secret(config.remote.api_key)),
        ("remote.model", config.remote.model),
        ("remote.timeout_ms", str(config.remote.timeout_ms)),
        ("remote.skip_on_rate_limit", str(config.remote.skip_on_rate_limit).lower()),
        ("scan.disabled_rules", ", ".join(config.scan.disabled_rules) or "[dim]none[/dim]"),
        ("log_level", config.log_level),
    ]
    for key, value in rows:
        table.add_row(key, value)

    out.print(table)
    if config.source_file:
        out.print(f"  Loaded from [bold]{escape(str(config.source_file))}[/bold]")
    else:
        out.print("  [dim]No commitguard.toml found; defaults and environment only.[/dim]")


def setup_logging(level: str | None) -> None:
    """Route ``commitguard.*`` loggers to stderr through rich."""
    name = (level or os.environ.get("LOG_LEVEL") or "WARNING").upper()
    numeric = getattr(logging, name, None)
    if not isinstance(numeric, int):
        numeric = logging.WARNING

    logger = logging.getLogger("commitguard")
    logger.setLevel(numeric)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=error_console, show_time=False, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
