"""commitguard check command (the pre-commit hook body)."""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import click

from commitguard.core.config import is_hook_skipped, load_config
from commitguard.core.errors import ConfigError
from commitguard.core.models import ReviewMode
from commitguard.core.output import console, setup_logging
from commitguard.pipeline import CommitGuard


@click.command()
@click.option("--target", "-t", "target", default=".", help="Repository directory (default: current dir)")
@click.option("--yes", "-y", is_flag=True, help="Accept every proposed fix without prompting")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in ReviewMode]),
    default=None,
    help="Review granularity: whole session, per file, or per fix",
)
@click.option("--timeout-ms", type=int, default=None, help="Prompt timeout in ms (0 waits forever)")
@click.option("--no-recommit", is_flag=True, help="Re-stage fixed files instead of committing them")
@click.pass_context
def check(
    ctx: click.Context,
    target: str,
    yes: bool,
    mode: str | None,
    timeout_ms: int | None,
    no_recommit: bool,
):
    """Review the staged change and offer fixes.

    Exits 0 when the commit may proceed and 1 when it should be blocked.
    """
    if is_hook_skipped():
        return

    project_path = Path(target).resolve()
    try:
        config = load_config(project_path)
    except ConfigError as exc:
        console.print(f"\n  [red]{exc}[/red]\n")
        sys.exit(1)

    if not (ctx.obj or {}).get("log_level"):
        setup_logging(config.log_level)

    review = config.review
    if yes:
        review = replace(review, simulate="accept")
    if mode:
        review = replace(review, mode=ReviewMode(mode))
    if timeout_ms is not None:
        review = replace(review, prompt_timeout_ms=max(0, timeout_ms))
    config = replace(config, review=review)
    if no_recommit:
        config = replace(config, fix=replace(config.fix, auto_recommit=False))

    result = CommitGuard(project_path, config).check()
    if result.exit_code != 0:
        console.print(f"\n  [red]Commit blocked: {result.reason}.[/red]\n")
    sys.exit(result.exit_code)
