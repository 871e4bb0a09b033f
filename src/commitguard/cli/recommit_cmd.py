"""commitguard recommit command."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from commitguard.core.config import load_config
from commitguard.core.errors import ConfigError, GitError
from commitguard.core.git import Git
from commitguard.core.output import console, print_recommit_result
from commitguard.fix.recommit import Recommitter
from commitguard.review.confirm import ConfirmationController

DEFAULT_MESSAGE = "Apply commitguard suggestions"


@click.command()
@click.option("--target", "-t", "target", default=".", help="Repository directory (default: current dir)")
@click.option("--message", "-m", default=None, help="Commit message (prompted for when omitted)")
def recommit(target: str, message: str | None):
    """Stage and commit changes made after a blocked commit.

    The commit bypasses the commitguard hook.
    """
    project_path = Path(target).resolve()
    try:
        config = load_config(project_path)
    except ConfigError as exc:
        console.print(f"\n  [red]{exc}[/red]\n")
        sys.exit(1)
    git = Git(project_path)
    controller = ConfirmationController(config.review)

    console.print("\n  [cyan]Guided recommit[/cyan]")
    try:
        staged = git.staged_files()
        unstaged = git.has_unstaged_changes()
    except GitError as exc:
        console.print(f"  [red]{exc}[/red]\n")
        sys.exit(1)

    if not staged and not unstaged:
        console.print("  [yellow]No changes to commit.[/yellow]")
        console.print("  [dim]Edit files per the suggestions, then run `commitguard recommit` again.[/dim]\n")
        return

    if unstaged and not staged:
        decision = controller.decide(
            "stage", "Stage all current changes before recommitting?", default=True,
        )
        if not decision.accepted:
            console.print("  [yellow]Recommit cancelled: nothing staged.[/yellow]\n")
            sys.exit(1)
        try:
            git.add_all()
            staged = git.staged_files()
        except GitError as exc:
            console.print(f"  [red]{exc}[/red]\n")
            sys.exit(1)

    if message is None:
        message = controller.ask_text("Commit message", config.fix.commit_message or DEFAULT_MESSAGE)

    result = Recommitter(git, config.fix).commit(message, staged)
    print_recommit_result(result)
    console.print()
    sys.exit(0 if result.success else 1)
