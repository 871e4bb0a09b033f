"""commitguard install command."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from commitguard.core.errors import GitError
from commitguard.core.git import Git
from commitguard.core.output import console

HOOK_MARKER = "# installed by commitguard"

HOOK_SCRIPT = f"""#!/bin/sh
{HOOK_MARKER}
# Read prompts from the terminal when there is one; git gives hooks no stdin.
if [ -t 1 ] && (exec < /dev/tty) 2>/dev/null; then
    exec < /dev/tty
fi
exec commitguard check
"""


def install_hook(hooks_dir: Path, force: bool = False) -> Path:
    """Write the pre-commit hook; refuses to replace a foreign hook unless ``force``."""
    hook = hooks_dir / "pre-commit"
    if hook.exists() and not force:
        existing = hook.read_text(errors="replace")
        if HOOK_MARKER not in existing:
            raise FileExistsError(hook)

    hooks_dir.mkdir(parents=True, exist_ok=True)
    hook.write_text(HOOK_SCRIPT)
    hook.chmod(0o755)
    return hook


@click.command()
@click.option("--target", "-t", "target", default=".", help="Repository directory (default: current dir)")
@click.option("--force", is_flag=True, help="Overwrite an existing pre-commit hook")
def install(target: str, force: bool):
    """Install commitguard as the repository's pre-commit hook."""
    try:
        hooks_dir = Git(Path(target).resolve()).hooks_dir()
    except GitError as exc:
        console.print(f"\n  [red]Not a git repository: {exc}[/red]\n")
        sys.exit(1)

    try:
        hook = install_hook(hooks_dir, force=force)
    except FileExistsError as exc:
        console.print(f"\n  [yellow]A pre-commit hook already exists at {exc}.[/yellow]")
        console.print("  Re-run with --force to replace it.\n")
        sys.exit(1)

    console.print(f"\n  [green]✅ Installed pre-commit hook:[/green] {hook}")
    console.print("  [dim]Bypass once with COMMITGUARD_SKIP=1 git commit ...[/dim]\n")
