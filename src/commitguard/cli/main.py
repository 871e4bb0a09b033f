"""Click CLI entry point for commitguard."""

from __future__ import annotations

import click

from commitguard._version import __version__
from commitguard.core.output import setup_logging

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.version_option(version=__version__, prog_name="commitguard")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (default: LOG_LEVEL or WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None):
    """commitguard - review and patch staged changes at commit time.

    Install it as a pre-commit hook with `commitguard install`.
    """
    ctx.ensure_object(dict)["log_level"] = log_level
    setup_logging(log_level)


# Import and register subcommands
from commitguard.cli.check_cmd import check  # noqa: E402
from commitguard.cli.recommit_cmd import recommit  # noqa: E402
from commitguard.cli.config_cmd import config  # noqa: E402
from commitguard.cli.install_cmd import install  # noqa: E402

cli.add_command(check)
cli.add_command(recommit)
cli.add_command(config)
cli.add_command(install)


if __name__ == "__main__":
    cli()
