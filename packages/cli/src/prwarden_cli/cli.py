"""CLI entry point for prwarden.

Commands:
  review   review a pull request by number
  webhook  process a saved pull_request webhook delivery (e.g. $GITHUB_EVENT_PATH)
  init     write .prwarden.yml and a GitHub Actions workflow
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.logging import RichHandler

from prwarden_cli.commands.init import init_cmd
from prwarden_cli.commands.review import review_cmd
from prwarden_cli.commands.webhook import webhook_cmd

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _configure_logging(verbosity: int) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(verbosity, logging.DEBUG),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("prwarden"),
    prog_name="prwarden",
)
@click.option(
    "--config",
    "config_path",
    default=".prwarden.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRWARDEN_CONFIG",
)
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: int):
    """Automated GitHub PR review, approval and auto-fix."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(webhook_cmd)
main.add_command(init_cmd)
