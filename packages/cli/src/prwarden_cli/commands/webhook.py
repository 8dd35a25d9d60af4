"""webhook command: process a saved pull_request delivery.

In GitHub Actions the triggering payload is at $GITHUB_EVENT_PATH and the
event name in $GITHUB_EVENT_NAME, so a workflow can run
``prwarden webhook`` with no arguments.
"""

from __future__ import annotations

import json

import click
from rich.console import Console

from prwarden_cli.commands.review import execute_review, prepare_config
from prwarden_core.webhook import parse_pull_request_event, should_handle

console = Console()


@click.command("webhook")
@click.option(
    "--payload",
    "payload_path",
    envvar="GITHUB_EVENT_PATH",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the webhook JSON payload.",
)
@click.option("--event", envvar="GITHUB_EVENT_NAME", default="pull_request", show_default=True, help="Event name.")
@click.option("--shadow", "-s", is_flag=True, help="Print the review without posting to GitHub.")
@click.pass_context
def webhook_cmd(ctx, payload_path: str, event: str, shadow: bool):
    """Review the pull request named in a webhook payload."""
    try:
        with open(payload_path, encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON payload: {e}")

    if not should_handle(event, payload):
        console.print(f"[yellow]Ignoring {event} event (action: {payload.get('action')!r}).[/yellow]")
        return

    try:
        ref, title, description = parse_pull_request_event(payload)
    except ValueError as e:
        raise click.ClickException(str(e))

    config = prepare_config(ctx.obj["config_path"])
    execute_review(ref.full_name, ref.number, config, shadow, title=title, description=description)
