"""init command: write .prwarden.yml and a GitHub Actions workflow."""

from __future__ import annotations

import importlib.metadata
from pathlib import Path

import click
import yaml
from rich.console import Console

console = Console()

_WORKFLOW_TEMPLATE = """\
name: prwarden

on:
  pull_request:
    types: [opened, synchronize, reopened]

jobs:
  review:
    runs-on: ubuntu-latest
    permissions:
      checks: read
      contents: {contents_permission}
      pull-requests: write

    steps:
      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install prwarden
        run: pip install "prwarden[{provider}]=={version}"

      - name: Review pull request
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          {api_key_env}: ${{{{ secrets.{api_key_env} }}}}
        run: prwarden -v webhook
"""


@click.command("init")
def init_cmd():
    """Set up prwarden for a repository.

    Creates .prwarden.yml and, optionally, a GitHub Actions workflow that
    reviews every opened or updated pull request.
    """
    console.print("\n[bold cyan]prwarden init[/bold cyan]\n")

    provider = click.prompt("AI provider", type=click.Choice(["anthropic", "openai"]), default="anthropic")
    api_key_env = "ANTHROPIC_API_KEY" if provider == "anthropic" else "OPENAI_API_KEY"

    auto_approve = click.confirm("Auto-approve PRs that pass every criterion?", default=False)
    trusted: list[str] = []
    if auto_approve:
        raw = click.prompt("Trusted authors (comma-separated, blank for anyone)", default="", show_default=False)
        trusted = [a.strip() for a in raw.split(",") if a.strip()]
    auto_fix = click.confirm("Push auto-fixes for mechanically fixable issues?", default=False)

    config: dict = {"model": provider, "auto_approve": auto_approve, "auto_fix": auto_fix}
    if trusted:
        config["trusted_authors"] = trusted
    _write_config(config)
    console.print("[green]Created .prwarden.yml[/green]")

    if click.confirm("\nGenerate .github/workflows/prwarden.yml for GitHub Actions?", default=True):
        _write_workflow(provider, api_key_env, auto_fix)
        console.print("[green]Created .github/workflows/prwarden.yml[/green]")
        console.print(
            f"\n[yellow]Remember to add [bold]{api_key_env}[/bold] to your "
            "GitHub repository secrets (Settings → Secrets → Actions).[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")


def _write_config(config: dict) -> None:
    """Write or update .prwarden.yml, preserving any existing keys."""
    path = Path(".prwarden.yml")
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _get_version() -> str:
    try:
        return importlib.metadata.version("prwarden")
    except importlib.metadata.PackageNotFoundError:
        return "0.1.0"


def _write_workflow(provider: str, api_key_env: str, auto_fix: bool) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    (workflow_dir / "prwarden.yml").write_text(
        _WORKFLOW_TEMPLATE.format(
            provider=provider,
            api_key_env=api_key_env,
            version=_get_version(),
            contents_permission="write" if auto_fix else "read",
        )
    )
