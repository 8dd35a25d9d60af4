"""review command: review a pull request by number."""

from __future__ import annotations

import click
from github import GithubException
from rich.console import Console
from rich.table import Table

from prwarden_core.errors import ReviewPublishError
from prwarden_core.reviewer import ReviewSummary, run_review

console = Console()

_SEVERITY_STYLE = {"critical": "red", "major": "yellow", "minor": "blue"}


def prepare_config(config_path: str, overrides: dict | None = None) -> dict:
    """Load config, resolve the GitHub token and check the provider key is set."""
    from prwarden_core.config import load_config
    from prwarden_cli.auth import resolve_github_token

    config = load_config(config_path, cli_overrides=overrides)

    token = resolve_github_token()
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    config["github_token"] = token

    if config["model"] == "anthropic" and not config.get("anthropic_api_key"):
        raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")
    if config["model"] == "openai" and not config.get("openai_api_key"):
        raise click.UsageError("OPENAI_API_KEY environment variable is not set.")
    return config


def execute_review(repo: str, pr_number: int, config: dict, shadow: bool, **kwargs) -> ReviewSummary:
    try:
        summary = run_review(repo=repo, pr_number=pr_number, config=config, shadow=shadow, **kwargs)
    except ReviewPublishError as e:
        raise click.ClickException(str(e))
    except GithubException as e:
        raise click.ClickException(f"Could not fetch PR #{pr_number} in {repo}: {e}")
    print_summary(summary)
    return summary


def print_summary(summary: ReviewSummary) -> None:
    if summary.issues:
        table = Table(title=f"Findings: {summary.ref}", show_header=True, header_style="bold cyan")
        table.add_column("Severity", width=10)
        table.add_column("File")
        table.add_column("Issue")
        table.add_column("Fixable", justify="center", width=8)
        for issue in summary.issues:
            style = _SEVERITY_STYLE.get(issue.severity, "white")
            table.add_row(
                f"[{style}]{issue.severity}[/{style}]",
                issue.path,
                issue.message,
                "yes" if issue.fixable else "",
            )
        console.print(table)
    else:
        console.print("[green]No issues found.[/green]")

    if summary.unfetched_files:
        console.print(f"[dim]Content not fetched for {len(summary.unfetched_files)} file(s).[/dim]")
    if summary.approval is not None:
        console.print("\n[bold]Auto-approval[/bold]")
        console.print(summary.approval.report)
    if summary.remediation is not None and summary.remediation.succeeded:
        for issue in summary.remediation.applied:
            console.print(f"  [green]fixed[/green] {issue}")


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option("--auto-approve/--no-auto-approve", default=None, help="Approve PRs that pass every criterion.")
@click.option("--auto-fix/--no-auto-fix", default=None, help="Push fixes for mechanically fixable issues.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the review without posting to GitHub.",
)
@click.pass_context
def review_cmd(
    ctx,
    repo: str,
    pr_number: int,
    model: str | None,
    auto_approve: bool | None,
    auto_fix: bool | None,
    shadow: bool,
):
    """Review a pull request and act on the result.

    Fetches the changed files, runs the automated checks, drafts feedback with
    Claude or GPT, posts it, and optionally approves or pushes auto-fixes.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      ANTHROPIC_API_KEY    Required when using --model anthropic
      OPENAI_API_KEY       Required when using --model openai
    """
    config = prepare_config(
        ctx.obj["config_path"],
        {"model": model, "auto_approve": auto_approve, "auto_fix": auto_fix},
    )
    execute_review(repo, pr_number, config, shadow)
