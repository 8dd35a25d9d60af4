"""Core PR review orchestration.

fetch context → scan → LLM summary and comment → approval decision →
post → optional auto-fix. Only a failure to fetch the PR or its file list,
or to post the review, aborts a run; every other stage degrades on its own.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from github import GithubException
from rich.console import Console

from prwarden_core.approval import ApprovalCriteriaEvaluator, approve_pull_request, post_comment, request_changes
from prwarden_core.errors import ReviewPublishError
from prwarden_core.fetcher import BoundedFileFetcher
from prwarden_core.gh.pull_request import get_pull, get_repo
from prwarden_core.models import (
    ApprovalDecision,
    PRContext,
    PullRequestRef,
    RemediationOutcome,
    ReviewResult,
    ScanIssue,
)
from prwarden_core.providers.anthropic import AnthropicReviewer
from prwarden_core.providers.openai import OpenAIReviewer
from prwarden_core.remediation import AutoRemediationPipeline
from prwarden_core.retry import RetryExecutor
from prwarden_core.scanner import scan
from prwarden_core.utils.stats import change_summary, fallback_summary

console = Console()
logger = logging.getLogger(__name__)

_SEVERITY_ICON = {"critical": "🔴", "major": "🟠", "minor": "🔵"}


@dataclass
class ReviewSummary:
    """Result returned by run_review."""

    ref: PullRequestRef
    head_sha: str | None
    event: str  # "APPROVE" | "COMMENT" | "REQUEST_CHANGES"
    fetched_files: list[str] = field(default_factory=list)
    unfetched_files: list[str] = field(default_factory=list)
    issues: list[ScanIssue] = field(default_factory=list)
    comment: str = ""
    approval: ApprovalDecision | None = None
    remediation: RemediationOutcome | None = None
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def _get_reviewer(config: dict):
    model = config["model"]
    if model == "anthropic":
        return AnthropicReviewer(api_key=config["anthropic_api_key"])
    if model == "openai":
        return OpenAIReviewer(api_key=config["openai_api_key"])
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")


def _fallback_comment(summary: str, issues: list[ScanIssue]) -> str:
    lines = ["## Summary\n", summary, "\n## Findings\n"]
    if not issues:
        lines.append("No issues found by the automated checks.")
    for issue in issues:
        lines.append(f"- {_SEVERITY_ICON.get(issue.severity, '')} {issue.message}")
    return "\n".join(lines)


def _determine_event(review: ReviewResult, decision: ApprovalDecision | None) -> str:
    if review.has_critical_issues:
        return "REQUEST_CHANGES"
    if decision is not None and decision.approve:
        return "APPROVE"
    return "COMMENT"


async def _draft_feedback(reviewer, context: PRContext, issues: list[ScanIssue]) -> ReviewResult:
    summary = None
    comment = None
    if reviewer is not None:
        summary = await asyncio.to_thread(
            reviewer.summarize, context.title, context.description, change_summary(context.files)
        )
    summary = summary or fallback_summary(context)
    if reviewer is not None:
        comment = await asyncio.to_thread(reviewer.draft_comment, context.title, context.description, summary, issues)
    comment = comment or _fallback_comment(summary, issues)
    return ReviewResult(summary=summary, comment=comment, issues=issues)


async def review_pull_request(
    ref: PullRequestRef,
    config: dict,
    repo_obj,
    reviewer=None,
    shadow: bool = False,
    title: str | None = None,
    description: str | None = None,
) -> ReviewSummary:
    executor = RetryExecutor(deadline=config.get("retry_deadline"))
    fetcher = BoundedFileFetcher(
        repo_obj,
        executor,
        token=config.get("github_token"),
        raw_base_url=config.get("raw_base_url", "https://raw.githubusercontent.com"),
        max_concurrency=config.get("max_concurrent_fetches", 5),
        max_lines=config.get("max_lines_per_file", 1000),
    )

    console.print(f"Fetching [bold]{ref}[/bold]...")
    context = await fetcher.fetch_context(ref, title=title, description=description)
    fetched = [f.path for f in context.files if f.content]
    unfetched = [f.path for f in context.files if not f.content]
    console.print(f"  {len(context.files)} file(s) changed, content fetched for {len(fetched)}.")

    issues = scan(context)
    review = await _draft_feedback(reviewer, context, issues)

    decision = None
    if config.get("auto_approve") and not review.has_critical_issues:
        evaluator = ApprovalCriteriaEvaluator(repo_obj, executor, config.get("trusted_authors"))
        decision = await evaluator.evaluate(context, review)

    event = _determine_event(review, decision)
    comment = review.comment
    if decision is not None:
        comment += f"\n\n### Auto-approval\n\n{decision.report}"

    summary = ReviewSummary(
        ref=ref,
        head_sha=context.head_sha,
        event=event,
        fetched_files=fetched,
        unfetched_files=unfetched,
        issues=issues,
        comment=comment,
        approval=decision,
    )

    if shadow:
        console.print(f"\n[bold]Shadow review: {len(issues)} issue(s), would post {event}[/bold]\n")
        console.print(comment)
        return summary

    try:
        pr = await executor.run_blocking(get_pull, repo_obj, ref.number)
        await executor.run_blocking(post_comment, pr, comment)
        if event == "REQUEST_CHANGES":
            await executor.run_blocking(request_changes, pr, review.critical_issues)
        elif event == "APPROVE":
            await executor.run_blocking(approve_pull_request, pr, decision.report)
    except GithubException as e:
        raise ReviewPublishError(ref, e) from e
    console.print(f"[green]Review posted: {event}[/green]")

    if config.get("auto_fix") and review.fixable_issues:
        pipeline = AutoRemediationPipeline(
            repo_obj,
            executor,
            token=config.get("github_token") or "",
            formatter_command=config.get("formatter_command"),
            bot_name=config.get("bot_name", "prwarden[bot]"),
            bot_email=config.get("bot_email", "prwarden@users.noreply.github.com"),
            git_host=config.get("git_host", "github.com"),
        )
        summary.remediation = await pipeline.run(context, review.fixable_issues)
        if summary.remediation.succeeded:
            console.print(f"[green]Auto-fix pushed: {summary.remediation.fixed_count} issue(s) fixed.[/green]")
        else:
            console.print("[yellow]No auto-fix applied.[/yellow]")

    return summary


def run_review(
    repo: str,
    pr_number: int,
    config: dict,
    shadow: bool = False,
    repo_obj=None,
    title: str | None = None,
    description: str | None = None,
) -> ReviewSummary:
    """Run the full review pipeline for ``repo`` (owner/name) PR ``pr_number``."""
    owner, _, name = repo.partition("/")
    ref = PullRequestRef(owner=owner, repo=name, number=pr_number)
    this_repo = repo_obj if repo_obj is not None else get_repo(repo, token=config["github_token"])

    try:
        reviewer = _get_reviewer(config)
    except ImportError as e:
        logger.warning("LLM provider unavailable, using scanner-only feedback: %s", e)
        reviewer = None

    return asyncio.run(
        review_pull_request(
            ref,
            config,
            this_repo,
            reviewer=reviewer,
            shadow=shadow,
            title=title,
            description=description,
        )
    )
