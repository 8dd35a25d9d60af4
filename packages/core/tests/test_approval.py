"""Tests for the auto-approval criteria and the review helpers."""

import itertools
from unittest.mock import MagicMock

import pytest
from github import GithubException

from prwarden_core.approval import (
    FAIL_MARK,
    PASS_MARK,
    ApprovalCriteriaEvaluator,
    approve_pull_request,
    post_comment,
    request_changes,
)
from prwarden_core.models import ChangedFile, IssueKind, PRContext, PullRequestRef, ReviewResult, ScanIssue
from prwarden_core.retry import RetryExecutor

REF = PullRequestRef("octo", "app", 7)
HEAD_SHA = "e" * 40


async def _no_sleep(delay):
    pass


def _run(status="completed", conclusion="success"):
    return MagicMock(status=status, conclusion=conclusion)


def _repo(runs=None):
    repo = MagicMock()
    repo.get_commit.return_value.get_check_runs.return_value = runs if runs is not None else [_run()]
    return repo


def _evaluator(repo=None, trusted=("alice",)):
    return ApprovalCriteriaEvaluator(repo or _repo(), RetryExecutor(sleep=_no_sleep), trusted_authors=list(trusted))


def _context(paths, lines=4, author="alice"):
    files = [ChangedFile(path=p, lines_added=lines, lines_removed=0) for p in paths]
    return PRContext(ref=REF, title="t", files=files, head_sha=HEAD_SHA, author=author)


def _critical():
    return ScanIssue("src/a.py", IssueKind.SECRET, "Potential secret detected", severity="critical")


# Each file set pins criteria 3 (docs/config only) and 4 (tests for code) independently.
_FILE_SETS = {
    (True, True): ["README.md"],
    (False, True): ["Makefile"],
    (True, False): ["docs/conf.py"],
    (False, False): ["src/app.py"],
}


@pytest.mark.asyncio
@pytest.mark.parametrize("outcomes", list(itertools.product([True, False], repeat=6)))
async def test_approves_only_when_every_criterion_passes(outcomes):
    no_critical, small, docs_only, tested, checks_ok, trusted = outcomes

    repo = _repo([_run(), _run(conclusion="success" if checks_ok else "failure")])
    context = _context(
        _FILE_SETS[(docs_only, tested)],
        lines=10 if small else 200,
        author="alice" if trusted else "mallory",
    )
    review = ReviewResult(issues=[] if no_critical else [_critical()])

    decision = await _evaluator(repo).evaluate(context, review)

    assert [c.passed for c in decision.criteria] == list(outcomes)
    assert decision.approve is all(outcomes)
    assert len(decision.report.splitlines()) == 6


@pytest.mark.asyncio
async def test_small_docs_change_is_approved():
    context = _context(["README.md", "docs/setup.md"], lines=25)

    decision = await _evaluator(trusted=()).evaluate(context, ReviewResult())

    assert decision.approve is True
    assert decision.report.count(PASS_MARK) == 6
    assert FAIL_MARK not in decision.report
    assert "Small change size (50 lines)" in decision.report


@pytest.mark.asyncio
async def test_check_run_fetch_failure_fails_closed():
    repo = _repo()
    repo.get_commit.side_effect = GithubException(500, {"message": "Server Error"}, None)

    decision = await _evaluator(repo).evaluate(_context(["README.md"]), ReviewResult())

    assert decision.approve is False
    assert decision.criteria[4].passed is False
    assert decision.criteria[4].description == "Unable to verify CI/CD checks"
    assert "❌ Unable to verify CI/CD checks" in decision.report


@pytest.mark.asyncio
async def test_pending_check_run_fails():
    repo = _repo([_run(status="in_progress", conclusion=None)])

    decision = await _evaluator(repo).evaluate(_context(["README.md"]), ReviewResult())

    assert decision.criteria[4].passed is False
    assert decision.approve is False


@pytest.mark.asyncio
async def test_no_check_runs_passes():
    decision = await _evaluator(_repo([])).evaluate(_context(["README.md"]), ReviewResult())

    assert decision.criteria[4].passed is True


@pytest.mark.asyncio
async def test_check_runs_fall_back_to_pull_ref_without_head_sha():
    repo = _repo()
    context = _context(["README.md"])
    context.head_sha = None

    await _evaluator(repo).evaluate(context, ReviewResult())

    repo.get_commit.assert_called_once_with("pull/7/head")


@pytest.mark.asyncio
async def test_author_lookup_failure_fails_closed():
    repo = _repo()
    repo.get_pull.side_effect = GithubException(403, {"message": "Forbidden"}, None)
    context = _context(["README.md"], author=None)

    decision = await _evaluator(repo).evaluate(context, ReviewResult())

    assert decision.approve is False
    assert decision.criteria[5].passed is False
    assert decision.criteria[5].description == "Unable to verify author trust status"


@pytest.mark.asyncio
async def test_author_fetched_when_not_in_context():
    repo = _repo()
    repo.get_pull.return_value.user.login = "alice"

    decision = await _evaluator(repo).evaluate(_context(["README.md"], author=None), ReviewResult())

    assert decision.criteria[5].passed is True
    assert decision.criteria[5].description == "Author is trusted: alice"


@pytest.mark.asyncio
async def test_empty_trusted_list_trusts_everyone():
    decision = await _evaluator(trusted=()).evaluate(_context(["README.md"], author="anyone"), ReviewResult())

    assert decision.criteria[5].passed is True


@pytest.mark.asyncio
async def test_code_with_tests_passes_test_criterion():
    context = _context(["src/app.py", "tests/test_app.py"])

    decision = await _evaluator().evaluate(context, ReviewResult())

    assert decision.criteria[3].passed is True
    assert decision.criteria[2].passed is False


@pytest.mark.asyncio
async def test_unexpected_error_rejects_with_error_report():
    context = _context(["README.md"])
    context.files = None

    decision = await _evaluator().evaluate(context, ReviewResult())

    assert decision.approve is False
    assert decision.report.startswith("Error evaluating approval criteria:")
    assert len(decision.criteria) == 1


# ---------------------------------------------------------------------------
# Review helpers
# ---------------------------------------------------------------------------


def test_approve_pull_request_posts_approve_review():
    pr = MagicMock(number=7)

    approve_pull_request(pr, "✅ All good")

    kwargs = pr.create_review.call_args.kwargs
    assert kwargs["event"] == "APPROVE"
    assert "✅ All good" in kwargs["body"]


def test_request_changes_numbers_issues():
    pr = MagicMock(number=7)

    request_changes(pr, ["Secret in config.js", "Debugger statement"])

    kwargs = pr.create_review.call_args.kwargs
    assert kwargs["event"] == "REQUEST_CHANGES"
    assert "1. Secret in config.js" in kwargs["body"]
    assert "2. Debugger statement" in kwargs["body"]


def test_post_comment():
    pr = MagicMock()

    post_comment(pr, "hello")

    pr.create_issue_comment.assert_called_once_with("hello")
