"""Auto-fix pipeline: clone, check out, patch, commit, push, comment.

Only a small catalogue of mechanically safe fixes is applied. Secrets and
TODO markers are never touched, however they are phrased.

The pipeline is strictly sequential because the git working copy is a single
mutable resource. The working copy lives in a temporary directory owned by a
GitWorkspace context manager, so it is removed on every exit path, including
a failed clone. Nothing here raises to the caller: any failure is logged and
reported as ``succeeded=False``. A push failure after a local commit is
reported, not rolled back.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
import subprocess
import tempfile
from pathlib import Path

from prwarden_core.approval import post_comment
from prwarden_core.errors import GitCommandError
from prwarden_core.gh.pull_request import get_pull
from prwarden_core.models import IssueKind, PRContext, RemediationOutcome, RemediationStage
from prwarden_core.retry import RetryExecutor
from prwarden_core.utils.code import SCRIPT_EXTENSIONS

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 300
FORMATTER_TIMEOUT_SECONDS = 600

# A line holding nothing but a console.log/debug/info call, optional semicolon.
# Arguments may nest one level of parentheses but never span a ")" or ";",
# so a call followed by more code on the same line does not match.
DEBUG_PRINT_RE = re.compile(
    r"^[ \t]*console\.(?:log|debug|info)\((?:[^()\n;]|\([^()\n;]*\))*\)[ \t]*;?[ \t]*(?:\r?\n|\Z)",
    re.MULTILINE,
)

_SKIP_DIRS = {".git", "node_modules"}


def classify_issue(description: str) -> IssueKind:
    """Derive the fix kind from an issue's text.

    Secret and TODO checks come first so an issue that mentions both a secret
    and, say, whitespace is never routed to a fixer.
    """
    text = description.lower()
    if "secret" in text:
        return IssueKind.SECRET
    if "todo" in text or "fixme" in text:
        return IssueKind.TODO
    if "console.log" in text or "console statement" in text or "debug print" in text:
        return IssueKind.DEBUG_PRINT
    if "formatting" in text or "whitespace" in text:
        return IssueKind.FORMATTING
    return IssueKind.OTHER


def run_git(args: list[str], cwd: str | Path | None = None, secret: str | None = None) -> str:
    """Run ``git`` and return stdout; raise GitCommandError on a non-zero exit."""
    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        timeout=GIT_TIMEOUT_SECONDS,
        env=env,
    )
    if result.returncode != 0:
        shown = ["git", *args]
        output = result.stderr or result.stdout
        if secret:
            shown = [a.replace(secret, "***") for a in shown]
            output = output.replace(secret, "***")
        raise GitCommandError(shown, result.returncode, output)
    return result.stdout


def remove_debug_prints(root: Path) -> bool:
    """Strip console.log/debug/info lines from script files under ``root``.

    Symlinks are skipped, as is anything that resolves outside ``root``: a PR
    branch can commit a link pointing anywhere on the host.
    """
    modified = False
    real_root = root.resolve()
    for path in sorted(root.rglob("*")):
        if path.suffix.lower() not in SCRIPT_EXTENSIONS or path.is_symlink() or not path.is_file():
            continue
        if _SKIP_DIRS.intersection(path.relative_to(root).parts):
            continue
        if not path.resolve().is_relative_to(real_root):
            logger.warning("Skipping %s: resolves outside the working copy", path.relative_to(root))
            continue
        content = path.read_text(encoding="utf-8", errors="surrogateescape")
        new_content = DEBUG_PRINT_RE.sub("", content)
        if new_content != content:
            path.write_text(new_content, encoding="utf-8", errors="surrogateescape")
            logger.debug("Removed debug statements from %s", path.relative_to(root))
            modified = True
    return modified


def run_formatter(root: Path, command: list[str]) -> bool:
    result = subprocess.run(
        command,
        cwd=root,
        capture_output=True,
        text=True,
        timeout=FORMATTER_TIMEOUT_SECONDS,
    )
    if result.returncode != 0:
        logger.warning("Formatter %s exited with %d: %s", command[0], result.returncode, result.stderr.strip()[:300])
    return result.returncode == 0


class GitWorkspace:
    """Temporary directory holding one clone; removed when the block exits."""

    def __init__(self, prefix: str = "prwarden-"):
        self._prefix = prefix
        self.root: Path | None = None

    @property
    def checkout_dir(self) -> Path:
        if self.root is None:
            raise RuntimeError("GitWorkspace used outside its with-block")
        return self.root / "repo"

    def __enter__(self) -> GitWorkspace:
        self.root = Path(tempfile.mkdtemp(prefix=self._prefix))
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.root is None:
            return
        try:
            shutil.rmtree(self.root)
        except OSError as e:
            logger.warning("Failed to clean up temporary directory %s: %s", self.root, e)
        self.root = None


class AutoRemediationPipeline:
    def __init__(
        self,
        repo,
        executor: RetryExecutor,
        token: str,
        formatter_command: list[str] | None = None,
        bot_name: str = "prwarden[bot]",
        bot_email: str = "prwarden@users.noreply.github.com",
        git_host: str = "github.com",
    ):
        self._repo = repo
        self._executor = executor
        self._token = token
        self.formatter_command = formatter_command or ["prettier", "--write", "."]
        self.bot_name = bot_name
        self.bot_email = bot_email
        self.git_host = git_host

    def clone_url(self, context: PRContext) -> str:
        return f"https://x-access-token:{self._token}@{self.git_host}/{context.ref.owner}/{context.ref.repo}.git"

    async def run(self, context: PRContext, fixable_issues: list[str]) -> RemediationOutcome:
        outcome = RemediationOutcome()
        if not fixable_issues:
            return outcome

        logger.info("Attempting to auto-fix %d issue(s) on %s", len(fixable_issues), context.ref)
        try:
            with GitWorkspace() as workspace:
                await self._run_stages(context, fixable_issues, workspace, outcome)
        except Exception as e:
            logger.error("Auto-fix failed on %s at stage %s: %s", context.ref, outcome.stage.value, e)
            outcome.succeeded = False
        return outcome

    async def _run_stages(
        self,
        context: PRContext,
        fixable_issues: list[str],
        workspace: GitWorkspace,
        outcome: RemediationOutcome,
    ) -> None:
        head_ref = context.head_ref
        if head_ref is None:
            pr = await self._executor.run_blocking(get_pull, self._repo, context.ref.number)
            head_ref = pr.head.ref

        checkout = workspace.checkout_dir
        await self._executor.execute(lambda: self._clone(context, head_ref, checkout))
        outcome.stage = RemediationStage.CLONED

        await self._git(["checkout", head_ref], checkout)
        outcome.stage = RemediationStage.CHECKED_OUT

        for issue in fixable_issues:
            if await asyncio.to_thread(self._try_fix, checkout, issue):
                outcome.applied.append(issue)
        outcome.fixed_count = len(outcome.applied)
        outcome.stage = RemediationStage.PATCHED

        if not outcome.applied:
            logger.info("No fixable issue could be fixed automatically on %s", context.ref)
            return

        await self._git(["add", "-A"], checkout)
        if not (await self._git(["status", "--porcelain"], checkout)).strip():
            logger.info("Fixes produced no changes on %s; nothing to commit", context.ref)
            return
        identity = ["-c", f"user.name={self.bot_name}", "-c", f"user.email={self.bot_email}"]
        await self._git([*identity, "commit", "-m", self.commit_message(outcome.applied)], checkout)
        outcome.stage = RemediationStage.COMMITTED

        await self._executor.execute(lambda: self._git(["push", "origin", f"HEAD:refs/heads/{head_ref}"], checkout))
        outcome.stage = RemediationStage.PUSHED
        logger.info("Pushed %d auto-fix(es) to %s on %s", outcome.fixed_count, head_ref, context.ref)

        pr = await self._executor.run_blocking(get_pull, self._repo, context.ref.number)
        await self._executor.run_blocking(post_comment, pr, self.comment_body(outcome.applied))
        outcome.stage = RemediationStage.COMMENTED
        outcome.succeeded = True

    async def _clone(self, context: PRContext, head_ref: str, target: Path) -> None:
        if target.exists():
            # Left over from a failed attempt; git refuses a non-empty target.
            shutil.rmtree(target)
        await self._git(["clone", "--depth", "1", "--branch", head_ref, self.clone_url(context), str(target)], None)

    async def _git(self, args: list[str], cwd: Path | None) -> str:
        return await asyncio.to_thread(run_git, args, cwd, self._token)

    def _try_fix(self, checkout: Path, issue: str) -> bool:
        kind = classify_issue(issue)
        try:
            if kind is IssueKind.DEBUG_PRINT:
                return remove_debug_prints(checkout)
            if kind is IssueKind.FORMATTING:
                return run_formatter(checkout, self.formatter_command)
            # SECRET and TODO are never auto-fixed; neither is anything unknown.
            return False
        except Exception as e:
            logger.warning("Failed to fix issue %r: %s", issue, e)
            return False

    @staticmethod
    def commit_message(applied: list[str]) -> str:
        lines = "\n".join(f"- {issue}" for issue in applied)
        return f"Auto-fix: fixed {len(applied)} issue(s)\n\n{lines}\n"

    @staticmethod
    def comment_body(applied: list[str]) -> str:
        lines = "\n".join(f"{i}. {issue}" for i, issue in enumerate(applied, 1))
        return (
            "## Auto-fix applied\n\n"
            f"Fixed {len(applied)} issue(s) automatically:\n\n"
            f"{lines}\n\n"
            "The changes have been pushed to this PR."
        )
