"""Shared prompt building and retry for the LLM reviewers.

A reviewer produces two pieces of free text for a PR: a short bullet summary
and the review comment posted on the PR. Both go through the same path:

    summarize() / draft_comment()  build the prompt
    _call_with_retry()             retries with back-off
    _call_api()                    one SDK call, provider specific

A failed model call returns None rather than raising: the review still gets
posted, built from the scanner findings alone.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prwarden_core.models import ScanIssue

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_MAX_TOKENS = 1500
_MAX_FILES_IN_PROMPT = 20

SYSTEM_PROMPT = (
    "You are an expert code reviewer assistant. "
    "Provide clear, actionable, and constructive feedback."
)


class BaseReviewer(ABC):
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS

    def summarize(self, title: str, description: str, change_summary: list[str]) -> str | None:
        """Summarize the PR in a few bullet points, or None if the model call failed."""
        return self._call_with_retry(SYSTEM_PROMPT, self._build_summary_prompt(title, description, change_summary))

    def draft_comment(self, title: str, description: str, summary: str, issues: list[ScanIssue]) -> str | None:
        """Draft the review comment posted on the PR, or None if the model call failed."""
        return self._call_with_retry(SYSTEM_PROMPT, self._build_comment_prompt(title, description, summary, issues))

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Send one request to the provider and return its text; raise on any failure."""

    def _call_with_retry(self, system_prompt: str, user_prompt: str) -> str | None:
        name = type(self).__name__
        for attempt in range(1, self.MAX_RETRIES + 1):
            try:
                return self._call_api(system_prompt, user_prompt)
            except Exception as e:
                if attempt == self.MAX_RETRIES:
                    logger.error("%s gave up after %d attempts: %s", name, attempt, e)
                    return None
                delay = 2 ** (attempt - 1)
                logger.warning("%s call failed (%d/%d): %s; retrying in %ds", name, attempt, self.MAX_RETRIES, e, delay)
                time.sleep(delay)
        return None

    def _build_summary_prompt(self, title: str, description: str, change_summary: list[str]) -> str:
        files = "\n".join(change_summary[:_MAX_FILES_IN_PROMPT])
        return f"""Summarize this Pull Request in 3-5 concise bullet points. Focus on the intent and impact.

PR Title: {title}

PR Description: {description}

Changed Files:
{files}

Provide only the bullet points, no additional text."""

    def _build_comment_prompt(self, title: str, description: str, summary: str, issues: list[ScanIssue]) -> str:
        if issues:
            issues_text = "\n".join(f"{i}. {issue.message}" for i, issue in enumerate(issues, 1))
        else:
            issues_text = "No issues found."
        return f"""Write a constructive code review comment for this Pull Request.

PR Title: {title}
PR Description: {description}

PR Summary:
{summary}

Issues Found:
{issues_text}

Structure your response as:
1. **Summary** (1-2 sentences)
2. **Key Findings** (bullet points)
3. **Recommendations** (actionable bullet points)
4. **Checklist** (3-5 items for the author to verify)

Keep the tone friendly, specific, and actionable. Use markdown formatting."""
