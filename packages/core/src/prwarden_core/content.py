"""Fallback chain for fetching the text of a changed file.

GitHub is not always self-consistent while a PR is being pushed to: the
contents API can 404 on a path that the files API just listed, a blob sha can
belong to a force-pushed-away commit, and a file may already be gone from the
head branch after a rebase. Rather than nesting conditionals, each source is a
tier with the same contract (``file -> text | None``) and the resolver walks
the ordered list until one yields text:

  1. HEAD_REF        contents API at the PR head sha
  2. BLOB            git blob by the file's 40-hex sha (immune to renames)
  3. RAW_URL         raw.githubusercontent.com at the head sha (no API quota)
  4. DEFAULT_BRANCH  contents API at the repository's default branch

A tier returning None means "not available here"; a tier raising is a tier
failure. Either way the next tier runs. Only when all four come up empty does
the file degrade to empty content, which downstream treats as "unavailable",
not as "the file is empty".
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable

from prwarden_core.gh.pull_request import (
    build_raw_url,
    fetch_raw_text,
    get_blob_text,
    get_default_branch,
    get_file_content,
    get_pull,
)
from prwarden_core.models import ChangedFile, ContentTier, PullRequestRef
from prwarden_core.retry import RetryExecutor

logger = logging.getLogger(__name__)

_SHA_RE = re.compile(r"^[0-9a-f]{40}$")

TierFn = Callable[[ChangedFile], Awaitable["str | None"]]


@dataclass
class Resolution:
    content: str
    tier: ContentTier | None


class ContentFallbackResolver:
    """Resolve file text for one PR through the ordered tier list.

    One resolver serves every file of a review cycle, so the head sha and the
    default branch name are looked up at most once and shared.
    """

    def __init__(
        self,
        repo,
        ref: PullRequestRef,
        executor: RetryExecutor,
        token: str | None = None,
        raw_base_url: str = "https://raw.githubusercontent.com",
        head_sha: str | None = None,
        default_branch: str | None = None,
    ):
        self._repo = repo
        self._ref = ref
        self._executor = executor
        self._token = token
        self._raw_base_url = raw_base_url
        self._head_sha = head_sha
        self._default_branch = default_branch
        self._lookup_lock = asyncio.Lock()
        self.tiers: list[tuple[ContentTier, TierFn]] = [
            (ContentTier.HEAD_REF, self._from_head_ref),
            (ContentTier.BLOB, self._from_blob),
            (ContentTier.RAW_URL, self._from_raw_url),
            (ContentTier.DEFAULT_BRANCH, self._from_default_branch),
        ]

    async def resolve(self, file: ChangedFile) -> Resolution:
        for tier, fetch in self.tiers:
            try:
                content = await fetch(file)
            except Exception as e:
                logger.warning("Tier %s failed for %s: %s", tier.value, file.path, e)
                continue
            if content is None:
                logger.debug("Tier %s had no content for %s", tier.value, file.path)
                continue
            logger.debug("Resolved %s via tier %s", file.path, tier.value)
            return Resolution(content=content, tier=tier)

        logger.info("Content unavailable for %s after all tiers; continuing without it", file.path)
        return Resolution(content="", tier=None)

    # ------------------------------------------------------------------ #
    # Shared lookups                                                      #
    # ------------------------------------------------------------------ #

    async def head_sha(self) -> str:
        async with self._lookup_lock:
            if self._head_sha is None:
                pr = await self._executor.run_blocking(get_pull, self._repo, self._ref.number)
                self._head_sha = pr.head.sha
        return self._head_sha

    async def default_branch(self) -> str:
        async with self._lookup_lock:
            if self._default_branch is None:
                self._default_branch = await self._executor.run_blocking(get_default_branch, self._repo)
        return self._default_branch

    # ------------------------------------------------------------------ #
    # Tiers                                                               #
    # ------------------------------------------------------------------ #

    async def _from_head_ref(self, file: ChangedFile) -> str | None:
        sha = await self.head_sha()
        return await self._executor.run_blocking(get_file_content, self._repo, file.path, sha)

    async def _from_blob(self, file: ChangedFile) -> str | None:
        if not file.sha or not _SHA_RE.match(file.sha):
            return None
        return await self._executor.run_blocking(get_blob_text, self._repo, file.sha)

    async def _from_raw_url(self, file: ChangedFile) -> str | None:
        sha = await self.head_sha()
        url = build_raw_url(self._raw_base_url, self._ref.owner, self._ref.repo, sha, file.path)
        return await self._executor.run_blocking(fetch_raw_text, url, self._token)

    async def _from_default_branch(self, file: ChangedFile) -> str | None:
        branch = await self.default_branch()
        return await self._executor.run_blocking(get_file_content, self._repo, file.path, branch)
