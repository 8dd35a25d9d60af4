"""Build a PRContext: file list plus content for eligible files.

Content is fetched only for source files with fewer than ``max_lines``
changed lines, which bounds both memory and API spend on large generated
diffs. Eligible files are resolved concurrently, but never more than
``max_concurrency`` at a time: each resolution waits on a semaphore slot
before it starts and gives it back however it ends.
"""

from __future__ import annotations

import asyncio
import logging

from prwarden_core.content import ContentFallbackResolver
from prwarden_core.gh.pull_request import get_diff, get_pull
from prwarden_core.models import ChangedFile, PRContext, PullRequestRef
from prwarden_core.retry import RetryExecutor
from prwarden_core.utils.code import is_source_file

logger = logging.getLogger(__name__)

MAX_CONCURRENT_FETCHES = 5
MAX_LINES_PER_FILE = 1000


def is_eligible(file: ChangedFile, max_lines: int = MAX_LINES_PER_FILE) -> bool:
    if file.status == "removed":
        return False
    return is_source_file(file.path) and file.total_changes < max_lines


def to_changed_file(gh_file) -> ChangedFile:
    return ChangedFile(
        path=gh_file.filename,
        lines_added=gh_file.additions,
        lines_removed=gh_file.deletions,
        status=gh_file.status,
        sha=gh_file.sha,
        previous_path=getattr(gh_file, "previous_filename", None),
    )


class BoundedFileFetcher:
    def __init__(
        self,
        repo,
        executor: RetryExecutor,
        token: str | None = None,
        raw_base_url: str = "https://raw.githubusercontent.com",
        max_concurrency: int = MAX_CONCURRENT_FETCHES,
        max_lines: int = MAX_LINES_PER_FILE,
    ):
        self._repo = repo
        self._executor = executor
        self._token = token
        self._raw_base_url = raw_base_url
        self.max_concurrency = max_concurrency
        self.max_lines = max_lines

    def _make_resolver(self, ref: PullRequestRef, head_sha: str | None) -> ContentFallbackResolver:
        return ContentFallbackResolver(
            self._repo,
            ref,
            self._executor,
            token=self._token,
            raw_base_url=self._raw_base_url,
            head_sha=head_sha,
        )

    async def fetch_context(
        self,
        ref: PullRequestRef,
        title: str | None = None,
        description: str | None = None,
    ) -> PRContext:
        """Fetch PR metadata, the file list and eligible file content.

        Failure to fetch the PR or its file list propagates: there is no
        context without a file list. Per-file failures never do.
        """
        pr = await self._executor.run_blocking(get_pull, self._repo, ref.number)
        gh_files = await self._executor.run_blocking(get_diff, pr)
        files = [to_changed_file(f) for f in gh_files]

        head_sha = pr.head.sha
        resolver = self._make_resolver(ref, head_sha)
        files = await self.populate(files, resolver)

        fetched = sum(1 for f in files if f.content)
        logger.info("Fetched content for %d of %d file(s) in %s", fetched, len(files), ref)

        return PRContext(
            ref=ref,
            title=title if title is not None else (pr.title or ""),
            description=description if description is not None else (pr.body or ""),
            files=files,
            head_ref=pr.head.ref,
            head_sha=head_sha,
            author=pr.user.login if pr.user is not None else None,
        )

    async def populate(self, files: list[ChangedFile], resolver: ContentFallbackResolver) -> list[ChangedFile]:
        """Resolve content for eligible files; result order matches ``files``."""
        gate = asyncio.Semaphore(self.max_concurrency)

        async def fetch_one(file: ChangedFile) -> ChangedFile:
            if not is_eligible(file, self.max_lines):
                return file
            async with gate:
                try:
                    resolution = await resolver.resolve(file)
                except Exception as e:
                    logger.info("Could not resolve %s: %s", file.path, e)
                    return file
            file.content = resolution.content
            file.source_tier = resolution.tier
            return file

        return list(await asyncio.gather(*(fetch_one(f) for f in files)))
