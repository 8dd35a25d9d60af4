"""Thin PyGithub / raw-content helpers.

Each helper performs a single blocking request and raises on failure; retrying
and fallback live in the callers (RetryExecutor, ContentFallbackResolver).
"""

from __future__ import annotations

import base64

import requests
from github import Github

RAW_TIMEOUT_SECONDS = 30


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_pull_requests(repo, state: str = "open"):
    return repo.get_pulls(state=state)


def get_diff(pr) -> list:
    return list(pr.get_files())


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def get_file_content(repo, path: str, ref: str) -> str | None:
    """Return the text of ``path`` at ``ref``, or None if it is not a regular file.

    A directory comes back as a list; submodules and symlinks carry their own
    ``type``. Files over GitHub's 1 MB contents limit come back with encoding
    "none" and no inline content.
    """
    contents = repo.get_contents(path, ref=ref)
    if isinstance(contents, list):
        return None
    if contents.type != "file" or contents.encoding == "none":
        return None
    return _decode(contents.decoded_content)


def get_blob_text(repo, sha: str) -> str:
    blob = repo.get_git_blob(sha)
    if blob.encoding == "base64":
        return _decode(base64.b64decode(blob.content))
    return blob.content


def get_default_branch(repo) -> str:
    return repo.default_branch


def get_check_runs(repo, ref: str) -> list:
    return list(repo.get_commit(ref).get_check_runs())


def build_raw_url(base_url: str, owner: str, repo: str, ref: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{owner}/{repo}/{ref}/{path.lstrip('/')}"


def fetch_raw_text(url: str, token: str | None = None, timeout: float = RAW_TIMEOUT_SECONDS) -> str:
    headers = {"Authorization": f"token {token}"} if token else {}
    response = requests.get(url, headers=headers, timeout=timeout)
    response.raise_for_status()
    return response.text
