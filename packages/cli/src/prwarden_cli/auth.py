"""GitHub token resolution.

Resolution order (stops at first success):
  1. GITHUB_TOKEN, then GH_TOKEN (Actions / explicit override)
  2. `gh auth token` (GitHub CLI session)

The token is used for API calls and as the git credential for auto-fix
pushes, so it needs `contents: write` when auto_fix is enabled.
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


def resolve_github_token() -> str | None:
    """Return a GitHub token or None; never raises."""
    for name in _ENV_VARS:
        token = os.environ.get(name)
        if token:
            return token

    try:
        result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    token = result.stdout.strip() if result.returncode == 0 else ""
    if token:
        logger.debug("Resolved GitHub token via gh CLI session.")
        return token
    return None
