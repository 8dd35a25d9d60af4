"""Exceptions raised by prwarden's own I/O helpers."""

from __future__ import annotations


class GitCommandError(RuntimeError):
    """A ``git`` (or formatter) subprocess exited non-zero.

    The command line is kept with any credential-bearing URL already redacted
    so the exception is safe to log.
    """

    def __init__(self, args: list[str], returncode: int, output: str):
        self.args_list = args
        self.returncode = returncode
        self.output = output
        super().__init__(f"`{' '.join(args)}` exited with {returncode}: {output.strip()[:500]}")


class ReviewPublishError(RuntimeError):
    """GitHub rejected the comment or review after the PR was read.

    Kept apart from fetch failures so a token that can read but not write
    pull requests is reported as such.
    """

    def __init__(self, ref, cause: Exception):
        self.ref = ref
        self.cause = cause
        super().__init__(f"Could not post review to PR #{ref.number} in {ref.full_name}: {cause}")
