"""Turn a GitHub ``pull_request`` webhook delivery into a PullRequestRef."""

from __future__ import annotations

from prwarden_core.models import PullRequestRef

HANDLED_ACTIONS = frozenset({"opened", "synchronize", "reopened"})


def should_handle(event: str, payload: dict) -> bool:
    return event == "pull_request" and payload.get("action") in HANDLED_ACTIONS


def parse_pull_request_event(payload: dict) -> tuple[PullRequestRef, str, str]:
    """Return ``(ref, title, description)`` for a pull_request payload.

    The ref names the base repository, where the PR lives and where reviews
    and comments are posted, even when the head branch is on a fork.
    """
    try:
        pr = payload["pull_request"]
        base_repo = pr["base"]["repo"]
        ref = PullRequestRef(
            owner=base_repo["owner"]["login"],
            repo=base_repo["name"],
            number=int(pr["number"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed pull_request payload: missing or invalid {e}") from e
    return ref, pr.get("title") or "", pr.get("body") or ""
