"""Data passed between the fetch, scan, approval and remediation stages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PullRequestRef:
    """Identity of an open pull request. Never mutated after creation."""

    owner: str
    repo: str
    number: int

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


class ContentTier(enum.Enum):
    """Content sources tried by the resolver, in order."""

    HEAD_REF = "head_ref"
    BLOB = "blob"
    RAW_URL = "raw_url"
    DEFAULT_BRANCH = "default_branch"


@dataclass
class ChangedFile:
    path: str
    content: str = ""  # "" means not fetched or unavailable, not "file is empty"
    lines_added: int = 0
    lines_removed: int = 0
    status: str = "modified"  # added | modified | removed | renamed
    source_tier: ContentTier | None = None
    sha: str | None = None
    previous_path: str | None = None

    @property
    def total_changes(self) -> int:
        return self.lines_added + self.lines_removed


@dataclass
class PRContext:
    """Everything fetched about a PR for one review cycle.

    Built once by BoundedFileFetcher; downstream stages only read it.
    """

    ref: PullRequestRef
    title: str = ""
    description: str = ""
    files: list[ChangedFile] = field(default_factory=list)
    head_ref: str | None = None  # branch name
    head_sha: str | None = None
    author: str | None = None

    @property
    def total_changes(self) -> int:
        return sum(f.total_changes for f in self.files)


class IssueKind(enum.Enum):
    SECRET = "secret"
    HARDCODED_IP = "hardcoded_ip"
    TODO = "todo"
    DEBUG_PRINT = "debug_print"
    DEBUGGER = "debugger"
    LARGE_FILE = "large_file"
    LONG_LINES = "long_lines"
    FORMATTING = "formatting"
    LOOSE_EQUALITY = "loose_equality"
    VAR_KEYWORD = "var_keyword"
    EMPTY_HANDLER = "empty_handler"
    OTHER = "other"


@dataclass
class ScanIssue:
    path: str
    kind: IssueKind
    message: str
    severity: str = "minor"  # critical | major | minor
    fixable: bool = False

    def __str__(self) -> str:
        return self.message


@dataclass
class ReviewResult:
    """Scanner findings plus the LLM-drafted summary and comment."""

    summary: str = ""
    comment: str = ""
    issues: list[ScanIssue] = field(default_factory=list)

    @property
    def has_critical_issues(self) -> bool:
        return any(i.severity == "critical" for i in self.issues)

    @property
    def fixable_issues(self) -> list[str]:
        return [i.message for i in self.issues if i.fixable]

    @property
    def critical_issues(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "critical"]


@dataclass
class ApprovalCriterion:
    passed: bool
    description: str


@dataclass
class ApprovalDecision:
    approve: bool
    report: str
    criteria: list[ApprovalCriterion] = field(default_factory=list)


class RemediationStage(enum.Enum):
    IDLE = "idle"
    CLONED = "cloned"
    CHECKED_OUT = "checked_out"
    PATCHED = "patched"
    COMMITTED = "committed"
    PUSHED = "pushed"
    COMMENTED = "commented"
    CLEANED = "cleaned"


@dataclass
class RemediationOutcome:
    fixed_count: int = 0
    applied: list[str] = field(default_factory=list)
    succeeded: bool = False
    # Furthest stage reached before cleanup; CLEANED is implied afterwards.
    stage: RemediationStage = RemediationStage.IDLE
