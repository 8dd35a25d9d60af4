"""Regex-based static checks over fetched file content.

Pure text matching: no parsing and no network. Files whose content could not
be fetched are skipped rather than reported as clean.
"""

from __future__ import annotations

import logging
import re

from prwarden_core.models import ChangedFile, IssueKind, PRContext, ScanIssue

logger = logging.getLogger(__name__)

SECRET_RE = re.compile(
    r"(API[_-]?KEY|SECRET|PASSWORD|TOKEN|CREDENTIALS?|AUTH[_-]?KEY)\s*[:=]\s*[\"'][\w\-]{8,}[\"']",
    re.IGNORECASE,
)
IP_RE = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")
TODO_RE = re.compile(r"\b(TODO|FIXME|HACK|XXX|BUG)\b:?", re.IGNORECASE)
CONSOLE_RE = re.compile(r"console\.(log|debug|info|warn|error)\(", re.IGNORECASE)
DEBUGGER_RE = re.compile(r"\bdebugger\s*;")
LONG_LINE_RE = re.compile(r"^.{150,}$", re.MULTILINE)
LOOSE_EQUALITY_RE = re.compile(r"[^!=]==[^=]")
VAR_RE = re.compile(r"\bvar\s+\w+\s*=")
EMPTY_CATCH_RE = re.compile(r"catch\s*\([^)]*\)\s*\{\s*\}")
EMPTY_EXCEPT_RE = re.compile(r"except[^:\n]*:\s*\n\s*pass\b")
TRAILING_WS_RE = re.compile(r"[ \t]+$", re.MULTILINE)

VERY_LARGE_CHARS = 200_000
LARGE_CHARS = 50_000
MAX_CONSOLE_STATEMENTS = 2
MAX_LONG_LINES = 5
MAX_TRAILING_WS_LINES = 10


def _check_file(file: ChangedFile) -> list[ScanIssue]:
    content = file.content
    path = file.path
    issues: list[ScanIssue] = []

    if SECRET_RE.search(content):
        issues.append(
            ScanIssue(
                path,
                IssueKind.SECRET,
                f"Potential secret detected in `{path}`: verify no sensitive data is committed",
                severity="critical",
            )
        )

    ips = list(dict.fromkeys(IP_RE.findall(content)))
    if ips:
        shown = ", ".join(ips[:3])
        issues.append(
            ScanIssue(path, IssueKind.HARDCODED_IP, f"Hardcoded IP address(es) in `{path}`: {shown}", severity="major")
        )

    todos = TODO_RE.findall(content)
    if todos:
        issues.append(ScanIssue(path, IssueKind.TODO, f"{len(todos)} TODO/FIXME comment(s) in `{path}`"))

    consoles = CONSOLE_RE.findall(content)
    if len(consoles) > MAX_CONSOLE_STATEMENTS:
        issues.append(
            ScanIssue(
                path,
                IssueKind.DEBUG_PRINT,
                f"{len(consoles)} console.log statements in `{path}`: remove debug logging",
                fixable=True,
            )
        )
    if DEBUGGER_RE.search(content):
        issues.append(ScanIssue(path, IssueKind.DEBUGGER, f"Debugger statement in `{path}`", severity="major"))

    if len(content) > VERY_LARGE_CHARS:
        issues.append(ScanIssue(path, IssueKind.LARGE_FILE, f"Very large file `{path}` ({len(content) // 1000}KB)"))
    elif len(content) > LARGE_CHARS and file.lines_added > file.lines_removed:
        issues.append(ScanIssue(path, IssueKind.LARGE_FILE, f"Large file addition `{path}` ({len(content) // 1000}KB)"))

    long_lines = LONG_LINE_RE.findall(content)
    if len(long_lines) > MAX_LONG_LINES:
        issues.append(
            ScanIssue(path, IssueKind.LONG_LINES, f"{len(long_lines)} lines over 150 characters in `{path}`")
        )

    trailing = TRAILING_WS_RE.findall(content)
    if len(trailing) > MAX_TRAILING_WS_LINES:
        issues.append(
            ScanIssue(
                path,
                IssueKind.FORMATTING,
                f"Trailing whitespace on {len(trailing)} lines in `{path}`: run the formatter",
                fixable=True,
            )
        )

    lowered = path.lower()
    if lowered.endswith((".js", ".ts", ".jsx", ".tsx")):
        if len(LOOSE_EQUALITY_RE.findall(content)) > 2:
            issues.append(ScanIssue(path, IssueKind.LOOSE_EQUALITY, f"Loose equality (==) used in `{path}`"))
        if VAR_RE.search(content):
            issues.append(ScanIssue(path, IssueKind.VAR_KEYWORD, f"'var' keyword used in `{path}`"))
        if EMPTY_CATCH_RE.search(content):
            issues.append(ScanIssue(path, IssueKind.EMPTY_HANDLER, f"Empty catch block in `{path}`", severity="major"))
    elif lowered.endswith((".cs", ".java")):
        if EMPTY_CATCH_RE.search(content):
            issues.append(ScanIssue(path, IssueKind.EMPTY_HANDLER, f"Empty catch block in `{path}`", severity="major"))
    elif lowered.endswith(".py"):
        if EMPTY_EXCEPT_RE.search(content):
            issues.append(
                ScanIssue(path, IssueKind.EMPTY_HANDLER, f"Exception silently passed in `{path}`", severity="major")
            )

    return issues


def scan(context: PRContext) -> list[ScanIssue]:
    issues: list[ScanIssue] = []
    for file in context.files:
        if not file.content:
            continue
        try:
            issues.extend(_check_file(file))
        except Exception as e:
            logger.warning("Error scanning %s: %s", file.path, e)
    logger.info("Code scan completed: %d issue(s) found", len(issues))
    return issues
