"""Change statistics and plain-text summaries of a PR's file list.

Used to feed the summary prompt, and as the summary itself when the model is
unavailable.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from pathlib import PurePosixPath

from prwarden_core.models import ChangedFile, PRContext

_CONFIG_FILES = {
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "requirements.txt",
    "pipfile",
    "poetry.lock",
    ".env",
    ".env.example",
    "tsconfig.json",
    "dockerfile",
    ".dockerignore",
    "docker-compose.yml",
    "docker-compose.yaml",
    "pyproject.toml",
    "setup.cfg",
}
_CONFIG_EXTENSIONS = {".config", ".ini", ".toml", ".properties", ".cfg"}
_DOC_EXTENSIONS = {".md", ".txt", ".rst", ".adoc"}
_TEST_INDICATORS = ("test", "spec")

_LANGUAGES = {
    ".cs": "C#",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".py": "Python",
    ".java": "Java",
    ".go": "Go",
    ".rb": "Ruby",
    ".php": "PHP",
    ".rs": "Rust",
    ".kt": "Kotlin",
    ".swift": "Swift",
    ".c": "C/C++",
    ".h": "C/C++",
    ".cpp": "C/C++",
    ".html": "HTML",
    ".css": "Styles",
    ".scss": "Styles",
    ".json": "JSON",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".sql": "SQL",
    ".sh": "Shell Scripts",
}

_COMPLEXITY_BUCKETS = ((100, "Small"), (500, "Medium"), (1000, "Large"))


def file_category(path: str) -> str:
    p = PurePosixPath(path)
    name = p.name.lower()
    ext = p.suffix.lower()
    if name in _CONFIG_FILES or ext in _CONFIG_EXTENSIONS:
        return "Configuration"
    if ext in _DOC_EXTENSIONS or name in {"license", "changelog"}:
        return "Documentation"
    if any(indicator in path.lower() for indicator in _TEST_INDICATORS):
        return "Tests"
    return _LANGUAGES.get(ext, "Other Files")


def complexity(total_lines: int) -> str:
    for ceiling, label in _COMPLEXITY_BUCKETS:
        if total_lines < ceiling:
            return label
    return "Very Large"


def pr_statistics(context: PRContext) -> dict:
    added = sum(f.lines_added for f in context.files)
    removed = sum(f.lines_removed for f in context.files)
    total = added + removed
    return {
        "total_files": len(context.files),
        "lines_added": added,
        "lines_removed": removed,
        "net_change": added - removed,
        "file_types": dict(Counter(file_category(f.path) for f in context.files)),
        "statuses": dict(Counter(f.status for f in context.files)),
        "complexity": complexity(total),
        "estimated_review_minutes": max(5, total // 20),
    }


def _file_line(f: ChangedFile) -> str:
    return f"  - {f.path} (+{f.lines_added} -{f.lines_removed}) [{f.status}]"


def change_summary(files: list[ChangedFile]) -> list[str]:
    """Group files by category, listing at most three files per large group."""
    groups: dict[str, list[ChangedFile]] = defaultdict(list)
    for f in files:
        groups[file_category(f.path)].append(f)

    lines = []
    for category, members in groups.items():
        added = sum(f.lines_added for f in members)
        removed = sum(f.lines_removed for f in members)
        lines.append(f"{category} ({len(members)} files): +{added} -{removed} lines")
        if len(members) <= 5:
            lines.extend(_file_line(f) for f in members)
        else:
            top = sorted(members, key=lambda f: f.total_changes, reverse=True)[:3]
            lines.extend(_file_line(f) for f in top)
            lines.append(f"  - ... and {len(members) - 3} more files")

    lines.append("")
    lines.append(
        f"Total: {len(files)} files changed, "
        f"+{sum(f.lines_added for f in files)} -{sum(f.lines_removed for f in files)} lines"
    )
    return lines


def fallback_summary(context: PRContext) -> str:
    lines = [f"Pull Request: {context.title}"]
    if context.description:
        lines.append(f"Description: {context.description}")
    if context.files:
        stats = pr_statistics(context)
        lines.append(f"\nChanged Files: {stats['total_files']}")
        lines.append(f"Lines Added: {stats['lines_added']}")
        lines.append(f"Lines Removed: {stats['lines_removed']}")
        lines.append("\nTop Changed Files:")
        top = sorted(context.files, key=lambda f: f.total_changes, reverse=True)[:5]
        lines.extend(f"  - {f.path} (+{f.lines_added} -{f.lines_removed})" for f in top)
    return "\n".join(lines)
