from pathlib import PurePosixPath

# Extensions whose content is fetched for scanning. Config formats are
# included because secrets and hardcoded hosts tend to live there.
FETCHABLE_EXTENSIONS = {
    ".cs",
    ".js",
    ".ts",
    ".jsx",
    ".tsx",
    ".py",
    ".java",
    ".go",
    ".rb",
    ".php",
    ".cpp",
    ".c",
    ".h",
    ".swift",
    ".kt",
    ".rs",
    ".sql",
    ".json",
    ".yaml",
    ".yml",
}

# Data/config formats: fetchable, but a change to them alone does not call for tests.
_DATA_EXTENSIONS = {".json", ".yaml", ".yml", ".sql"}

PROGRAM_EXTENSIONS = FETCHABLE_EXTENSIONS - _DATA_EXTENSIONS

DOCS_OR_CONFIG_EXTENSIONS = {".md", ".json", ".yml", ".yaml"}

# Files the debug-print fixer rewrites.
SCRIPT_EXTENSIONS = {".js", ".jsx", ".ts", ".tsx"}


def _suffix(file_name: str) -> str:
    return PurePosixPath(file_name).suffix.lower()


def is_source_file(file_name: str) -> bool:
    return _suffix(file_name) in FETCHABLE_EXTENSIONS


def is_program_file(file_name: str) -> bool:
    return _suffix(file_name) in PROGRAM_EXTENSIONS


def is_docs_or_config(file_name: str) -> bool:
    return _suffix(file_name) in DOCS_OR_CONFIG_EXTENSIONS or "docs/" in file_name


def has_test_indicator(file_name: str) -> bool:
    lowered = file_name.lower()
    return "test" in lowered or "spec" in lowered
