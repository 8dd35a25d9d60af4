import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "anthropic",
    "max_concurrent_fetches": 5,
    "max_lines_per_file": 1000,  # files with added+removed at or above this are not fetched
    "trusted_authors": [],  # empty = author check disabled
    "auto_approve": False,
    "auto_fix": False,
    "formatter_command": ["prettier", "--write", "."],
    "bot_name": "prwarden[bot]",
    "bot_email": "prwarden@users.noreply.github.com",
    "raw_base_url": "https://raw.githubusercontent.com",
    "git_host": "github.com",
    "retry_deadline": None,  # seconds; None = no overall retry deadline
}

_LIST_KEYS = ("trusted_authors", "formatter_command")


def load_config(config_path: str = ".prwarden.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prwarden.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG}
    for key in _LIST_KEYS:
        config[key] = list(DEFAULT_CONFIG[key])

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if isinstance(config["formatter_command"], str):
        config["formatter_command"] = config["formatter_command"].split()

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config
