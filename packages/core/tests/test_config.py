"""Tests for configuration loading."""

from prwarden_core.config import load_config


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["model"] == "anthropic"
    assert config["max_concurrent_fetches"] == 5
    assert config["max_lines_per_file"] == 1000
    assert config["trusted_authors"] == []
    assert config["auto_approve"] is False
    assert config["auto_fix"] is False
    assert config["formatter_command"] == ["prettier", "--write", "."]
    assert config["retry_deadline"] is None


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".prwarden.yml"
    cfg.write_text("model: openai\nmax_concurrent_fetches: 3\nauto_approve: true\n")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "openai"
    assert config["max_concurrent_fetches"] == 3
    assert config["auto_approve"] is True


def test_trusted_authors_loaded(tmp_path):
    cfg = tmp_path / ".prwarden.yml"
    cfg.write_text("trusted_authors:\n  - alice\n  - bob\n")
    config = load_config(config_path=str(cfg))
    assert config["trusted_authors"] == ["alice", "bob"]


def test_formatter_command_string_is_split(tmp_path):
    cfg = tmp_path / ".prwarden.yml"
    cfg.write_text("formatter_command: black --quiet .\n")
    config = load_config(config_path=str(cfg))
    assert config["formatter_command"] == ["black", "--quiet", "."]


def test_empty_config_file_uses_defaults(tmp_path):
    cfg = tmp_path / ".prwarden.yml"
    cfg.write_text("")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "anthropic"


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".prwarden.yml"
    cfg.write_text("model: openai\nauto_fix: true\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": "anthropic", "auto_fix": False})
    assert config["model"] == "anthropic"
    assert config["auto_fix"] is False


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".prwarden.yml"
    cfg.write_text("model: openai\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": None})
    assert config["model"] == "openai"


def test_env_vars_loaded(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    config = load_config(config_path="nonexistent.yml")
    assert config["github_token"] == "gh-token"
    assert config["anthropic_api_key"] == "ant-key"
    assert config["openai_api_key"] == "oai-key"


def test_list_defaults_are_not_shared_references(tmp_path):
    """Mutating one config's lists must not affect another."""
    config_a = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_b = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_a["trusted_authors"].append("mallory")
    config_a["formatter_command"].append("--check")
    assert config_b["trusted_authors"] == []
    assert config_b["formatter_command"] == ["prettier", "--write", "."]
