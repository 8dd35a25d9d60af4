"""Tests for the CLI entry point."""

import json
import subprocess

from click.testing import CliRunner
from github import GithubException

from prwarden_cli.auth import resolve_github_token
from prwarden_cli.cli import main
from prwarden_core.errors import ReviewPublishError
from prwarden_core.models import (
    ApprovalDecision,
    IssueKind,
    PullRequestRef,
    RemediationOutcome,
    ScanIssue,
)
from prwarden_core.reviewer import ReviewSummary


def _make_config(github_token="tok", model="anthropic", anthropic_key="ant", openai_key=None):
    return {
        "github_token": github_token,
        "model": model,
        "anthropic_api_key": anthropic_key,
        "openai_api_key": openai_key,
        "auto_approve": False,
        "auto_fix": False,
        "trusted_authors": [],
    }


def _summary(**kwargs):
    return ReviewSummary(ref=PullRequestRef("owner", "repo", 1), head_sha="a" * 40, event="COMMENT", **kwargs)


def _patch_common(mocker, config=None, token="tok"):
    """Patch load_config and resolve_github_token for most tests."""
    cfg = config or _make_config()
    load = mocker.patch("prwarden_core.config.load_config", return_value=cfg)
    mocker.patch("prwarden_cli.auth.resolve_github_token", return_value=token)
    return cfg, load


class TestCLIValidation:
    def test_missing_github_token(self, mocker):
        _patch_common(mocker, config=_make_config(github_token=None), token=None)

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code != 0
        assert "GITHUB_TOKEN" in result.output

    def test_missing_anthropic_key(self, mocker):
        _patch_common(mocker, config=_make_config(model="anthropic", anthropic_key=None))

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code != 0
        assert "ANTHROPIC_API_KEY" in result.output

    def test_missing_openai_key(self, mocker):
        _patch_common(mocker, config=_make_config(model="openai", anthropic_key=None, openai_key=None))

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code != 0
        assert "OPENAI_API_KEY" in result.output

    def test_pr_is_required(self):
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo"])
        assert result.exit_code != 0


class TestCLIRunReview:
    def test_calls_run_review_with_correct_args(self, mocker):
        cfg, _ = _patch_common(mocker)
        mock_run = mocker.patch("prwarden_cli.commands.review.run_review", return_value=_summary())

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "42"])

        assert result.exit_code == 0, result.output
        kwargs = mock_run.call_args.kwargs
        assert kwargs["repo"] == "owner/repo"
        assert kwargs["pr_number"] == 42
        assert kwargs["shadow"] is False
        assert kwargs["config"]["github_token"] == "tok"

    def test_shadow_flag_passed_through(self, mocker):
        _patch_common(mocker)
        mock_run = mocker.patch("prwarden_cli.commands.review.run_review", return_value=_summary())

        CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1", "--shadow"])

        assert mock_run.call_args.kwargs["shadow"] is True

    def test_flags_become_config_overrides(self, mocker):
        _, load = _patch_common(mocker)
        mocker.patch("prwarden_cli.commands.review.run_review", return_value=_summary())

        CliRunner().invoke(
            main,
            ["--config", "custom.yml", "review", "--repo", "o/r", "--pr", "1", "--model", "openai", "--auto-fix"],
        )

        load.assert_called_once_with(
            "custom.yml", cli_overrides={"model": "openai", "auto_approve": None, "auto_fix": True}
        )

    def test_github_error_is_reported(self, mocker):
        _patch_common(mocker)
        mocker.patch(
            "prwarden_cli.commands.review.run_review",
            side_effect=GithubException(404, {"message": "Not Found"}, None),
        )

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "9"])

        assert result.exit_code == 1
        assert "Could not fetch PR #9 in owner/repo" in result.output

    def test_post_error_names_the_post_stage(self, mocker):
        _patch_common(mocker)
        cause = GithubException(403, {"message": "Resource not accessible by integration"}, None)
        mocker.patch(
            "prwarden_cli.commands.review.run_review",
            side_effect=ReviewPublishError(PullRequestRef("owner", "repo", 9), cause),
        )

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "9"])

        assert result.exit_code == 1
        assert "Could not post review to PR #9 in owner/repo" in result.output
        assert "Could not fetch" not in result.output

    def test_summary_printed(self, mocker):
        _patch_common(mocker)
        summary = _summary(
            issues=[ScanIssue("src/app.js", IssueKind.DEBUG_PRINT, "3 console.log statements", fixable=True)],
            unfetched_files=["big.js"],
            approval=ApprovalDecision(approve=False, report="❌ Small change size (400 lines)"),
            remediation=RemediationOutcome(fixed_count=1, applied=["3 console.log statements"], succeeded=True),
        )
        mocker.patch("prwarden_cli.commands.review.run_review", return_value=summary)

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])

        assert result.exit_code == 0, result.output
        assert "src/app.js" in result.output
        assert "Content not fetched for 1 file(s)" in result.output
        assert "Small change size" in result.output
        assert "fixed" in result.output


class TestCLIWebhook:
    def _write(self, tmp_path, payload):
        path = tmp_path / "event.json"
        path.write_text(json.dumps(payload))
        return str(path)

    def _payload(self, action="opened"):
        return {
            "action": action,
            "pull_request": {
                "number": 7,
                "title": "Fix login",
                "body": "Closes #1",
                "base": {"repo": {"name": "app", "owner": {"login": "octo"}}},
            },
        }

    def test_reviews_pr_from_payload(self, mocker, tmp_path):
        _patch_common(mocker)
        mock_run = mocker.patch("prwarden_cli.commands.review.run_review", return_value=_summary())
        path = self._write(tmp_path, self._payload())

        result = CliRunner().invoke(main, ["webhook", "--payload", path, "--event", "pull_request"])

        assert result.exit_code == 0, result.output
        kwargs = mock_run.call_args.kwargs
        assert kwargs["repo"] == "octo/app"
        assert kwargs["pr_number"] == 7
        assert kwargs["title"] == "Fix login"
        assert kwargs["description"] == "Closes #1"

    def test_ignores_unhandled_action(self, mocker, tmp_path):
        _patch_common(mocker)
        mock_run = mocker.patch("prwarden_cli.commands.review.run_review")
        path = self._write(tmp_path, self._payload(action="closed"))

        result = CliRunner().invoke(main, ["webhook", "--payload", path, "--event", "pull_request"])

        assert result.exit_code == 0
        assert "Ignoring" in result.output
        mock_run.assert_not_called()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "event.json"
        path.write_text("{not json")

        result = CliRunner().invoke(main, ["webhook", "--payload", str(path), "--event", "pull_request"])

        assert result.exit_code == 1
        assert "Invalid JSON payload" in result.output

    def test_malformed_payload(self, mocker, tmp_path):
        _patch_common(mocker)
        path = self._write(tmp_path, {"action": "opened", "pull_request": {"number": 7}})

        result = CliRunner().invoke(main, ["webhook", "--payload", path, "--event", "pull_request"])

        assert result.exit_code == 1
        assert "Malformed" in result.output


class TestCLIInit:
    def test_writes_config_and_workflow(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        # provider, auto-approve, trusted authors, auto-fix, workflow
        result = CliRunner().invoke(main, ["init"], input="openai\ny\nalice, bob\ny\ny\n")

        assert result.exit_code == 0, result.output
        config = (tmp_path / ".prwarden.yml").read_text()
        assert "model: openai" in config
        assert "auto_fix: true" in config
        assert "- alice" in config
        workflow = (tmp_path / ".github" / "workflows" / "prwarden.yml").read_text()
        assert "OPENAI_API_KEY" in workflow
        assert "contents: write" in workflow
        assert "prwarden -v webhook" in workflow

    def test_preserves_existing_keys(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".prwarden.yml").write_text("max_lines_per_file: 500\n")

        CliRunner().invoke(main, ["init"], input="anthropic\nn\nn\nn\n")

        config = (tmp_path / ".prwarden.yml").read_text()
        assert "max_lines_per_file: 500" in config
        assert "model: anthropic" in config
        assert not (tmp_path / ".github").exists()


class TestResolveGithubToken:
    def test_env_var_wins(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert resolve_github_token() == "env-token"

    def test_gh_token_fallback(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GH_TOKEN", "gh-env")
        assert resolve_github_token() == "gh-env"

    def test_gh_cli_session(self, monkeypatch, mocker):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)
        mocker.patch(
            "prwarden_cli.auth.subprocess.run",
            return_value=subprocess.CompletedProcess([], 0, stdout="cli-token\n", stderr=""),
        )
        assert resolve_github_token() == "cli-token"

    def test_no_gh_cli(self, monkeypatch, mocker):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)
        mocker.patch("prwarden_cli.auth.subprocess.run", side_effect=FileNotFoundError)
        assert resolve_github_token() is None
