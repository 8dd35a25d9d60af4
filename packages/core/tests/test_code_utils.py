"""Tests for file classification utilities."""

from prwarden_core.utils.code import has_test_indicator, is_docs_or_config, is_program_file, is_source_file


class TestIsSourceFile:
    def test_python_file(self):
        assert is_source_file("app/services/user.py") is True

    def test_tsx_file(self):
        assert is_source_file("src/components/Button.tsx") is True

    def test_config_formats_are_fetched(self):
        assert is_source_file("config/settings.json") is True
        assert is_source_file("deploy/values.yml") is True

    def test_markdown_is_not_source(self):
        assert is_source_file("README.md") is False

    def test_image_is_not_source(self):
        assert is_source_file("assets/logo.png") is False

    def test_no_extension(self):
        assert is_source_file("Makefile") is False

    def test_case_insensitive(self):
        assert is_source_file("Program.CS") is True


class TestIsProgramFile:
    def test_code_is_program(self):
        assert is_program_file("src/main.go") is True

    def test_data_formats_are_not_program(self):
        assert is_program_file("config/settings.json") is False
        assert is_program_file("db/schema.sql") is False


class TestIsDocsOrConfig:
    def test_markdown(self):
        assert is_docs_or_config("CHANGELOG.md") is True

    def test_yaml(self):
        assert is_docs_or_config(".github/workflows/ci.yaml") is True

    def test_anything_under_docs(self):
        assert is_docs_or_config("docs/conf.py") is True

    def test_code(self):
        assert is_docs_or_config("src/app.ts") is False


class TestHasTestIndicator:
    def test_test_directory(self):
        assert has_test_indicator("tests/test_app.py") is True

    def test_spec_file(self):
        assert has_test_indicator("src/app.Spec.ts") is True

    def test_plain_source(self):
        assert has_test_indicator("src/app.ts") is False
