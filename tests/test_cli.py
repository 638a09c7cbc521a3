"""Tests for idiomguard CLI."""
from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from idiomguard.cli import cli
from idiomguard.constants import __version__


def _lint(config: Path, *args: str) -> tuple[int, str]:
    runner: CliRunner = CliRunner()
    result = runner.invoke(cli, ["--config", str(config), "lint", *args])
    return result.exit_code, result.output


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_help_shows_usage(self) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "idiomguard" in result.output
        assert "config" in result.output
        assert "lint" in result.output
        assert "rules" in result.output

    def test_version_shows_version(self) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestConfigCommand:
    """Test the config command."""

    def test_config_shows_resolved_config(self, temp_pyproject: Path) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(temp_pyproject), "config"])

        assert result.exit_code == 0
        assert "idiomguard Configuration" in result.output
        assert "Configured Levels:" in result.output
        assert "  len_zero: DENY" in result.output
        assert "  length_methods: len, size" in result.output

    def test_config_json_outputs_valid_json(self, temp_pyproject: Path) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(temp_pyproject), "config", "--json"])

        assert result.exit_code == 0
        data: dict[str, object] = json.loads(result.output)
        assert data["output_format"] == "json"
        assert data["rules"]["levels"]["len_without_is_empty"] == "forbid"  # type: ignore[index]
        assert data["warnings"] == []

    def test_config_validate_succeeds(self, empty_pyproject: Path) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(empty_pyproject), "config", "--validate"])

        assert result.exit_code == 0
        assert "Configuration valid" in result.output

    def test_config_validate_reports_unknown_rules(self, tmp_path: Path) -> None:
        config_path: Path = tmp_path / "pyproject.toml"
        config_path.write_text(
            """
[tool.idiomguard.rules]
len_zreo = "deny"
"""
        )
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(config_path), "config", "--validate"])

        assert result.exit_code == 0
        assert "unknown rule in configuration: `len_zreo`" in result.output


class TestLintCommand:
    """Test the lint command."""

    def test_lint_clean_model(self, empty_pyproject: Path, clean_model: Path) -> None:
        exit_code, output = _lint(empty_pyproject, str(clean_model))

        assert exit_code == 0
        assert "No issues found." in output
        assert "Checked 1 file." in output

    def test_lint_warning_passes(self, empty_pyproject: Path, len_model: Path) -> None:
        exit_code, output = _lint(empty_pyproject, str(len_model))

        assert exit_code == 0
        assert "WARN [len_without_is_empty]" in output
        assert "    pub impl Stack {" in output

    def test_lint_deny_flag_fails(self, empty_pyproject: Path, len_model: Path) -> None:
        exit_code, output = _lint(empty_pyproject, "-D", "len_without_is_empty", str(len_model))

        assert exit_code == 1
        assert "DENY [len_without_is_empty]" in output
        assert "1 blocking finding." in output

    def test_lint_category_flag(self, empty_pyproject: Path, len_model: Path) -> None:
        exit_code, output = _lint(empty_pyproject, "--forbid", "style", str(len_model))

        assert exit_code == 1
        assert "FORBID [len_without_is_empty]" in output

    def test_lint_allow_flag_silences(self, empty_pyproject: Path, len_model: Path) -> None:
        exit_code, output = _lint(empty_pyproject, "-A", "all", str(len_model))

        assert exit_code == 0
        assert "No issues found." in output

    def test_lint_strictest_flag_wins(self, empty_pyproject: Path, len_model: Path) -> None:
        exit_code, _ = _lint(
            empty_pyproject, "-D", "len_without_is_empty", "-A", "len_without_is_empty",
            str(len_model),
        )

        assert exit_code == 1

    def test_lint_unknown_lint_flag(self, empty_pyproject: Path, len_model: Path) -> None:
        exit_code, output = _lint(empty_pyproject, "-D", "len_zreo", str(len_model))

        assert exit_code == 2
        assert "unknown lint or category" in output

    def test_lint_configured_level(
        self, temp_pyproject: Path, len_model: Path, tmp_path: Path,
    ) -> None:
        # temp_pyproject forbids len_without_is_empty, writes JSON and only
        # includes models/**/*.json
        models: Path = tmp_path / "models"
        models.mkdir()
        len_model.rename(models / "stack.json")
        exit_code, output = _lint(temp_pyproject, str(tmp_path))

        assert exit_code == 1
        data: dict[str, object] = json.loads(output)
        assert data["findings"][0]["level"] == "forbid"  # type: ignore[index]

    def test_lint_invalid_model(self, empty_pyproject: Path, tmp_path: Path) -> None:
        (tmp_path / "broken.json").write_text("{oops")
        exit_code, output = _lint(empty_pyproject, str(tmp_path / "broken.json"))

        assert exit_code == 0
        assert "model error [MDL001]" in output
        assert "1 engine issue reported." in output

    def test_lint_empty_directory(self, empty_pyproject: Path, tmp_path: Path) -> None:
        empty: Path = tmp_path / "empty"
        empty.mkdir()
        exit_code, output = _lint(empty_pyproject, str(empty))

        assert exit_code == 0
        assert "No issues found." in output
        assert "Checked 0 files." in output

    def test_lint_json_format(self, empty_pyproject: Path, len_model: Path) -> None:
        exit_code, output = _lint(empty_pyproject, "--format", "json", str(len_model))

        assert exit_code == 0
        data: dict[str, object] = json.loads(output)
        assert data["findings"][0]["rule_id"] == "len_without_is_empty"  # type: ignore[index]

    def test_lint_github_format(self, empty_pyproject: Path, len_model: Path) -> None:
        exit_code, output = _lint(empty_pyproject, "--format", "github", str(len_model))

        assert exit_code == 0
        assert output.startswith("::warning file=src/stack.rs,line=3,col=1")

    def test_lint_no_show_source(self, empty_pyproject: Path, len_model: Path) -> None:
        exit_code, output = _lint(empty_pyproject, "--no-show-source", str(len_model))

        assert exit_code == 0
        assert "pub impl Stack {" not in output
        assert "    ^" not in output

    def test_lint_color_never_is_plain(self, empty_pyproject: Path, len_model: Path) -> None:
        _, output = _lint(empty_pyproject, "--color", "never", str(len_model))

        assert "\x1b[" not in output

    def test_lint_parallel_jobs(self, empty_pyproject: Path, len_model: Path, clean_model: Path) -> None:
        exit_code, output = _lint(empty_pyproject, "-j", "2", str(len_model), str(clean_model))

        assert exit_code == 0
        assert "Checked 2 files." in output


class TestRulesCommand:
    def test_lists_every_lint(self, empty_pyproject: Path) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(empty_pyproject), "rules"])

        assert result.exit_code == 0
        for rule_id in ("len_zero", "len_without_is_empty", "enum_variant_names"):
            assert rule_id in result.output

    def test_shows_effective_level(self, temp_pyproject: Path) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(temp_pyproject), "rules"])

        line: str = next(
            ln for ln in result.output.splitlines() if ln.startswith("len_zero ")
        )
        assert "deny" in line


class TestErrorHandling:
    """Test CLI error handling."""

    def test_invalid_config_exits_with_error(self, invalid_config: Path) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(invalid_config), "config"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_invalid_toml_exits_with_error(self, invalid_toml: Path) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(invalid_toml), "lint"])

        assert result.exit_code == 1
        assert "Invalid TOML" in result.output
