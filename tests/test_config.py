"""Tests for idiomguard configuration system."""
from __future__ import annotations

import os
from pathlib import Path
from types import MappingProxyType

import pytest

from idiomguard.config import ConfigLoader, apply_level_overrides, load_config, parse_level
from idiomguard.constants import (
    DEFAULT_EXCLUDES,
    ENUM_VARIANT_NAMES,
    LEN_WITHOUT_IS_EMPTY,
    LEN_ZERO,
    PUB_ENUM_VARIANT_NAMES,
    ColorMode,
    Level,
    OutputFormat,
)
from idiomguard.rules.registry import default_registry
from idiomguard.types import ConfigError, IdiomGuardConfig, RuleOptions


def _categories() -> dict[str, str]:
    return {i.id: i.category.value for i in default_registry().catalog.values()}


class TestConfigDefaults:
    """Test default configuration values."""

    def test_default_config_has_expected_values(self) -> None:
        config: IdiomGuardConfig = IdiomGuardConfig()

        assert config.include == ("**/*.json",)
        assert config.exclude == DEFAULT_EXCLUDES
        assert config.output_format == OutputFormat.TEXT
        assert config.show_source is True
        assert config.color == ColorMode.AUTO
        assert config.jobs == 1
        assert config.config_path is None
        assert config.warnings == ()

    def test_default_rule_options(self) -> None:
        config: IdiomGuardConfig = IdiomGuardConfig()

        assert config.rules.levels == {}
        assert config.rules.len.length_methods == ("len", "length")
        assert config.rules.len.emptiness_method == "is_empty"
        assert config.rules.enum_variants.min_prefix_length == 3

    def test_configured_level_none_by_default(self) -> None:
        assert IdiomGuardConfig().configured_level(LEN_ZERO) is None


class TestConfigLoading:
    """Test loading configuration from files."""

    def test_load_full_config(self, temp_pyproject: Path) -> None:
        config: IdiomGuardConfig = ConfigLoader.load(temp_pyproject)

        assert config.config_path == temp_pyproject
        assert config.include == ("models/**/*.json",)
        assert config.exclude == ("**/generated_*.json",)
        assert config.output_format == OutputFormat.JSON
        assert config.show_source is False
        assert config.color == ColorMode.NEVER
        assert config.jobs == 4

    def test_load_rule_levels(self, temp_pyproject: Path) -> None:
        config: IdiomGuardConfig = ConfigLoader.load(temp_pyproject)

        assert config.configured_level(LEN_ZERO) == Level.DENY
        assert config.configured_level(PUB_ENUM_VARIANT_NAMES) == Level.WARN
        assert config.configured_level(LEN_WITHOUT_IS_EMPTY) == Level.FORBID
        assert config.configured_level(ENUM_VARIANT_NAMES) is None

    def test_load_rule_options(self, temp_pyproject: Path) -> None:
        config: IdiomGuardConfig = ConfigLoader.load(temp_pyproject)

        assert config.rules.len.length_methods == ("len", "size")
        assert config.rules.enum_variants.min_prefix_length == 4

    def test_levels_are_read_only(self, temp_pyproject: Path) -> None:
        config: IdiomGuardConfig = ConfigLoader.load(temp_pyproject)
        with pytest.raises(TypeError):
            config.rules.levels[LEN_ZERO] = Level.ALLOW  # type: ignore[index]

    def test_empty_tool_section_gives_defaults(self, empty_pyproject: Path) -> None:
        config: IdiomGuardConfig = ConfigLoader.load(empty_pyproject)

        assert config.config_path == empty_pyproject
        assert config.include == ("**/*.json",)
        assert config.rules.levels == {}

    def test_invalid_toml_raises(self, invalid_toml: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid TOML") as exc_info:
            ConfigLoader.load(invalid_toml)
        assert exc_info.value.path == invalid_toml

    def test_invalid_values_reported_together(self, invalid_config: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(invalid_config)

        message: str = str(exc_info.value)
        assert "output_format must be one of" in message
        assert "color must be one of" in message
        assert "rules.len_zero must be one of" in message

    def test_load_config_convenience(self, temp_pyproject: Path) -> None:
        config: IdiomGuardConfig = load_config(temp_pyproject)
        assert config.output_format == OutputFormat.JSON


class TestRulesTable:
    def _load(self, tmp_path: Path, body: str) -> IdiomGuardConfig:
        path: Path = tmp_path / "pyproject.toml"
        path.write_text(body)
        return ConfigLoader.load(path)

    def test_unknown_rule_becomes_warning(self, tmp_path: Path) -> None:
        config: IdiomGuardConfig = self._load(tmp_path, """
[tool.idiomguard.rules]
len_zreo = "deny"
""")
        assert config.warnings == ("unknown rule in configuration: `len_zreo`",)
        assert config.rules.levels == {}

    def test_rule_names_case_insensitive(self, tmp_path: Path) -> None:
        config: IdiomGuardConfig = self._load(tmp_path, """
[tool.idiomguard.rules]
LEN_ZERO = "Deny"
""")
        assert config.configured_level(LEN_ZERO) == Level.DENY

    def test_invalid_table_level(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="rules.len_zero.level"):
            self._load(tmp_path, """
[tool.idiomguard.rules.len_zero]
level = "sometimes"
""")

    def test_unknown_option_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="unknown options"):
            self._load(tmp_path, """
[tool.idiomguard.rules.len_without_is_empty]
lenght_methods = ["len"]
""")

    def test_empty_length_methods_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="length_methods"):
            self._load(tmp_path, """
[tool.idiomguard.rules.len_without_is_empty]
length_methods = []
""")

    def test_min_prefix_length_must_be_positive(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="min_prefix_length"):
            self._load(tmp_path, """
[tool.idiomguard.rules.enum_variant_names]
min_prefix_length = 0
""")

    def test_jobs_must_be_positive(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="jobs"):
            self._load(tmp_path, """
[tool.idiomguard]
jobs = 0
""")


class TestConfigDiscovery:
    def test_find_config_walks_up(self, tmp_path: Path, empty_pyproject: Path) -> None:
        nested: Path = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert ConfigLoader.find_config_file(nested) == empty_pyproject.resolve()

    def test_find_config_from_cwd(self, tmp_path: Path, empty_pyproject: Path) -> None:
        old_cwd: str = os.getcwd()
        try:
            os.chdir(tmp_path)
            assert ConfigLoader.find_config_file() == empty_pyproject.resolve()
        finally:
            os.chdir(old_cwd)


class TestParseLevel:
    def test_valid_levels(self) -> None:
        assert parse_level("allow") == Level.ALLOW
        assert parse_level("FORBID") == Level.FORBID

    def test_invalid_levels(self) -> None:
        assert parse_level("error") is None
        assert parse_level(3) is None


class TestLevelOverrides:
    def test_single_lint(self) -> None:
        config: IdiomGuardConfig = apply_level_overrides(
            IdiomGuardConfig(),
            overrides=[(LEN_ZERO, Level.DENY)],
            categories=_categories(),
        )
        assert config.configured_level(LEN_ZERO) == Level.DENY
        assert config.configured_level(ENUM_VARIANT_NAMES) is None

    def test_category_expands_to_members(self) -> None:
        config: IdiomGuardConfig = apply_level_overrides(
            IdiomGuardConfig(),
            overrides=[("style", Level.DENY)],
            categories=_categories(),
        )
        assert config.configured_level(LEN_ZERO) == Level.DENY
        assert config.configured_level(LEN_WITHOUT_IS_EMPTY) == Level.DENY
        assert config.configured_level(PUB_ENUM_VARIANT_NAMES) is None

    def test_wildcard_then_specific(self) -> None:
        config: IdiomGuardConfig = apply_level_overrides(
            IdiomGuardConfig(),
            overrides=[("all", Level.ALLOW), (LEN_ZERO, Level.WARN)],
            categories=_categories(),
        )
        assert config.configured_level(ENUM_VARIANT_NAMES) == Level.ALLOW
        assert config.configured_level(LEN_ZERO) == Level.WARN

    def test_keeps_configured_levels(self) -> None:
        base: IdiomGuardConfig = IdiomGuardConfig(
            rules=RuleOptions(levels=MappingProxyType({LEN_ZERO: Level.DENY})),
        )
        config: IdiomGuardConfig = apply_level_overrides(
            base,
            overrides=[(ENUM_VARIANT_NAMES, Level.FORBID)],
            categories=_categories(),
        )
        assert config.configured_level(LEN_ZERO) == Level.DENY
        assert config.configured_level(ENUM_VARIANT_NAMES) == Level.FORBID
        assert base.configured_level(ENUM_VARIANT_NAMES) is None

    def test_unknown_target_rejected(self) -> None:
        with pytest.raises(ConfigError, match="unknown lint or category"):
            apply_level_overrides(
                IdiomGuardConfig(),
                overrides=[("nonsense", Level.DENY)],
                categories=_categories(),
            )
