"""Configuration loading and validation for idiomguard."""
from __future__ import annotations

import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

from idiomguard.constants import (
    DEFAULT_EXCLUDES,
    ENUM_VARIANT_NAMES,
    LEN_WITHOUT_IS_EMPTY,
    RULE_IDS,
    WILDCARD_RULE,
    ColorMode,
    Level,
    OutputFormat,
)
from idiomguard.types import (
    ConfigError,
    EnumVariantOptions,
    IdiomGuardConfig,
    LenOptions,
    RuleOptions,
)

_LEN_OPTION_KEYS: frozenset[str] = frozenset({"level", "length_methods", "emptiness_method"})
_ENUM_OPTION_KEYS: frozenset[str] = frozenset({"level", "min_prefix_length"})


class ConfigLoader:
    """Loads and validates idiomguard configuration."""

    @staticmethod
    def find_config_file(start_path: Path | None = None) -> Path | None:
        """
        Find pyproject.toml by walking up from start_path.

        Args:
            start_path: Directory to start searching from. Defaults to cwd.

        Returns:
            Path to pyproject.toml if found, None otherwise.
        """
        if start_path is None:
            start_path = Path.cwd()

        start_path = start_path.resolve()

        for directory in [start_path, *start_path.parents]:
            config_path: Path = directory / "pyproject.toml"
            if config_path.is_file():
                return config_path

        return None

    @staticmethod
    def load(path: Path | None = None) -> IdiomGuardConfig:
        """
        Load configuration from pyproject.toml.

        Args:
            path: Explicit path to pyproject.toml. If None, searches upward.

        Returns:
            Validated IdiomGuardConfig instance.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if path is None:
            path = ConfigLoader.find_config_file()

        if path is None:
            return IdiomGuardConfig()

        try:
            with open(path, "rb") as f:
                data: dict[str, Any] = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML: {e}", path=path) from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}", path=path) from e

        tool_config: dict[str, Any] = data.get("tool", {}).get("idiomguard", {})

        return ConfigLoader._parse_config(tool_config, config_path=path)

    @staticmethod
    def _parse_config(
        data: dict[str, Any],
        *,
        config_path: Path | None = None,
    ) -> IdiomGuardConfig:
        """Parse and validate configuration dictionary."""
        errors: list[str] = []
        warnings: list[str] = []

        # Parse include patterns
        include: tuple[str, ...] = ("**/*.json",)
        raw_include: Any = data.get("include", include)
        if isinstance(raw_include, list):
            include = tuple(raw_include)
        elif not isinstance(raw_include, tuple):
            errors.append(f"include must be a list, got {type(raw_include).__name__}")

        # Parse exclude patterns
        exclude: tuple[str, ...] = DEFAULT_EXCLUDES
        raw_exclude: Any = data.get("exclude", DEFAULT_EXCLUDES)
        if isinstance(raw_exclude, list):
            exclude = tuple(raw_exclude)
        elif not isinstance(raw_exclude, tuple):
            errors.append(f"exclude must be a list, got {type(raw_exclude).__name__}")

        # Parse output_format
        output_format: OutputFormat = OutputFormat.TEXT
        if "output_format" in data:
            try:
                output_format = OutputFormat(data["output_format"])
            except ValueError:
                valid: list[str] = [f.value for f in OutputFormat]
                errors.append(f"output_format must be one of {valid}")

        # Parse show_source
        show_source: bool = data.get("show_source", True)
        if not isinstance(show_source, bool):
            errors.append("show_source must be a boolean")
            show_source = True

        # Parse color
        color: ColorMode = ColorMode.AUTO
        if "color" in data:
            try:
                color = ColorMode(data["color"])
            except ValueError:
                valid = [c.value for c in ColorMode]
                errors.append(f"color must be one of {valid}")

        # Parse jobs
        jobs: Any = data.get("jobs", 1)
        if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
            errors.append("jobs must be a positive integer")
            jobs = 1

        # Parse rules
        raw_rules: Any = data.get("rules", {})
        rules: RuleOptions = RuleOptions()
        if isinstance(raw_rules, dict):
            rules = ConfigLoader._parse_rules(raw_rules, errors, warnings)
        else:
            errors.append("rules must be a table")

        if errors:
            error_msg: str = "Configuration errors:\n" + "\n".join(
                f"  - {e}" for e in errors
            )
            raise ConfigError(error_msg, path=config_path)

        return IdiomGuardConfig(
            config_path=config_path,
            include=include,
            exclude=exclude,
            output_format=output_format,
            show_source=show_source,
            color=color,
            jobs=jobs,
            rules=rules,
            warnings=tuple(warnings),
        )

    @staticmethod
    def _parse_rules(
        data: dict[str, Any],
        errors: list[str],
        warnings: list[str],
    ) -> RuleOptions:
        """Parse the rules table: per-lint levels plus option tables."""
        levels: dict[str, Level] = {}

        for key, value in data.items():
            rule_id: str = key.lower()
            if rule_id not in RULE_IDS:
                warnings.append(f"unknown rule in configuration: `{key}`")
                continue
            if isinstance(value, str):
                level: Level | None = parse_level(value)
                if level is None:
                    errors.append(f"rules.{key} must be one of {_level_names()}")
                else:
                    levels[rule_id] = level
            elif isinstance(value, dict):
                if "level" in value:
                    level = parse_level(value["level"])
                    if level is None:
                        errors.append(f"rules.{key}.level must be one of {_level_names()}")
                    else:
                        levels[rule_id] = level
            else:
                errors.append(f"rules.{key} must be a level string or a table")

        # Parse len_without_is_empty options
        len_data: Any = data.get(LEN_WITHOUT_IS_EMPTY, {})
        len_options: LenOptions = LenOptions()
        if isinstance(len_data, dict):
            ConfigLoader._check_keys(
                len_data, allowed=_LEN_OPTION_KEYS, table=LEN_WITHOUT_IS_EMPTY, errors=errors,
            )
            length_methods: Any = len_data.get("length_methods", list(len_options.length_methods))
            emptiness_method: Any = len_data.get("emptiness_method", len_options.emptiness_method)
            if not isinstance(length_methods, list) or not length_methods or not all(
                isinstance(m, str) and m for m in length_methods
            ):
                errors.append(
                    f"rules.{LEN_WITHOUT_IS_EMPTY}.length_methods must be a non-empty "
                    "list of method names"
                )
            elif not isinstance(emptiness_method, str) or not emptiness_method:
                errors.append(
                    f"rules.{LEN_WITHOUT_IS_EMPTY}.emptiness_method must be a method name"
                )
            else:
                len_options = LenOptions(
                    length_methods=tuple(length_methods),
                    emptiness_method=emptiness_method,
                )

        # Parse enum_variant_names options
        enum_data: Any = data.get(ENUM_VARIANT_NAMES, {})
        enum_options: EnumVariantOptions = EnumVariantOptions()
        if isinstance(enum_data, dict):
            ConfigLoader._check_keys(
                enum_data, allowed=_ENUM_OPTION_KEYS, table=ENUM_VARIANT_NAMES, errors=errors,
            )
            min_prefix: Any = enum_data.get("min_prefix_length", enum_options.min_prefix_length)
            if isinstance(min_prefix, bool) or not isinstance(min_prefix, int) or min_prefix < 1:
                errors.append(
                    f"rules.{ENUM_VARIANT_NAMES}.min_prefix_length must be a positive integer"
                )
            else:
                enum_options = EnumVariantOptions(min_prefix_length=min_prefix)

        return RuleOptions(
            levels=MappingProxyType(levels),
            len=len_options,
            enum_variants=enum_options,
        )

    @staticmethod
    def _check_keys(
        data: dict[str, Any],
        *,
        allowed: frozenset[str],
        table: str,
        errors: list[str],
    ) -> None:
        unknown: list[str] = sorted(k for k in data if k not in allowed)
        if unknown:
            errors.append(f"rules.{table} has unknown options: {unknown}")


def parse_level(value: Any) -> Level | None:
    """Parse a level name case-insensitively; None if it is not one."""
    if not isinstance(value, str):
        return None
    try:
        return Level(value.lower())
    except ValueError:
        return None


def _level_names() -> list[str]:
    return [lv.value for lv in Level]


def load_config(path: Path | None = None) -> IdiomGuardConfig:
    """
    Convenience function to load configuration.

    Args:
        path: Optional explicit path to pyproject.toml.

    Returns:
        Validated configuration.
    """
    return ConfigLoader.load(path)


def apply_level_overrides(
    config: IdiomGuardConfig,
    *,
    overrides: Iterable[tuple[str, Level]],
    categories: Mapping[str, str],
) -> IdiomGuardConfig:
    """
    Apply command-line level flags on top of the configured levels.

    Args:
        config: Loaded configuration.
        overrides: (target, level) pairs in application order; a target is a
            lint id, a category name or the wildcard.
        categories: Lint id to category name, for every known lint.

    Returns:
        Configuration with the overridden levels.

    Raises:
        ConfigError: If a target names no lint or category.
    """
    levels: dict[str, Level] = dict(config.rules.levels)
    known_categories: set[str] = set(categories.values())

    for target, level in overrides:
        name: str = target.lower()
        if name in categories:
            levels[name] = level
        elif name == WILDCARD_RULE or name in known_categories:
            for rule_id, category in categories.items():
                if name == WILDCARD_RULE or category == name:
                    levels[rule_id] = level
        else:
            raise ConfigError(f"unknown lint or category: `{target}`")

    return replace(
        config,
        rules=replace(config.rules, levels=MappingProxyType(levels)),
    )
