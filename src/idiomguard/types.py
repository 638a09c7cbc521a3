"""Common types and dataclasses for idiomguard."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from idiomguard.constants import (
    DEFAULT_EMPTINESS_METHOD,
    DEFAULT_EXCLUDES,
    DEFAULT_LENGTH_METHODS,
    DEFAULT_MIN_PREFIX_LENGTH,
    ColorMode,
    Level,
    OutputFormat,
)


@dataclass(frozen=True, slots=True)
class LenOptions:
    """Options shared by len_without_is_empty and len_zero."""

    length_methods: tuple[str, ...] = DEFAULT_LENGTH_METHODS
    emptiness_method: str = DEFAULT_EMPTINESS_METHOD


@dataclass(frozen=True, slots=True)
class EnumVariantOptions:
    """Options for the enum variant naming lints."""

    min_prefix_length: int = DEFAULT_MIN_PREFIX_LENGTH


@dataclass(frozen=True, slots=True)
class RuleOptions:
    """Per-rule options and configured lint levels."""

    levels: MappingProxyType[str, Level] = field(
        default_factory=lambda: MappingProxyType({})
    )
    len: LenOptions = field(default_factory=LenOptions)
    enum_variants: EnumVariantOptions = field(default_factory=EnumVariantOptions)


@dataclass(frozen=True, slots=True)
class IdiomGuardConfig:
    """Complete idiomguard configuration."""

    config_path: Path | None = None
    include: tuple[str, ...] = ("**/*.json",)
    exclude: tuple[str, ...] = DEFAULT_EXCLUDES
    output_format: OutputFormat = OutputFormat.TEXT
    show_source: bool = True
    color: ColorMode = ColorMode.AUTO
    jobs: int = 1
    rules: RuleOptions = field(default_factory=RuleOptions)
    warnings: tuple[str, ...] = ()

    def configured_level(self, rule_id: str) -> Level | None:
        """Return the non-default level configured for a lint, if any."""
        return self.rules.levels.get(rule_id)


class ConfigError(Exception):
    """Error during configuration loading or validation."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path: Path | None = path
        super().__init__(message)
