"""Command-line interface for idiomguard using Click."""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Final

import click

from idiomguard.config import apply_level_overrides, load_config
from idiomguard.constants import ColorMode, Level, OutputFormat, __version__
from idiomguard.rules.base import LintInfo
from idiomguard.rules.registry import RuleRegistry, default_registry
from idiomguard.runner import LintResult, format_results, lint_paths
from idiomguard.types import ConfigError, IdiomGuardConfig


def format_config_text(*, config: IdiomGuardConfig) -> str:
    """Format configuration as human-readable text."""
    lines: list[str] = [
        "idiomguard Configuration",
        "=" * 40,
        "",
        f"Config file: {config.config_path or '(defaults)'}",
        "",
        "File Discovery:",
        f"  Include: {', '.join(config.include)}",
        f"  Exclude: {', '.join(config.exclude[:5])}{'...' if len(config.exclude) > 5 else ''}",
        "",
        "Output:",
        f"  Format: {config.output_format.value}",
        f"  Color: {config.color.value}",
        f"  Show source: {config.show_source}",
        f"  Jobs: {config.jobs}",
        "",
        "Configured Levels:",
    ]

    if config.rules.levels:
        for rule_id, level in sorted(config.rules.levels.items()):
            lines.append(f"  {rule_id}: {level.value.upper()}")
    else:
        lines.append("  (defaults)")

    lines.extend([
        "",
        "Rule Options:",
        f"  length_methods: {', '.join(config.rules.len.length_methods)}",
        f"  emptiness_method: {config.rules.len.emptiness_method}",
        f"  min_prefix_length: {config.rules.enum_variants.min_prefix_length}",
    ])

    if config.warnings:
        lines.extend(["", "Warnings:"])
        lines.extend(f"  {w}" for w in config.warnings)

    return "\n".join(lines)


def format_config_json(*, config: IdiomGuardConfig) -> str:
    """Format configuration as JSON."""
    data: dict[str, Any] = {
        "config_path": str(config.config_path) if config.config_path else None,
        "include": list(config.include),
        "exclude": list(config.exclude),
        "output_format": config.output_format.value,
        "show_source": config.show_source,
        "color": config.color.value,
        "jobs": config.jobs,
        "rules": {
            "levels": {
                rule_id: level.value for rule_id, level in config.rules.levels.items()
            },
            "len_without_is_empty": {
                "length_methods": list(config.rules.len.length_methods),
                "emptiness_method": config.rules.len.emptiness_method,
            },
            "enum_variant_names": {
                "min_prefix_length": config.rules.enum_variants.min_prefix_length,
            },
        },
        "warnings": list(config.warnings),
    }
    return json.dumps(data, indent=2)


def format_rule_table(*, registry: RuleRegistry, config: IdiomGuardConfig) -> str:
    """One line per lint: id, category, default and effective level, description."""
    infos: list[LintInfo] = sorted(registry.catalog.values(), key=lambda i: i.id)
    width: int = max(len(i.id) for i in infos)
    lines: list[str] = []
    for info in infos:
        effective: Level = config.configured_level(info.id) or info.default_level
        lines.append(
            f"{info.id:<{width}}  {info.category.value:<11}  "
            f"{info.default_level.value:<6}  {effective.value:<6}  {info.description}"
        )
    return "\n".join(lines)


class ConfigType(click.ParamType):
    """Custom Click parameter type for config path."""

    name: str = "path"

    def convert(
        self,
        value: str | Path | None,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> Path | None:
        if value is None:
            return None
        return Path(value)


CONFIG_TYPE: Final[ConfigType] = ConfigType()


@click.group()
@click.version_option(version=__version__, prog_name="idiomguard")
@click.option(
    "--config",
    "config_path",
    type=CONFIG_TYPE,
    default=None,
    help="Path to pyproject.toml (default: search upward from current directory)",
)
@click.option("--verbose", is_flag=True, help="Show progress and timing")
@click.option("--debug", is_flag=True, help="Show detailed trace")
@click.pass_context
def cli(
    ctx: click.Context,
    *,
    config_path: Path | None,
    verbose: bool,
    debug: bool,
) -> None:
    """idiomguard - convention lints over a program model."""
    level: int = (
        logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    )
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )

    ctx.ensure_object(dict)
    try:
        cfg: IdiomGuardConfig = load_config(path=config_path)
        ctx.obj["config"] = cfg
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        if e.path:
            click.echo(f"  in: {e.path}", err=True)
        ctx.exit(1)


@cli.command()
@click.option("--validate", is_flag=True, help="Only validate configuration, don't print")
@click.option("--json", "as_json", is_flag=True, help="Output configuration as JSON")
@click.pass_context
def config(ctx: click.Context, *, validate: bool, as_json: bool) -> None:
    """Show or validate configuration."""
    cfg: IdiomGuardConfig = ctx.obj["config"]

    if validate:
        click.echo(f"Configuration valid: {cfg.config_path or '(defaults)'}")
        for warning in cfg.warnings:
            click.echo(f"Warning: {warning}", err=True)
        return

    if as_json:
        click.echo(format_config_json(config=cfg))
    else:
        click.echo(format_config_text(config=cfg))


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=None,
    help="Output format (overrides config)",
)
@click.option(
    "--color",
    type=click.Choice([c.value for c in ColorMode]),
    default=None,
    help="Color output mode (overrides config)",
)
@click.option("--show-source/--no-show-source", default=None, help="Show source code snippets")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="Files analyzed in parallel")
@click.option("--allow", "-A", "allow", multiple=True, metavar="RULE", help="Set a lint or category to allow")
@click.option("--warn", "-W", "warn", multiple=True, metavar="RULE", help="Set a lint or category to warn")
@click.option("--deny", "-D", "deny", multiple=True, metavar="RULE", help="Set a lint or category to deny")
@click.option("--forbid", "-F", "forbid", multiple=True, metavar="RULE", help="Set a lint or category to forbid")
@click.pass_context
def lint(
    ctx: click.Context,
    paths: tuple[Path, ...],
    *,
    output_format: str | None,
    color: str | None,
    show_source: bool | None,
    jobs: int | None,
    allow: tuple[str, ...],
    warn: tuple[str, ...],
    deny: tuple[str, ...],
    forbid: tuple[str, ...],
) -> None:
    """Run the lints on program model documents."""
    cfg: IdiomGuardConfig = ctx.obj["config"]
    registry: RuleRegistry = default_registry()

    # Apply CLI overrides
    overrides: dict[str, Any] = {}
    if output_format is not None:
        overrides["output_format"] = OutputFormat(output_format)
    if color is not None:
        overrides["color"] = ColorMode(color)
    if show_source is not None:
        overrides["show_source"] = show_source
    if jobs is not None:
        overrides["jobs"] = jobs

    resolved_color: ColorMode = overrides.get("color", cfg.color)
    if resolved_color == ColorMode.AUTO:
        overrides["color"] = ColorMode.ALWAYS if sys.stdout.isatty() else ColorMode.NEVER

    if overrides:
        cfg = replace(cfg, **overrides)

    # Weaker flags first, so the strictest level given for a lint wins.
    level_flags: list[tuple[str, Level]] = [
        *((rule, Level.ALLOW) for rule in allow),
        *((rule, Level.WARN) for rule in warn),
        *((rule, Level.DENY) for rule in deny),
        *((rule, Level.FORBID) for rule in forbid),
    ]
    if level_flags:
        try:
            cfg = apply_level_overrides(
                cfg,
                overrides=level_flags,
                categories={i.id: i.category.value for i in registry.catalog.values()},
            )
        except ConfigError as e:
            raise click.BadParameter(str(e)) from e

    if not paths:
        paths = (Path("."),)

    result: LintResult = lint_paths(paths=paths, config=cfg, registry=registry)
    output: str = format_results(result=result, config=cfg)
    if output:
        click.echo(output, color=cfg.color == ColorMode.ALWAYS)
    ctx.exit(result.exit_code)


@cli.command()
@click.pass_context
def rules(ctx: click.Context) -> None:
    """List every lint with its category and levels."""
    cfg: IdiomGuardConfig = ctx.obj["config"]
    click.echo(format_rule_table(registry=default_registry(), config=cfg))


def main() -> None:
    """Main entry point for idiomguard CLI."""
    cli()


if __name__ == "__main__":
    main()
