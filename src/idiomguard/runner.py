"""Lint orchestrator for idiomguard."""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from idiomguard.constants import CONFIG_UNKNOWN_RULE_CODE, MODEL_ERROR_CODE, OutputFormat
from idiomguard.diagnostics import DiagnosticSink, EngineIssue, IssueKind, Span
from idiomguard.engine import analyze
from idiomguard.formatters import Formatter, format_summary, get_formatter
from idiomguard.loader import LoadErrorInfo, LoadResult, load_model
from idiomguard.rules.registry import RuleRegistry, default_registry
from idiomguard.scanner import scan_files
from idiomguard.types import IdiomGuardConfig

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LintResult:
    diagnostics: DiagnosticSink
    files_checked: int
    exit_code: int


def _load_error_to_issue(*, load_result: LoadResult) -> EngineIssue:
    err: LoadErrorInfo | None = load_result.error
    if err is None:
        raise ValueError("load_result must have an error")
    file: str = str(load_result.file)
    return EngineIssue(
        kind=IssueKind.MODEL,
        code=MODEL_ERROR_CODE,
        message=err.message,
        span=Span(
            file=file,
            start_line=err.line,
            start_col=err.column,
            end_line=err.line,
            end_col=err.column,
        ),
        file=file,
    )


def _config_issues(*, config: IdiomGuardConfig) -> list[EngineIssue]:
    file: str | None = str(config.config_path) if config.config_path is not None else None
    return [
        EngineIssue(
            kind=IssueKind.CONFIG,
            code=CONFIG_UNKNOWN_RULE_CODE,
            message=warning,
            file=file,
        )
        for warning in config.warnings
    ]


def lint_file(
    *,
    file: Path,
    config: IdiomGuardConfig,
    registry: RuleRegistry,
) -> DiagnosticSink:
    """Load one model document and analyze it into a fresh sink."""
    logger.debug("Checking %s", file)
    result: LoadResult = load_model(file=file)
    if result.source is None:
        sink: DiagnosticSink = DiagnosticSink()
        sink.add_issue(issue=_load_error_to_issue(load_result=result))
        logger.debug("%s: not a valid program model", file)
        return sink

    try:
        sink = analyze(source=result.source, config=config, registry=registry)
    except RecursionError:
        logger.debug("%s: program model nested too deeply", file)
        sink = DiagnosticSink()
        sink.add_issue(issue=EngineIssue(
            kind=IssueKind.MODEL,
            code=MODEL_ERROR_CODE,
            message="program model is nested too deeply to analyze",
            file=str(file),
        ))
        return sink

    logger.debug("%s: %d diagnostics", file, len(sink))
    return sink


def lint_paths(
    *,
    paths: tuple[Path, ...],
    config: IdiomGuardConfig,
    registry: RuleRegistry | None = None,
) -> LintResult:
    started: float = time.perf_counter()
    reg: RuleRegistry = registry if registry is not None else default_registry()
    files: list[Path] = scan_files(paths=paths, config=config)
    logger.info("Found %d files", len(files))

    collection: DiagnosticSink = DiagnosticSink()
    collection.add_issues(issues=_config_issues(config=config))

    per_file: list[DiagnosticSink]
    if config.jobs > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=config.jobs) as pool:
            per_file = list(pool.map(
                lambda f: lint_file(file=f, config=config, registry=reg),
                files,
            ))
    else:
        per_file = [lint_file(file=f, config=config, registry=reg) for f in files]

    # Merge in scan order so issue ordering does not depend on scheduling.
    for sink in per_file:
        collection.merge(other=sink)

    logger.info("Completed in %.2fs", time.perf_counter() - started)

    exit_code: int = 1 if collection.has_blocking else 0
    return LintResult(
        diagnostics=collection,
        files_checked=len(files),
        exit_code=exit_code,
    )


def format_results(*, result: LintResult, config: IdiomGuardConfig) -> str:
    formatter: Formatter = get_formatter(output_format=config.output_format)
    output: str = formatter.format(diagnostics=result.diagnostics, config=config)

    # Machine-readable output stays parseable.
    if config.output_format == OutputFormat.JSON:
        return output

    summary: str = format_summary(diagnostics=result.diagnostics)
    suffix: str = "s" if result.files_checked != 1 else ""
    file_count: str = f"Checked {result.files_checked} file{suffix}."

    parts: list[str] = []
    if output:
        parts.append(output)
    parts.append(summary)
    parts.append(file_count)

    return "\n".join(parts)
