"""Output formatters for idiomguard findings and engine issues."""
from __future__ import annotations

import json
from typing import Any, Final, Protocol

import click

from idiomguard.constants import ColorMode, Level, OutputFormat
from idiomguard.diagnostics import DiagnosticSink, EngineIssue, Finding, Span
from idiomguard.types import IdiomGuardConfig

_LEVEL_COLORS: Final[dict[Level, str]] = {
    Level.WARN: "yellow",
    Level.DENY: "red",
    Level.FORBID: "red",
}


class Formatter(Protocol):
    def format(
        self,
        *,
        diagnostics: DiagnosticSink,
        config: IdiomGuardConfig,
    ) -> str: ...


def _location(span: Span) -> str:
    return f"{span.file}:{span.start_line}:{span.start_col}"


def _issue_location(issue: EngineIssue) -> str:
    if issue.span is not None:
        return _location(issue.span)
    return issue.file or "<config>"


class TextFormatter:
    def format(
        self,
        *,
        diagnostics: DiagnosticSink,
        config: IdiomGuardConfig,
    ) -> str:
        lines: list[str] = []
        styled: bool = config.color == ColorMode.ALWAYS

        for finding in diagnostics.sorted:
            label: str = finding.level.value.upper()
            if styled:
                label = click.style(label, fg=_LEVEL_COLORS.get(finding.level), bold=True)
            lines.append(
                f"{_location(finding.span)}: {label} [{finding.rule_id}] {finding.message}"
            )

            if config.show_source and finding.source_line is not None:
                lines.append(f"    {finding.source_line}")
                caret_pos: int = max(0, finding.span.start_col - 1)
                width: int = 1
                if finding.span.end_line == finding.span.start_line:
                    width = max(1, finding.span.end_col - finding.span.start_col)
                lines.append(f"    {' ' * caret_pos}{'^' * width}")

            if finding.help is not None:
                lines.append(f"    help: {finding.help}")
            for suggestion in finding.suggestions:
                lines.append(
                    f"    suggestion: {_location(suggestion.span)}: `{suggestion.replacement}`"
                )
            for note in finding.notes:
                lines.append(f"    note: {_location(note.span)}: {note.text}")

        for issue in diagnostics.issues:
            lines.append(
                f"{_issue_location(issue)}: {issue.kind.value} error "
                f"[{issue.code}] {issue.message}"
            )

        return "\n".join(lines)


def _span_json(span: Span) -> dict[str, object]:
    return {
        "file": span.file,
        "start_line": span.start_line,
        "start_col": span.start_col,
        "end_line": span.end_line,
        "end_col": span.end_col,
    }


def finding_to_json(finding: Finding) -> dict[str, object]:
    return {
        "rule_id": finding.rule_id,
        "level": finding.level.value,
        "primary_span": _span_json(finding.span),
        "message": finding.message,
        "help": finding.help,
        "secondary_notes": [
            {"span": _span_json(n.span), "text": n.text} for n in finding.notes
        ],
        "suggestions": [
            {"span": _span_json(s.span), "replacement_text": s.replacement}
            for s in finding.suggestions
        ],
    }


class JsonFormatter:
    def format(
        self,
        *,
        diagnostics: DiagnosticSink,
        config: IdiomGuardConfig,
    ) -> str:
        findings: list[dict[str, object]] = []
        for finding in diagnostics.sorted:
            item: dict[str, object] = finding_to_json(finding)
            if config.show_source:
                item["source_line"] = finding.source_line
            findings.append(item)

        issues: list[dict[str, object]] = [
            {
                "kind": issue.kind.value,
                "code": issue.code,
                "message": issue.message,
                "file": issue.file,
                "span": _span_json(issue.span) if issue.span is not None else None,
            }
            for issue in diagnostics.issues
        ]

        data: dict[str, Any] = {"findings": findings, "issues": issues}
        return json.dumps(data, indent=2)


def _escape_data(text: str) -> str:
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(text: str) -> str:
    return _escape_data(text).replace(":", "%3A").replace(",", "%2C")


class GitHubFormatter:
    """Workflow command annotations understood by GitHub Actions."""

    def format(
        self,
        *,
        diagnostics: DiagnosticSink,
        config: IdiomGuardConfig,
    ) -> str:
        lines: list[str] = []

        for finding in diagnostics.sorted:
            command: str = "error" if finding.level.is_blocking else "warning"
            span: Span = finding.span
            props: str = ",".join([
                f"file={_escape_property(span.file)}",
                f"line={span.start_line}",
                f"col={span.start_col}",
                f"endLine={span.end_line}",
                f"endColumn={span.end_col}",
                f"title={_escape_property(finding.rule_id)}",
            ])
            lines.append(f"::{command} {props}::{_escape_data(finding.message)}")

        for issue in diagnostics.issues:
            props_list: list[str] = []
            if issue.span is not None:
                props_list.extend([
                    f"file={_escape_property(issue.span.file)}",
                    f"line={issue.span.start_line}",
                    f"col={issue.span.start_col}",
                ])
            elif issue.file is not None:
                props_list.append(f"file={_escape_property(issue.file)}")
            props_list.append(f"title={issue.code}")
            lines.append(f"::warning {','.join(props_list)}::{_escape_data(issue.message)}")

        return "\n".join(lines)


def get_formatter(*, output_format: OutputFormat) -> Formatter:
    if output_format == OutputFormat.JSON:
        return JsonFormatter()
    if output_format == OutputFormat.GITHUB:
        return GitHubFormatter()
    return TextFormatter()


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def format_summary(*, diagnostics: DiagnosticSink) -> str:
    error_count: int = diagnostics.blocking_count
    warning_count: int = diagnostics.warning_count
    issue_count: int = len(diagnostics.issues)

    parts: list[str] = []
    if error_count > 0:
        parts.append(_plural(error_count, "error"))
    if warning_count > 0:
        parts.append(_plural(warning_count, "warning"))

    lines: list[str] = []
    if parts:
        lines.append(f"Found {', '.join(parts)}.")
        if error_count > 0:
            lines.append(f"{_plural(error_count, 'blocking finding')}.")
    elif issue_count == 0:
        lines.append("No issues found.")

    if issue_count > 0:
        lines.append(f"{_plural(issue_count, 'engine issue')} reported.")

    return "\n".join(lines)
