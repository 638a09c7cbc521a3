"""Diagnostic data model for idiomguard."""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from idiomguard.constants import Level


@dataclass(frozen=True, slots=True)
class Span:
    """Source range of a node. All values are 1-based."""

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    @property
    def sort_key(self) -> tuple[str, int, int, int, int]:
        return (self.file, self.start_line, self.start_col, self.end_line, self.end_col)


@dataclass(frozen=True, slots=True)
class Note:
    """Secondary span with an explanatory text."""

    span: Span
    text: str


@dataclass(frozen=True, slots=True)
class Suggestion:
    """Replacement text for a span."""

    span: Span
    replacement: str


@dataclass(frozen=True, slots=True)
class Finding:
    """A single convention violation found in the program model."""

    rule_id: str
    level: Level
    span: Span
    message: str
    suggestions: tuple[Suggestion, ...] = ()
    notes: tuple[Note, ...] = ()
    help: str | None = None
    source_line: str | None = None

    @property
    def dedupe_key(self) -> tuple[str, Span, str]:
        return (self.rule_id, self.span, self.message)


class IssueKind(Enum):
    """Engine issue categories. None of them is a Finding."""

    CONFIG = "config"
    INTERNAL = "internal"
    MODEL = "model"


@dataclass(frozen=True, slots=True)
class EngineIssue:
    """A problem of the engine or its inputs, reported apart from findings."""

    kind: IssueKind
    code: str
    message: str
    span: Span | None = None
    file: str | None = None


@dataclass(slots=True)
class DiagnosticSink:
    """Append-only collection of findings and engine issues."""

    _findings: list[Finding] = field(default_factory=list)
    _issues: list[EngineIssue] = field(default_factory=list)

    def add(self, *, finding: Finding) -> None:
        """Add a single finding."""
        self._findings.append(finding)

    def add_all(self, *, findings: list[Finding]) -> None:
        """Add multiple findings."""
        self._findings.extend(findings)

    def add_issue(self, *, issue: EngineIssue) -> None:
        self._issues.append(issue)

    def add_issues(self, *, issues: list[EngineIssue]) -> None:
        self._issues.extend(issues)

    def merge(self, *, other: DiagnosticSink) -> None:
        """Append everything collected by another sink, keeping its order."""
        self._findings.extend(other._findings)
        self._issues.extend(other._issues)

    @property
    def sorted(self) -> list[Finding]:
        """Return deduplicated findings sorted by primary span.

        Findings on the same span keep the order in which they were added.
        """
        seen: set[tuple[str, Span, str]] = set()
        unique: list[Finding] = []
        for finding in self._findings:
            key: tuple[str, Span, str] = finding.dedupe_key
            if key in seen:
                continue
            seen.add(key)
            unique.append(finding)
        return sorted(unique, key=lambda f: f.span.sort_key)

    @property
    def issues(self) -> list[EngineIssue]:
        return list(self._issues)

    @property
    def has_blocking(self) -> bool:
        """Return True if any finding reached deny or forbid."""
        return any(f.level.is_blocking for f in self._findings)

    @property
    def blocking_count(self) -> int:
        """Count of deduplicated deny/forbid findings."""
        return sum(1 for f in self.sorted if f.level.is_blocking)

    @property
    def warning_count(self) -> int:
        return sum(1 for f in self.sorted if f.level == Level.WARN)

    def __len__(self) -> int:
        return len(self.sorted)

    def __iter__(self) -> Iterator[Finding]:
        return iter(self.sorted)
