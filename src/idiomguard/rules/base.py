"""Rule protocol and lint descriptors for idiomguard."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from idiomguard.constants import Category, Level
from idiomguard.diagnostics import Finding, Note, Span, Suggestion
from idiomguard.model import DeclKind, Expr, Node, Pattern, SourceFile
from idiomguard.types import RuleOptions


@dataclass(frozen=True, slots=True)
class LintInfo:
    """Immutable descriptor of one lint."""

    id: str
    description: str
    default_level: Level
    category: Category


@dataclass(frozen=True, slots=True)
class CheckContext:
    """What a detector gets besides the node: its lint, level and file.

    `levels` resolves another lint's level at the same node; detectors
    whose behavior depends on a sibling lint ask through `level_of`.
    """

    lint: LintInfo
    level: Level
    source: SourceFile
    options: RuleOptions
    levels: Callable[[str], Level] | None = None

    def level_of(self, info: LintInfo) -> Level:
        if info.id == self.lint.id:
            return self.level
        if self.levels is None:
            return info.default_level
        return self.levels(info.id)

    def finding(
        self,
        *,
        span: Span,
        message: str,
        suggestions: tuple[Suggestion, ...] = (),
        notes: tuple[Note, ...] = (),
        help: str | None = None,
    ) -> Finding:
        return Finding(
            rule_id=self.lint.id,
            level=self.level,
            span=span,
            message=message,
            suggestions=suggestions,
            notes=notes,
            help=help,
        )

    def snippet(self, expr: Expr | Pattern, default: str = "..") -> str:
        """Source text of an expression or pattern, like the front end printed it."""
        if expr.text is not None:
            return expr.text
        text: str | None = self.source.snippet(expr.span)
        return text if text else default


@runtime_checkable
class Rule(Protocol):
    """Structural interface for detectors."""

    @property
    def lints(self) -> tuple[LintInfo, ...]: ...

    @property
    def kinds(self) -> frozenset[DeclKind]: ...

    def select_lint(self, node: Node) -> LintInfo: ...

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]: ...
