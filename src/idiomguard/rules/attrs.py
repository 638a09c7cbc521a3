"""Checks on attributes: inline_always, deprecated_semver, useless_attribute."""
from __future__ import annotations

from typing import Final

import semver

from idiomguard.constants import (
    DEPRECATED_SEMVER,
    INLINE_ALWAYS,
    USELESS_ATTRIBUTE,
    Category,
    Level,
)
from idiomguard.diagnostics import Finding, Suggestion
from idiomguard.model import (
    Attribute,
    Call,
    DeclKind,
    Expr,
    FunctionSignature,
    Import,
    Node,
    PathExpr,
)
from idiomguard.rules.base import CheckContext, LintInfo

INLINE_ALWAYS_LINT: LintInfo = LintInfo(
    id=INLINE_ALWAYS,
    description="use of `#[inline(always)]`",
    default_level=Level.WARN,
    category=Category.PERF,
)

DEPRECATED_SEMVER_LINT: LintInfo = LintInfo(
    id=DEPRECATED_SEMVER,
    description='use of `#[deprecated(since = "x")]` where x is not semver',
    default_level=Level.WARN,
    category=Category.CORRECTNESS,
)

USELESS_ATTRIBUTE_LINT: LintInfo = LintInfo(
    id=USELESS_ATTRIBUTE,
    description="use of lint attributes on `extern crate` and `use` items",
    default_level=Level.WARN,
    category=Category.CORRECTNESS,
)

_PANIC_PATHS: Final[frozenset[str]] = frozenset({"panic", "begin_panic"})


class InlineAlwaysRule:
    """Detect `#[inline(always)]` on functions doing real work."""

    @property
    def lints(self) -> tuple[LintInfo, ...]:
        return (INLINE_ALWAYS_LINT,)

    @property
    def kinds(self) -> frozenset[DeclKind]:
        return frozenset({DeclKind.FUNCTION})

    def select_lint(self, node: Node) -> LintInfo:
        return INLINE_ALWAYS_LINT

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]:
        if not isinstance(node, FunctionSignature):
            return []
        if not _is_relevant_body(node.body):
            return []

        findings: list[Finding] = []
        for attr in node.attributes:
            if attr.name == "inline" and attr.args == ("always",):
                findings.append(context.finding(
                    span=attr.span,
                    message=f"you have declared `#[inline(always)]` on `{node.name}`. "
                    "This is usually a bad idea",
                ))
        return findings


class DeprecatedSemverRule:
    """Detect `deprecated` attributes whose `since` is not a semantic version."""

    @property
    def lints(self) -> tuple[LintInfo, ...]:
        return (DEPRECATED_SEMVER_LINT,)

    @property
    def kinds(self) -> frozenset[DeclKind]:
        return frozenset({
            DeclKind.MODULE,
            DeclKind.IMPL,
            DeclKind.TRAIT,
            DeclKind.ENUM,
            DeclKind.FUNCTION,
            DeclKind.IMPORT,
        })

    def select_lint(self, node: Node) -> LintInfo:
        return DEPRECATED_SEMVER_LINT

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]:
        attributes: tuple[Attribute, ...] = getattr(node, "attributes", ())
        findings: list[Finding] = []
        for attr in attributes:
            if attr.name != "deprecated":
                continue
            since: str | None = attr.value("since")
            if since is None or is_semver(since):
                continue
            findings.append(context.finding(
                span=attr.span,
                message="the since field must contain a semver-compliant version",
            ))
        return findings


class UselessAttributeRule:
    """Detect lint-level attributes on imports, where they do nothing."""

    @property
    def lints(self) -> tuple[LintInfo, ...]:
        return (USELESS_ATTRIBUTE_LINT,)

    @property
    def kinds(self) -> frozenset[DeclKind]:
        return frozenset({DeclKind.IMPORT})

    def select_lint(self, node: Node) -> LintInfo:
        return USELESS_ATTRIBUTE_LINT

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]:
        if not isinstance(node, Import):
            return []

        # Allowing `unused_imports` on a `use` item is meaningful.
        if not node.is_extern and any(
            d.rule == "unused_imports" for d in node.overrides
        ):
            return []

        findings: list[Finding] = []
        for directive in node.overrides:
            text: str | None = directive.text
            if text is None or len(text) <= 1:
                continue
            findings.append(context.finding(
                span=directive.span,
                message="useless lint attribute",
                help="if you just forgot a `!`, use",
                suggestions=(
                    Suggestion(span=directive.span, replacement=f"{text[0]}!{text[1:]}"),
                ),
            ))
        return findings


def is_semver(version: str) -> bool:
    return semver.Version.is_valid(version)


def _is_relevant_body(body: tuple[Expr, ...] | None) -> bool:
    """A body is irrelevant when it is empty or starts by panicking."""
    if body is None:
        return True
    if not body:
        return False
    return _is_relevant_expr(body[0])


def _is_relevant_expr(expr: Expr) -> bool:
    if isinstance(expr, Call) and isinstance(expr.callee, PathExpr):
        segments: tuple[str, ...] = expr.callee.segments
        return not (segments and segments[-1] in _PANIC_PATHS)
    return True
