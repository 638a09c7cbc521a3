"""Lint level resolution over nested override scopes."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from idiomguard.constants import (
    CONFIG_FORBID_CODE,
    CONFIG_UNKNOWN_LINT_CODE,
    HOST_LINTS,
    WILDCARD_RULE,
    Level,
)
from idiomguard.diagnostics import EngineIssue, IssueKind
from idiomguard.model import OverrideDirective
from idiomguard.rules.base import LintInfo


@dataclass(frozen=True, slots=True)
class ScopeFrame:
    """One level of lexical nesting and the directives attached to it."""

    name: str
    directives: tuple[OverrideDirective, ...] = ()
    parent: ScopeFrame | None = None

    def push(
        self,
        *,
        name: str,
        directives: tuple[OverrideDirective, ...],
    ) -> ScopeFrame:
        return ScopeFrame(name=name, directives=directives, parent=self)

    def chain(self) -> list[ScopeFrame]:
        """Frames from the outermost scope to this one."""
        frames: list[ScopeFrame] = []
        frame: ScopeFrame | None = self
        while frame is not None:
            frames.append(frame)
            frame = frame.parent
        frames.reverse()
        return frames


@dataclass(frozen=True, slots=True)
class Resolution:
    level: Level
    directive: OverrideDirective | None


class LevelResolver:
    """Computes effective lint levels from configuration and scoped directives."""

    def __init__(
        self,
        *,
        catalog: Mapping[str, LintInfo],
        configured: Mapping[str, Level] | None = None,
    ) -> None:
        self._catalog: Mapping[str, LintInfo] = catalog
        self._configured: Mapping[str, Level] = configured or {}
        self._categories: frozenset[str] = frozenset(
            info.category.value for info in catalog.values()
        )

    def is_known(self, rule: str) -> bool:
        """Check whether a directive target names a lint, a category or the wildcard."""
        return (
            rule in self._catalog
            or rule in self._categories
            or rule == WILDCARD_RULE
            or rule in HOST_LINTS
        )

    def base_level(self, rule_id: str) -> Level:
        info: LintInfo = self._info(rule_id)
        return self._configured.get(rule_id, info.default_level)

    def effective_level(self, rule_id: str, frame: ScopeFrame) -> Level:
        return self.resolve(rule_id, frame).level

    def resolve(self, rule_id: str, frame: ScopeFrame) -> Resolution:
        """Resolve a lint's level at `frame`.

        Directives apply outermost first; the nearest one wins unless the
        lint is already forbidden, in which case lower levels are ignored.
        """
        info: LintInfo = self._info(rule_id)
        directives: list[OverrideDirective] = [
            d for f in frame.chain() for d in f.directives
        ]
        return self._apply(info=info, directives=directives)

    def check_directives(self, frame: ScopeFrame) -> list[EngineIssue]:
        """Validate the directives attached directly to `frame`.

        Call once per frame; each offending directive yields one issue.
        """
        issues: list[EngineIssue] = []
        outer: list[OverrideDirective] = [
            d for f in frame.chain()[:-1] for d in f.directives
        ]

        for index, directive in enumerate(frame.directives):
            if not self.is_known(directive.rule):
                issues.append(EngineIssue(
                    kind=IssueKind.CONFIG,
                    code=CONFIG_UNKNOWN_LINT_CODE,
                    message=f"unknown lint: `{directive.rule}`",
                    span=directive.span,
                    file=directive.span.file,
                ))
                continue

            if directive.level == Level.FORBID:
                continue

            preceding: list[OverrideDirective] = outer + list(frame.directives[:index])
            lowered: list[str] = [
                info.id
                for info in self._catalog.values()
                if self.matches(directive, info)
                and self._apply(info=info, directives=preceding).level == Level.FORBID
            ]
            if lowered:
                names: str = ", ".join(f"`{rule_id}`" for rule_id in sorted(lowered))
                issues.append(EngineIssue(
                    kind=IssueKind.CONFIG,
                    code=CONFIG_FORBID_CODE,
                    message=f"`{directive.describe()}` incompatible with previous "
                    f"forbid of {names}",
                    span=directive.span,
                    file=directive.span.file,
                ))

        return issues

    @staticmethod
    def matches(directive: OverrideDirective, info: LintInfo) -> bool:
        return directive.rule in (info.id, info.category.value, WILDCARD_RULE)

    def _apply(
        self,
        *,
        info: LintInfo,
        directives: list[OverrideDirective],
    ) -> Resolution:
        level: Level = self._configured.get(info.id, info.default_level)
        source: OverrideDirective | None = None
        for directive in directives:
            if not self.matches(directive, info):
                continue
            if level == Level.FORBID and directive.level < Level.FORBID:
                continue
            level = directive.level
            source = directive
        return Resolution(level=level, directive=source)

    def _info(self, rule_id: str) -> LintInfo:
        try:
            return self._catalog[rule_id]
        except KeyError:
            raise ValueError(f"Unknown lint '{rule_id}'") from None
