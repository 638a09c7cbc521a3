"""Single-pass traversal of a program model, driven by the rule registry."""
from __future__ import annotations

import logging
from dataclasses import replace
from functools import partial

from idiomguard.constants import INTERNAL_ERROR_CODE, Level
from idiomguard.diagnostics import (
    DiagnosticSink,
    EngineIssue,
    Finding,
    IssueKind,
    Note,
    Span,
)
from idiomguard.levels import LevelResolver, Resolution, ScopeFrame
from idiomguard.model import ModelError, Node, SourceFile, child_nodes
from idiomguard.rules.base import CheckContext, LintInfo, Rule
from idiomguard.rules.registry import RuleRegistry, default_registry
from idiomguard.types import IdiomGuardConfig

logger: logging.Logger = logging.getLogger(__name__)


def analyze(
    *,
    source: SourceFile,
    config: IdiomGuardConfig,
    registry: RuleRegistry | None = None,
) -> DiagnosticSink:
    """Run every active detector over one program model."""
    reg: RuleRegistry = registry if registry is not None else default_registry()
    resolver: LevelResolver = LevelResolver(
        catalog=reg.catalog,
        configured=config.rules.levels,
    )
    sink: DiagnosticSink = DiagnosticSink()
    _Traversal(
        source=source,
        config=config,
        registry=reg,
        resolver=resolver,
        sink=sink,
    ).visit(source.module, parent=None)
    return sink


class _Traversal:
    def __init__(
        self,
        *,
        source: SourceFile,
        config: IdiomGuardConfig,
        registry: RuleRegistry,
        resolver: LevelResolver,
        sink: DiagnosticSink,
    ) -> None:
        self._source: SourceFile = source
        self._config: IdiomGuardConfig = config
        self._registry: RuleRegistry = registry
        self._resolver: LevelResolver = resolver
        self._sink: DiagnosticSink = sink

    def visit(self, node: Node, *, parent: ScopeFrame | None) -> None:
        """Visit `node`, then its nested declarations in textual order."""
        frame: ScopeFrame
        if parent is None:
            frame = ScopeFrame(name=node.name, directives=node.overrides)
        else:
            frame = parent.push(name=node.name, directives=node.overrides)

        if node.overrides:
            self._sink.add_issues(issues=self._resolver.check_directives(frame))

        # Macro-generated code is traversed but never reported.
        if not node.from_expansion:
            self._run_rules(node=node, frame=frame)

        for child in child_nodes(node):
            self.visit(child, parent=frame)

    def _run_rules(self, *, node: Node, frame: ScopeFrame) -> None:
        for rule in self._registry.rules_for(node.kind):
            lint: LintInfo = rule.select_lint(node)
            resolution: Resolution = self._resolver.resolve(lint.id, frame)
            if resolution.level == Level.ALLOW:
                continue

            context: CheckContext = CheckContext(
                lint=lint,
                level=resolution.level,
                source=self._source,
                options=self._config.rules,
                levels=partial(self._level_at, frame=frame),
            )
            findings: list[Finding] | None = self._check(
                rule=rule, node=node, context=context,
            )
            if findings is None:
                continue
            for finding in findings:
                self._sink.add(finding=self._decorate(finding, resolution=resolution))

    def _level_at(self, rule_id: str, *, frame: ScopeFrame) -> Level:
        return self._resolver.resolve(rule_id, frame).level

    def _check(
        self,
        *,
        rule: Rule,
        node: Node,
        context: CheckContext,
    ) -> list[Finding] | None:
        """Run one detector on one node; failures become internal-error issues."""
        try:
            return rule.check(node=node, context=context)
        except ModelError as e:
            logger.debug("%s: malformed model at `%s`: %s", context.lint.id, node.name, e)
            self._report_internal(
                message=f"{context.lint.id}: {e}",
                span=e.span if e.span is not None else node.span,
            )
        except Exception as e:  # noqa: BLE001
            logger.debug(
                "%s: detector failed at `%s`", context.lint.id, node.name, exc_info=True,
            )
            self._report_internal(
                message=f"{context.lint.id}: internal error at `{node.name}`: {e}",
                span=node.span,
            )
        return None

    def _report_internal(self, *, message: str, span: Span) -> None:
        self._sink.add_issue(issue=EngineIssue(
            kind=IssueKind.INTERNAL,
            code=INTERNAL_ERROR_CODE,
            message=message,
            span=span,
            file=self._source.path,
        ))

    def _decorate(self, finding: Finding, *, resolution: Resolution) -> Finding:
        notes: tuple[Note, ...] = finding.notes
        if resolution.directive is not None:
            notes = (*notes, Note(span=resolution.directive.span, text="lint level defined here"))
        return replace(
            finding,
            notes=notes,
            source_line=self._source.line(finding.span.start_line),
        )
