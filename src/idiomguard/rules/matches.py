"""Lints on the shape of `match` expressions.

`single_match` and `single_match_else` look for two-arm matches that read
better as `if let`. `match_bool` reports matches on a boolean,
`match_ref_pats` reports arms that all borrow, and `match_overlapping_arm`
reports integer arms whose ranges intersect.

Only matches written as `match` are checked, except by `match_ref_pats`,
which also looks at `if let` and `while let`.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

from idiomguard.constants import (
    MATCH_BOOL,
    MATCH_OVERLAPPING_ARM,
    MATCH_REF_PATS,
    SINGLE_MATCH,
    SINGLE_MATCH_ELSE,
    Category,
    Level,
)
from idiomguard.diagnostics import Finding, Note, Span, Suggestion
from idiomguard.model import (
    AddrOf,
    BinaryOp,
    Block,
    DeclKind,
    Expr,
    MatchArm,
    MatchExpr,
    MatchSource,
    Node,
    Pattern,
    PatternKind,
    is_boolean_type,
    is_integer_type,
    is_unit_expr,
    type_constructor,
)
from idiomguard.rules.base import CheckContext, LintInfo

SINGLE_MATCH_LINT: LintInfo = LintInfo(
    id=SINGLE_MATCH,
    description="a match statement with a single nontrivial arm (i.e, where the "
    "other arm is `_ => {}`) instead of `if let`",
    default_level=Level.WARN,
    category=Category.STYLE,
)

SINGLE_MATCH_ELSE_LINT: LintInfo = LintInfo(
    id=SINGLE_MATCH_ELSE,
    description="a match statement with a two arms where the second arm's pattern "
    "is a wildcard instead of `if let`",
    default_level=Level.ALLOW,
    category=Category.PEDANTIC,
)

MATCH_REF_PATS_LINT: LintInfo = LintInfo(
    id=MATCH_REF_PATS,
    description="a match or `if let` with all arms prefixed with `&` instead of "
    "deref-ing the match expression",
    default_level=Level.WARN,
    category=Category.STYLE,
)

MATCH_BOOL_LINT: LintInfo = LintInfo(
    id=MATCH_BOOL,
    description="a match on a boolean expression instead of an `if..else` block",
    default_level=Level.WARN,
    category=Category.STYLE,
)

MATCH_OVERLAPPING_ARM_LINT: LintInfo = LintInfo(
    id=MATCH_OVERLAPPING_ARM,
    description="a match with overlapping arms",
    default_level=Level.WARN,
    category=Category.STYLE,
)

# Enums that will never get more variants: matching one variant leaves
# exactly the other for the second arm.
_CLOSED_ENUM_PATTERNS: Final[dict[str, frozenset[str]]] = {
    "Cow": frozenset({"Borrowed", "Owned", "Cow::Borrowed", "Cow::Owned"}),
    "Option": frozenset({"None"}),
    "Result": frozenset({"Ok", "Err"}),
}

_REWRITE_TEMPLATES: Final[dict[MatchSource, str]] = {
    MatchSource.NORMAL: "match {} {{ .. }}",
    MatchSource.IF_LET: "if let .. = {} {{ .. }}",
    MatchSource.WHILE_LET: "while let .. = {} {{ .. }}",
}

_SINGLE_MATCH_MESSAGE: Final[str] = (
    "you seem to be trying to use match for destructuring a single pattern. "
    "Consider using `if let`"
)


class SingleMatchRule:
    """Detect `match x { P => .., _ => {} }` and friends."""

    @property
    def lints(self) -> tuple[LintInfo, ...]:
        return (SINGLE_MATCH_LINT, SINGLE_MATCH_ELSE_LINT)

    @property
    def kinds(self) -> frozenset[DeclKind]:
        return frozenset({DeclKind.EXPRESSION})

    def select_lint(self, node: Node) -> LintInfo:
        if (
            isinstance(node, MatchExpr)
            and len(node.arms) == 2
            and not is_unit_expr(node.arms[1].body)
        ):
            return SINGLE_MATCH_ELSE_LINT
        return SINGLE_MATCH_LINT

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]:
        if not isinstance(node, MatchExpr) or node.source != MatchSource.NORMAL:
            return []
        if len(node.arms) != 2 or not all(_is_simple_arm(arm) for arm in node.arms):
            return []

        first, second = node.arms
        els: Expr | None = None
        if not is_unit_expr(second.body):
            # Arms that are plain expressions read fine as a match.
            if not isinstance(second.body, Block):
                return []
            els = second.body

        ty: str | None = node.scrutinee_type
        if (
            ty is not None
            and is_boolean_type(ty)
            and context.level_of(MATCH_BOOL_LINT) != Level.ALLOW
        ):
            return []

        if not _covers_the_rest(second.patterns[0], scrutinee_type=ty):
            return []

        rewrite: str = (
            f"if let {context.snippet(first.patterns[0])} = "
            f"{context.snippet(node.scrutinee)} {_block(first.body, context=context)}"
        )
        if els is not None:
            rewrite += f" else {_block(els, context=context)}"
        return [context.finding(
            span=node.span,
            message=_SINGLE_MATCH_MESSAGE,
            help="try this",
            suggestions=(Suggestion(span=node.span, replacement=rewrite),),
        )]


def _is_simple_arm(arm: MatchArm) -> bool:
    return len(arm.patterns) == 1 and arm.guard is None


def _covers_the_rest(pattern: Pattern, *, scrutinee_type: str | None) -> bool:
    """Check whether the second arm's pattern is a catch-all.

    That is a wildcard, or the one other variant of an enum that cannot grow.
    """
    if pattern.kind == PatternKind.WILD:
        return True
    if scrutinee_type is None:
        return False
    path: str | None = _variant_path(pattern)
    if path is None:
        return False
    return path in _CLOSED_ENUM_PATTERNS.get(type_constructor(scrutinee_type), frozenset())


def _variant_path(pattern: Pattern) -> str | None:
    if pattern.kind == PatternKind.TUPLE_STRUCT:
        # `Err(e)` names a binding, only `Err(_)` is a catch-all.
        if any(p.kind != PatternKind.WILD for p in pattern.subpatterns):
            return None
        return pattern.path
    if pattern.kind == PatternKind.BINDING:
        if pattern.by_ref or pattern.mutable or pattern.subpatterns:
            return None
        return pattern.name
    if pattern.kind == PatternKind.PATH:
        return pattern.path
    return None


class MatchBoolRule:
    """Detect `match` on a boolean scrutinee."""

    @property
    def lints(self) -> tuple[LintInfo, ...]:
        return (MATCH_BOOL_LINT,)

    @property
    def kinds(self) -> frozenset[DeclKind]:
        return frozenset({DeclKind.EXPRESSION})

    def select_lint(self, node: Node) -> LintInfo:
        return MATCH_BOOL_LINT

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]:
        if not isinstance(node, MatchExpr) or node.source != MatchSource.NORMAL:
            return []
        if node.scrutinee_type is None or not is_boolean_type(node.scrutinee_type):
            return []

        rewrite: str | None = _if_else_rewrite(node, context=context)
        return [context.finding(
            span=node.span,
            message="you seem to be trying to match on a boolean expression",
            help="consider using an if/else expression" if rewrite is not None else None,
            suggestions=(
                (Suggestion(span=node.span, replacement=rewrite),)
                if rewrite is not None else ()
            ),
        )]


def _if_else_rewrite(node: MatchExpr, *, context: CheckContext) -> str | None:
    if len(node.arms) != 2 or len(node.arms[0].patterns) != 1:
        return None
    pattern: Pattern = node.arms[0].patterns[0]
    if pattern.kind != PatternKind.LITERAL or not isinstance(pattern.value, bool):
        return None

    if pattern.value:
        when_true, when_false = node.arms[0].body, node.arms[1].body
    else:
        when_true, when_false = node.arms[1].body, node.arms[0].body

    condition: str = context.snippet(node.scrutinee, "b")
    true_is_unit: bool = is_unit_expr(when_true)
    false_is_unit: bool = is_unit_expr(when_false)
    if true_is_unit and false_is_unit:
        return None
    if true_is_unit:
        negated: str = _prefixed("!", node.scrutinee, context=context)
        return f"if {negated} {_block(when_false, context=context)}"
    if false_is_unit:
        return f"if {condition} {_block(when_true, context=context)}"
    return (
        f"if {condition} {_block(when_true, context=context)} "
        f"else {_block(when_false, context=context)}"
    )


class MatchRefPatsRule:
    """Detect matches whose every arm pattern starts with `&`."""

    @property
    def lints(self) -> tuple[LintInfo, ...]:
        return (MATCH_REF_PATS_LINT,)

    @property
    def kinds(self) -> frozenset[DeclKind]:
        return frozenset({DeclKind.EXPRESSION})

    def select_lint(self, node: Node) -> LintInfo:
        return MATCH_REF_PATS_LINT

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]:
        if not isinstance(node, MatchExpr) or not _has_only_ref_patterns(node.arms):
            return []

        scrutinee: Expr = node.scrutinee
        message: str
        help_text: str
        target: str
        if isinstance(scrutinee, AddrOf) and not scrutinee.mutable:
            message = "you don't need to add `&` to both the expression and the patterns"
            help_text = "try"
            target = context.snippet(scrutinee.inner)
        else:
            message = "you don't need to add `&` to all patterns"
            help_text = (
                "instead of prefixing all patterns with `&`, you can dereference "
                "the expression"
            )
            target = _prefixed("*", scrutinee, context=context)

        rewrite: str = _REWRITE_TEMPLATES[node.source].format(target)
        return [context.finding(
            span=node.span,
            message=message,
            help=help_text,
            suggestions=(Suggestion(span=node.span, replacement=rewrite),),
        )]


def _has_only_ref_patterns(arms: Sequence[MatchArm]) -> bool:
    """Every pattern is `&..` or `_`, and at least one is `&..`."""
    kinds: list[PatternKind] = [p.kind for arm in arms for p in arm.patterns]
    if any(k not in (PatternKind.REF, PatternKind.WILD) for k in kinds):
        return False
    return PatternKind.REF in kinds


@dataclass(frozen=True, slots=True)
class SpannedRange:
    """Inclusive integer bounds of one arm pattern."""

    low: int
    high: int
    span: Span


class MatchOverlappingArmRule:
    """Detect integer arms whose ranges intersect."""

    @property
    def lints(self) -> tuple[LintInfo, ...]:
        return (MATCH_OVERLAPPING_ARM_LINT,)

    @property
    def kinds(self) -> frozenset[DeclKind]:
        return frozenset({DeclKind.EXPRESSION})

    def select_lint(self, node: Node) -> LintInfo:
        return MATCH_OVERLAPPING_ARM_LINT

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]:
        if not isinstance(node, MatchExpr) or node.source != MatchSource.NORMAL:
            return []
        if len(node.arms) < 2:
            return []
        if node.scrutinee_type is None or not is_integer_type(node.scrutinee_type):
            return []

        pair: tuple[SpannedRange, SpannedRange] | None = overlapping(
            integer_ranges(node.arms),
        )
        if pair is None:
            return []
        start, end = pair
        return [context.finding(
            span=start.span,
            message="some ranges overlap",
            notes=(Note(span=end.span, text="overlaps with this"),),
        )]


def integer_ranges(arms: Sequence[MatchArm]) -> list[SpannedRange]:
    """Bounds of the range and literal patterns of unguarded arms."""
    ranges: list[SpannedRange] = []
    for arm in arms:
        if arm.guard is not None:
            continue
        for pattern in arm.patterns:
            low: int | None = None
            high: int | None = None
            if pattern.kind == PatternKind.RANGE:
                low, high = _as_int(pattern.low), _as_int(pattern.high)
                if high is not None and not pattern.inclusive:
                    high -= 1
            elif pattern.kind == PatternKind.LITERAL:
                low = high = _as_int(pattern.value)
            if low is not None and high is not None:
                ranges.append(SpannedRange(low=low, high=high, span=pattern.span))
    return ranges


def overlapping(
    ranges: Sequence[SpannedRange],
) -> tuple[SpannedRange, SpannedRange] | None:
    """Return the first two ranges found to overlap, or None.

    Bounds are sorted by value, ties keeping the order they were listed
    in. Between neighbouring bounds, only an end followed by a strictly
    greater start, or the start and end of the same range, leave no overlap.
    """
    bounds: list[tuple[int, bool, SpannedRange]] = []
    for r in ranges:
        bounds.append((r.low, True, r))
        bounds.append((r.high, False, r))
    bounds.sort(key=lambda bound: bound[0])

    for (a_value, a_is_start, a_range), (b_value, b_is_start, b_range) in zip(
        bounds, bounds[1:],
    ):
        if a_is_start and not b_is_start:
            if (a_range.low, a_range.high) != (b_range.low, b_range.high):
                return a_range, b_range
        elif not a_is_start and b_is_start and a_value != b_value:
            continue
        else:
            return a_range, b_range
    return None


def _as_int(value: object) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _block(expr: Expr, *, context: CheckContext) -> str:
    """Source of an arm body, braced."""
    text: str = context.snippet(expr)
    if text.startswith("{"):
        return text
    return f"{{ {text} }}"


def _prefixed(operator: str, expr: Expr, *, context: CheckContext) -> str:
    text: str = context.snippet(expr)
    if isinstance(expr, BinaryOp):
        return f"{operator}({text})"
    return f"{operator}{text}"
