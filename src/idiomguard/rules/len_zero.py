"""len_zero: comparisons of `len()` against zero instead of `is_empty()`."""
from __future__ import annotations

from typing import Final

from idiomguard.constants import LEN_ZERO, Category, Level
from idiomguard.diagnostics import Finding, Suggestion
from idiomguard.model import (
    BinaryOp,
    DeclKind,
    Expr,
    FunctionSignature,
    MethodCall,
    Node,
    is_integer_literal,
)
from idiomguard.rules.base import CheckContext, LintInfo
from idiomguard.rules.len_without_is_empty import is_length_method
from idiomguard.types import LenOptions

LINT: LintInfo = LintInfo(
    id=LEN_ZERO,
    description="checking `.len() == 0` or `.len() > 0` (or similar) when "
    "`.is_empty()` could be used instead",
    default_level=Level.WARN,
    category=Category.STYLE,
)

# Operator as written with the length call on the left -> rewrite kind.
_LEFT_REWRITES: Final[dict[str, str]] = {
    "==": "empty",
    "<=": "empty",
    "!=": "not_empty",
    ">": "not_empty",
    "<": "false",
    ">=": "true",
}

# `0 <op> x.len()` is `x.len() <mirrored op> 0`.
_MIRRORED: Final[dict[str, str]] = {
    "==": "==",
    "!=": "!=",
    "<": ">",
    ">": "<",
    "<=": ">=",
    ">=": "<=",
}


class LenZeroRule:
    """Detect `x.len() <op> 0` and `0 <op> x.len()`."""

    @property
    def lints(self) -> tuple[LintInfo, ...]:
        return (LINT,)

    @property
    def kinds(self) -> frozenset[DeclKind]:
        return frozenset({DeclKind.EXPRESSION})

    def select_lint(self, node: Node) -> LintInfo:
        return LINT

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]:
        if not isinstance(node, BinaryOp) or not node.is_comparison:
            return []

        options: LenOptions = context.options.len
        match: tuple[str, MethodCall] | None = _match_comparison(
            node, context=context, options=options,
        )
        if match is None:
            return []

        op, call = match
        receiver: str = context.snippet(call.receiver)
        replacement: str = _rewrite(
            kind=_LEFT_REWRITES[op],
            receiver=receiver,
            emptiness=options.emptiness_method,
        )
        return [context.finding(
            span=node.span,
            message="length comparison to zero",
            help=f"consider using `{options.emptiness_method}`",
            suggestions=(Suggestion(span=node.span, replacement=replacement),),
        )]


def _match_comparison(
    node: BinaryOp,
    *,
    context: CheckContext,
    options: LenOptions,
) -> tuple[str, MethodCall] | None:
    """Return the operator normalized to `len() <op> 0` and the length call."""
    left: Expr = node.left
    right: Expr = node.right
    if isinstance(left, MethodCall) and is_integer_literal(right, 0):
        if _is_len_call(left, context=context, options=options):
            return node.op, left
    if isinstance(right, MethodCall) and is_integer_literal(left, 0):
        if _is_len_call(right, context=context, options=options):
            return _MIRRORED[node.op], right
    return None


def _is_len_call(expr: MethodCall, *, context: CheckContext, options: LenOptions) -> bool:
    """Check for a zero-argument call to a length accessor.

    When the receiver's type is known to the model, the resolved method
    must have the length accessor shape.
    """
    if expr.method not in options.length_methods or expr.args:
        return False
    if expr.receiver_type is None:
        return True
    resolved: FunctionSignature | None = context.source.lookup_method(
        expr.receiver_type, expr.method,
    )
    if resolved is None:
        return True
    return is_length_method(resolved, names=options.length_methods)


def _rewrite(*, kind: str, receiver: str, emptiness: str) -> str:
    if kind == "empty":
        return f"{receiver}.{emptiness}()"
    if kind == "not_empty":
        return f"!{receiver}.{emptiness}()"
    return kind
