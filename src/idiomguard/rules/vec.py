"""useless_vec: `&vec![..]` and `for _ in vec![..]` where an array would do."""
from __future__ import annotations

from typing import Final

from idiomguard.constants import USELESS_VEC, Category, Level
from idiomguard.diagnostics import Finding, Span, Suggestion
from idiomguard.model import (
    AddrOf,
    BinaryOp,
    DeclKind,
    Expr,
    ForLoop,
    Literal,
    Node,
    VecMacro,
)
from idiomguard.rules.base import CheckContext, LintInfo

LINT: LintInfo = LintInfo(
    id=USELESS_VEC,
    description="useless `vec!`",
    default_level=Level.WARN,
    category=Category.PERF,
)

_ARITHMETIC_OPS: Final[frozenset[str]] = frozenset({"+", "-", "*", "/", "%", "<<", ">>"})


class UselessVecRule:
    """Detect a `vec!` that is only borrowed as a slice or iterated by copy."""

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
        target: tuple[VecMacro, Span] | None = _vec_target(node)
        if target is None:
            return []

        vec, span = target
        replacement: str | None = _slice_literal(vec, context=context)
        if replacement is None:
            return []
        return [context.finding(
            span=span,
            message="useless use of `vec!`",
            help="you can use a slice directly",
            suggestions=(Suggestion(span=span, replacement=replacement),),
        )]


def _vec_target(node: Node) -> tuple[VecMacro, Span] | None:
    """The `vec!` to replace and the span the replacement covers.

    Without a coerced type (or, for loops, without knowing whether the
    element is `Copy`) the node is left alone.
    """
    if isinstance(node, AddrOf) and isinstance(node.inner, VecMacro):
        if node.adjusted_type is not None and is_slice_reference(node.adjusted_type):
            return node.inner, node.span
    if isinstance(node, ForLoop) and isinstance(node.iterable, VecMacro):
        if node.iterable.element_is_copy:
            return node.iterable, node.iterable.span
    return None


def is_slice_reference(type_name: str) -> bool:
    """Check for `&[T]` or `&mut [T]`; `&[T; N]` is an array reference."""
    name: str = type_name.strip()
    if not name.startswith("&"):
        return False
    name = name[1:].strip().removeprefix("mut ").strip()
    if not (name.startswith("[") and name.endswith("]")):
        return False

    depth: int = 0
    for ch in name[1:-1]:
        if ch in "[(<":
            depth += 1
        elif ch in "])>":
            depth -= 1
        elif ch == ";" and depth == 0:
            return False
    return True


def _slice_literal(vec: VecMacro, *, context: CheckContext) -> str | None:
    if vec.repeat_element is not None and vec.repeat_length is not None:
        if not is_constant(vec.repeat_length):
            return None
        element: str = context.snippet(vec.repeat_element, "elem")
        length: str = context.snippet(vec.repeat_length, "len")
        return f"&[{element}; {length}]"

    if not vec.elements:
        return "&[]"

    first: Expr = vec.elements[0]
    last: Expr = vec.elements[-1]
    text: str | None = context.source.snippet(Span(
        file=first.span.file,
        start_line=first.span.start_line,
        start_col=first.span.start_col,
        end_line=last.span.end_line,
        end_col=last.span.end_col,
    ))
    if not text:
        text = ", ".join(context.snippet(e) for e in vec.elements)
    return f"&[{text}]"


def is_constant(expr: Expr) -> bool:
    """Integer literals, and arithmetic on them."""
    if isinstance(expr, Literal):
        return isinstance(expr.value, int) and not isinstance(expr.value, bool)
    if isinstance(expr, BinaryOp) and expr.op in _ARITHMETIC_OPS:
        return is_constant(expr.left) and is_constant(expr.right)
    return False
