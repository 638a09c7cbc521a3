"""Tests for len_zero: comparisons of a length against zero."""
from __future__ import annotations

import pytest

from idiomguard.constants import Level
from idiomguard.diagnostics import Finding, Span
from idiomguard.model import (
    BinaryOp,
    Expr,
    FunctionSignature,
    ImplBlock,
    Literal,
    MethodCall,
    Module,
    Param,
    PathExpr,
    ReceiverKind,
    SourceFile,
    Visibility,
)
from idiomguard.rules.base import CheckContext
from idiomguard.rules.len_zero import LINT, LenZeroRule
from idiomguard.types import RuleOptions


def _span(start: int = 1, end: int = 20, *, line: int = 1) -> Span:
    return Span(file="lib.rs", start_line=line, start_col=start, end_line=line, end_col=end)


def _path(name: str, *, text: str | None = None, span: Span | None = None) -> PathExpr:
    return PathExpr(segments=(name,), span=span or _span(), text=text if text is not None else name)


def _len_call(
    receiver: Expr | None = None,
    *,
    method: str = "len",
    args: tuple[Expr, ...] = (),
    receiver_type: str | None = None,
) -> MethodCall:
    return MethodCall(
        receiver=receiver if receiver is not None else _path("v"),
        method=method,
        span=_span(),
        args=args,
        receiver_type=receiver_type,
    )


def _int(value: int) -> Literal:
    return Literal(value=value, span=_span(), text=str(value))


def _make_context(*, source: SourceFile | None = None) -> CheckContext:
    return CheckContext(
        lint=LINT,
        level=Level.WARN,
        source=source or SourceFile(path="lib.rs", module=Module(name="crate", span=_span())),
        options=RuleOptions(),
    )


def _check(expr: BinaryOp, *, source: SourceFile | None = None) -> list[Finding]:
    return LenZeroRule().check(node=expr, context=_make_context(source=source))


def _replacement(expr: BinaryOp) -> str:
    findings: list[Finding] = _check(expr)
    assert len(findings) == 1
    assert len(findings[0].suggestions) == 1
    return findings[0].suggestions[0].replacement


class TestLenOnLeft:
    @pytest.mark.parametrize(
        ("op", "expected"),
        [
            ("==", "v.is_empty()"),
            ("!=", "!v.is_empty()"),
            (">", "!v.is_empty()"),
            ("<", "false"),
            (">=", "true"),
            ("<=", "v.is_empty()"),
        ],
    )
    def test_operator_rewrites(self, op: str, expected: str) -> None:
        expr: BinaryOp = BinaryOp(op=op, left=_len_call(), right=_int(0), span=_span())
        assert _replacement(expr) == expected


class TestLenOnRight:
    @pytest.mark.parametrize(
        ("op", "expected"),
        [
            ("==", "v.is_empty()"),
            ("!=", "!v.is_empty()"),
            ("<", "!v.is_empty()"),
            (">", "false"),
            ("<=", "true"),
            (">=", "v.is_empty()"),
        ],
    )
    def test_operator_rewrites_are_mirrored(self, op: str, expected: str) -> None:
        expr: BinaryOp = BinaryOp(op=op, left=_int(0), right=_len_call(), span=_span())
        assert _replacement(expr) == expected


class TestFindingShape:
    def test_message_help_and_span(self) -> None:
        expr: BinaryOp = BinaryOp(op="==", left=_len_call(), right=_int(0), span=_span(5, 17))
        findings: list[Finding] = _check(expr)
        assert len(findings) == 1
        finding: Finding = findings[0]
        assert finding.message == "length comparison to zero"
        assert finding.help == "consider using `is_empty`"
        assert finding.span == _span(5, 17)
        assert finding.suggestions[0].span == _span(5, 17)

    def test_string_literal_receiver(self) -> None:
        receiver: Literal = Literal(value="", span=_span(), text='""')
        expr: BinaryOp = BinaryOp(
            op="==",
            left=_len_call(receiver, method="length"),
            right=_int(0),
            span=_span(),
        )
        assert _replacement(expr) == '"".is_empty()'

    def test_receiver_text_taken_from_source(self) -> None:
        source: SourceFile = SourceFile(
            path="lib.rs",
            module=Module(name="crate", span=_span()),
            source_lines=("    if items.len() == 0 {",),
        )
        receiver: PathExpr = PathExpr(segments=("items",), span=_span(8, 13))
        expr: BinaryOp = BinaryOp(op="==", left=_len_call(receiver), right=_int(0), span=_span())
        findings: list[Finding] = _check(expr, source=source)
        assert findings[0].suggestions[0].replacement == "items.is_empty()"


class TestNotFlagged:
    def test_comparison_to_one(self) -> None:
        expr: BinaryOp = BinaryOp(op="==", left=_len_call(), right=_int(1), span=_span())
        assert _check(expr) == []

    def test_comparison_to_false(self) -> None:
        zero_ish: Literal = Literal(value=False, span=_span(), text="false")
        expr: BinaryOp = BinaryOp(op="==", left=_len_call(), right=zero_ish, span=_span())
        assert _check(expr) == []

    def test_len_with_arguments(self) -> None:
        call: MethodCall = _len_call(args=(_int(2),))
        expr: BinaryOp = BinaryOp(op="==", left=call, right=_int(0), span=_span())
        assert _check(expr) == []

    def test_other_method(self) -> None:
        expr: BinaryOp = BinaryOp(op="==", left=_len_call(method="count"), right=_int(0), span=_span())
        assert _check(expr) == []

    def test_arithmetic_operator(self) -> None:
        expr: BinaryOp = BinaryOp(op="+", left=_len_call(), right=_int(0), span=_span())
        assert _check(expr) == []

    def test_zero_compared_to_zero(self) -> None:
        expr: BinaryOp = BinaryOp(op="==", left=_int(0), right=_int(0), span=_span())
        assert _check(expr) == []

    def test_non_binary_node(self) -> None:
        findings: list[Finding] = LenZeroRule().check(node=_len_call(), context=_make_context())
        assert findings == []


class TestReceiverType:
    def _source(self, len_method: FunctionSignature) -> SourceFile:
        impl: ImplBlock = ImplBlock(
            name="Grid",
            span=_span(),
            methods=(len_method,),
            visibility=Visibility.PUBLIC,
        )
        return SourceFile(path="lib.rs", module=Module(name="crate", span=_span(), children=(impl,)))

    def test_resolved_length_accessor_flagged(self) -> None:
        source: SourceFile = self._source(FunctionSignature(
            name="len",
            span=_span(),
            receiver=ReceiverKind.BY_REF,
            return_type="usize",
        ))
        expr: BinaryOp = BinaryOp(
            op="==", left=_len_call(receiver_type="Grid"), right=_int(0), span=_span(),
        )
        assert len(_check(expr, source=source)) == 1

    def test_resolved_method_with_other_shape_skipped(self) -> None:
        source: SourceFile = self._source(FunctionSignature(
            name="len",
            span=_span(),
            receiver=ReceiverKind.BY_REF,
            params=(Param(name="axis", type_name="usize"),),
            return_type="usize",
        ))
        expr: BinaryOp = BinaryOp(
            op="==", left=_len_call(receiver_type="Grid"), right=_int(0), span=_span(),
        )
        assert _check(expr, source=source) == []

    def test_unknown_receiver_type_still_flagged(self) -> None:
        expr: BinaryOp = BinaryOp(
            op="==", left=_len_call(receiver_type="Vec<u8>"), right=_int(0), span=_span(),
        )
        assert len(_check(expr)) == 1
