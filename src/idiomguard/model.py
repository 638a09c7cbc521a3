"""Program model: the read-only view of declarations produced by a front end."""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Final

from idiomguard.constants import BOOLEAN_TYPES, INTEGER_TYPES, Level
from idiomguard.diagnostics import Span


class DeclKind(Enum):
    """Discriminant of the declaration union."""

    MODULE = "module"
    IMPL = "impl"
    TRAIT = "trait"
    ENUM = "enum"
    FUNCTION = "function"
    IMPORT = "import"
    EXPRESSION = "expression"


class Visibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class ReceiverKind(Enum):
    """How a method takes `self`. NONE marks a static function."""

    BY_REF = "by_ref"
    BY_VALUE = "by_value"
    NONE = "none"


COMPARISON_OPS: Final[frozenset[str]] = frozenset({"==", "!=", ">", "<", ">=", "<="})


class ModelError(Exception):
    """The program model lacks information a detector needs."""

    def __init__(self, message: str, *, span: Span | None = None) -> None:
        self.span: Span | None = span
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class OverrideDirective:
    """A `(rule, level)` pair attached to a declaration's scope.

    `rule` is a lint id, a category name or the `all` wildcard.
    """

    rule: str
    level: Level
    span: Span
    text: str | None = None

    def describe(self) -> str:
        return f"{self.level.value}({self.rule})"


@dataclass(frozen=True, slots=True)
class Attribute:
    """A non-lint attribute such as `inline(always)` or `deprecated(since = "1.0")`."""

    name: str
    span: Span
    args: tuple[str, ...] = ()
    values: tuple[tuple[str, str], ...] = ()

    def value(self, key: str) -> str | None:
        for k, v in self.values:
            if k == key:
                return v
        return None


@dataclass(frozen=True, slots=True)
class Param:
    name: str
    type_name: str | None = None


# -- expressions ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Literal:
    value: int | float | str | bool | None
    span: Span
    text: str | None = None
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return "literal"


@dataclass(frozen=True, slots=True)
class PathExpr:
    segments: tuple[str, ...]
    span: Span
    text: str | None = None
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return "::".join(self.segments)


@dataclass(frozen=True, slots=True)
class MethodCall:
    """`receiver.method(args)`. `receiver_type` is set when type information exists."""

    receiver: Expr
    method: str
    span: Span
    args: tuple[Expr, ...] = ()
    receiver_type: str | None = None
    text: str | None = None
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return self.method


@dataclass(frozen=True, slots=True)
class Call:
    callee: Expr
    span: Span
    args: tuple[Expr, ...] = ()
    text: str | None = None
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return "call"


@dataclass(frozen=True, slots=True)
class BinaryOp:
    op: str
    left: Expr
    right: Expr
    span: Span
    text: str | None = None
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return self.op

    @property
    def is_comparison(self) -> bool:
        return self.op in COMPARISON_OPS


@dataclass(frozen=True, slots=True)
class OpaqueExpr:
    """Any expression the model does not break down further."""

    span: Span
    text: str | None = None
    children: tuple[Expr, ...] = ()
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return "expression"


@dataclass(frozen=True, slots=True)
class AddrOf:
    """`&inner` or `&mut inner`. `adjusted_type` is the type after coercions."""

    inner: Expr
    span: Span
    mutable: bool = False
    adjusted_type: str | None = None
    text: str | None = None
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return "&mut" if self.mutable else "&"


@dataclass(frozen=True, slots=True)
class VecMacro:
    """A `vec![a, b]` or `vec![elem; len]` invocation.

    `repeat_element` and `repeat_length` are set for the repeat form only.
    `element_is_copy` is None when the element type was not described.
    """

    span: Span
    elements: tuple[Expr, ...] = ()
    repeat_element: Expr | None = None
    repeat_length: Expr | None = None
    element_is_copy: bool | None = None
    text: str | None = None
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return "vec!"

    @property
    def is_repeat(self) -> bool:
        return self.repeat_element is not None


@dataclass(frozen=True, slots=True)
class Block:
    exprs: tuple[Expr, ...]
    span: Span
    text: str | None = None
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return "block"


class PatternKind(Enum):
    WILD = "wild"
    LITERAL = "literal"
    RANGE = "range"
    BINDING = "binding"
    PATH = "path"
    TUPLE_STRUCT = "tuple_struct"
    REF = "ref"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Pattern:
    """A match or loop pattern.

    Which fields are meaningful depends on `kind`: `value` for literals,
    `low`/`high`/`inclusive` for ranges, `name`/`by_ref`/`mutable` for
    bindings, `segments` for paths and tuple structs. `subpatterns` holds
    the fields of a tuple struct, the target of a `&` pattern, or the
    `x @ pat` sub-pattern of a binding.
    """

    kind: PatternKind
    span: Span
    text: str | None = None
    value: int | float | str | bool | None = None
    low: int | float | str | None = None
    high: int | float | str | None = None
    inclusive: bool = True
    name: str | None = None
    by_ref: bool = False
    mutable: bool = False
    segments: tuple[str, ...] = ()
    subpatterns: tuple[Pattern, ...] = ()

    @property
    def path(self) -> str:
        return "::".join(self.segments)


class MatchSource(Enum):
    """The surface syntax a match was written in."""

    NORMAL = "normal"
    IF_LET = "if_let"
    WHILE_LET = "while_let"


@dataclass(frozen=True, slots=True)
class MatchArm:
    patterns: tuple[Pattern, ...]
    body: Expr
    span: Span
    guard: Expr | None = None


@dataclass(frozen=True, slots=True)
class MatchExpr:
    """`match scrutinee { arms }`, or an `if let`/`while let` lowered to one."""

    scrutinee: Expr
    span: Span
    arms: tuple[MatchArm, ...] = ()
    scrutinee_type: str | None = None
    source: MatchSource = MatchSource.NORMAL
    text: str | None = None
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return "match"


@dataclass(frozen=True, slots=True)
class ForLoop:
    pattern: Pattern
    iterable: Expr
    span: Span
    body: tuple[Expr, ...] = ()
    text: str | None = None
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.EXPRESSION

    @property
    def name(self) -> str:
        return "for"


Expr = (
    Literal | PathExpr | MethodCall | Call | BinaryOp | OpaqueExpr
    | AddrOf | VecMacro | Block | MatchExpr | ForLoop
)


def sub_expressions(expr: Expr) -> tuple[Expr, ...]:
    """Direct operands of an expression, in source order."""
    if isinstance(expr, MethodCall):
        return (expr.receiver, *expr.args)
    if isinstance(expr, Call):
        return (expr.callee, *expr.args)
    if isinstance(expr, BinaryOp):
        return (expr.left, expr.right)
    if isinstance(expr, OpaqueExpr):
        return expr.children
    if isinstance(expr, AddrOf):
        return (expr.inner,)
    if isinstance(expr, VecMacro):
        if expr.repeat_element is not None and expr.repeat_length is not None:
            return (expr.repeat_element, expr.repeat_length)
        return expr.elements
    if isinstance(expr, Block):
        return expr.exprs
    if isinstance(expr, MatchExpr):
        operands: list[Expr] = [expr.scrutinee]
        for arm in expr.arms:
            if arm.guard is not None:
                operands.append(arm.guard)
            operands.append(arm.body)
        return tuple(operands)
    if isinstance(expr, ForLoop):
        return (expr.iterable, *expr.body)
    return ()


def is_unit_expr(expr: Expr) -> bool:
    """Check for `()` (a valueless literal) or an empty block."""
    if isinstance(expr, Block):
        return not expr.exprs
    return isinstance(expr, Literal) and expr.value is None


def is_integer_literal(expr: Expr, value: int) -> bool:
    """Check whether the expression is the integer literal `value`."""
    return (
        isinstance(expr, Literal)
        and isinstance(expr.value, int)
        and not isinstance(expr.value, bool)
        and expr.value == value
    )


# -- items ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FunctionSignature:
    """A free function or a method of an impl block or trait.

    `receiver` and `return_type` are None when the front end did not
    describe them. `body` is None for a trait method without a default.
    """

    name: str
    span: Span
    visibility: Visibility = Visibility.PRIVATE
    receiver: ReceiverKind | None = ReceiverKind.NONE
    params: tuple[Param, ...] = ()
    return_type: str | None = None
    body: tuple[Expr, ...] | None = ()
    attributes: tuple[Attribute, ...] = ()
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.FUNCTION

    @property
    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC

    def require_receiver(self) -> ReceiverKind:
        if self.receiver is None:
            raise ModelError(
                f"method `{self.name}` has no receiver descriptor", span=self.span,
            )
        return self.receiver

    def require_return_type(self) -> str:
        if self.return_type is None:
            raise ModelError(
                f"method `{self.name}` has no return type descriptor", span=self.span,
            )
        return self.return_type


@dataclass(frozen=True, slots=True)
class Variant:
    name: str
    span: Span


@dataclass(frozen=True, slots=True)
class EnumDef:
    name: str
    span: Span
    variants: tuple[Variant, ...] = ()
    visibility: Visibility = Visibility.PRIVATE
    attributes: tuple[Attribute, ...] = ()
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.ENUM

    @property
    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC


@dataclass(frozen=True, slots=True)
class TraitDef:
    name: str
    span: Span
    methods: tuple[FunctionSignature, ...] = ()
    visibility: Visibility = Visibility.PRIVATE
    attributes: tuple[Attribute, ...] = ()
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.TRAIT

    @property
    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC


@dataclass(frozen=True, slots=True)
class ImplBlock:
    """An impl block for the type `name`; `trait_name` is set for trait impls."""

    name: str
    span: Span
    methods: tuple[FunctionSignature, ...] = ()
    visibility: Visibility = Visibility.PRIVATE
    trait_name: str | None = None
    children: tuple[Item, ...] = ()
    attributes: tuple[Attribute, ...] = ()
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.IMPL

    @property
    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC


@dataclass(frozen=True, slots=True)
class Import:
    name: str
    span: Span
    is_extern: bool = False
    attributes: tuple[Attribute, ...] = ()
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.IMPORT


@dataclass(frozen=True, slots=True)
class Module:
    name: str
    span: Span
    children: tuple[Item, ...] = ()
    attributes: tuple[Attribute, ...] = ()
    overrides: tuple[OverrideDirective, ...] = ()
    from_expansion: bool = False

    kind: ClassVar[DeclKind] = DeclKind.MODULE


Item = Module | ImplBlock | TraitDef | EnumDef | FunctionSignature | Import
Node = Item | Expr


def child_nodes(node: Node) -> tuple[Node, ...]:
    """Nested nodes in textual order."""
    if isinstance(node, Module):
        return node.children
    if isinstance(node, ImplBlock):
        return (*node.methods, *node.children)
    if isinstance(node, TraitDef):
        return node.methods
    if isinstance(node, FunctionSignature):
        return node.body or ()
    if isinstance(node, (EnumDef, Import)):
        return ()
    return sub_expressions(node)


def is_integer_type(type_name: str) -> bool:
    return type_name.strip().lstrip("&").strip() in INTEGER_TYPES


def is_boolean_type(type_name: str) -> bool:
    return type_name.strip().lstrip("&").strip() in BOOLEAN_TYPES


def type_constructor(type_name: str) -> str:
    """Last path segment of a type, without references or generics.

    `&std::option::Option<u8>` gives `Option`.
    """
    name: str = type_name.strip().lstrip("&").strip()
    name = name.removeprefix("mut ").strip()
    return name.split("<", 1)[0].rsplit("::", 1)[-1].strip()


@dataclass(frozen=True, slots=True)
class SourceFile:
    """A loaded program model together with its source text, if known."""

    path: str
    module: Module
    source_lines: tuple[str, ...] = ()
    _methods: dict[str, dict[str, FunctionSignature]] = field(
        default_factory=dict, compare=False, repr=False,
    )

    def __post_init__(self) -> None:
        for item in _walk_items(self.module):
            if isinstance(item, (ImplBlock, TraitDef)):
                table: dict[str, FunctionSignature] = self._methods.setdefault(
                    item.name, {},
                )
                for method in item.methods:
                    table.setdefault(method.name, method)

    def lookup_method(self, type_name: str, method: str) -> FunctionSignature | None:
        """Resolve `type_name::method` against the impls and traits of this file."""
        return self._methods.get(type_name, {}).get(method)

    def line(self, number: int) -> str | None:
        if 1 <= number <= len(self.source_lines):
            return self.source_lines[number - 1]
        return None

    def snippet(self, span: Span) -> str | None:
        """Return the source text covered by `span`, or None if unavailable."""
        if not self.source_lines or span.start_line > span.end_line:
            return None
        if span.end_line > len(self.source_lines):
            return None
        lines: list[str] = list(
            self.source_lines[span.start_line - 1:span.end_line],
        )
        if len(lines) == 1:
            return lines[0][span.start_col - 1:span.end_col - 1]
        lines[0] = lines[0][span.start_col - 1:]
        lines[-1] = lines[-1][:span.end_col - 1]
        return "\n".join(lines)


def _walk_items(node: Node) -> Iterator[Node]:
    yield node
    if isinstance(node, (Module, ImplBlock)):
        for child in node.children:
            yield from _walk_items(child)
