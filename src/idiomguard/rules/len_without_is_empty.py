"""len_without_is_empty: public `len` methods without a matching `is_empty`."""
from __future__ import annotations

from idiomguard.constants import LEN_WITHOUT_IS_EMPTY, Category, Level
from idiomguard.diagnostics import Finding, Note
from idiomguard.model import (
    DeclKind,
    FunctionSignature,
    ImplBlock,
    Node,
    ReceiverKind,
    TraitDef,
    is_boolean_type,
    is_integer_type,
)
from idiomguard.rules.base import CheckContext, LintInfo
from idiomguard.types import LenOptions

LINT: LintInfo = LintInfo(
    id=LEN_WITHOUT_IS_EMPTY,
    description="traits or impls with a public `len` method but no "
    "corresponding `is_empty` method",
    default_level=Level.WARN,
    category=Category.STYLE,
)


class LenWithoutIsEmptyRule:
    """Detect impls and traits exposing `len` without `is_empty`."""

    @property
    def lints(self) -> tuple[LintInfo, ...]:
        return (LINT,)

    @property
    def kinds(self) -> frozenset[DeclKind]:
        return frozenset({DeclKind.IMPL, DeclKind.TRAIT})

    def select_lint(self, node: Node) -> LintInfo:
        return LINT

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]:
        options: LenOptions = context.options.len
        if isinstance(node, ImplBlock):
            return _check_impl(node=node, context=context, options=options)
        if isinstance(node, TraitDef):
            return _check_trait(node=node, context=context, options=options)
        return []


def is_length_method(method: FunctionSignature, *, names: tuple[str, ...]) -> bool:
    """Check for `fn len(&self) -> <integer>` under one of `names`."""
    if method.name not in names:
        return False
    if method.require_receiver() != ReceiverKind.BY_REF or method.params:
        return False
    return is_integer_type(method.require_return_type())


def has_emptiness_signature(method: FunctionSignature) -> bool:
    """Check for the `fn is_empty(&self) -> bool` shape."""
    if method.require_receiver() != ReceiverKind.BY_REF or method.params:
        return False
    return is_boolean_type(method.require_return_type())


def _length_methods(
    methods: tuple[FunctionSignature, ...],
    *,
    options: LenOptions,
) -> list[FunctionSignature]:
    return [m for m in methods if is_length_method(m, names=options.length_methods)]


def _emptiness_methods(
    methods: tuple[FunctionSignature, ...],
    *,
    options: LenOptions,
) -> list[FunctionSignature]:
    """Methods named like the emptiness accessor and shaped like it."""
    return [
        m for m in methods
        if m.name == options.emptiness_method and has_emptiness_signature(m)
    ]


def _check_impl(
    *,
    node: ImplBlock,
    context: CheckContext,
    options: LenOptions,
) -> list[Finding]:
    # Trait impls are covered by the trait definition.
    if node.trait_name is not None:
        return []

    # A public method on a private type is not part of the exported API.
    if not node.is_public:
        return []

    len_method: FunctionSignature | None = next(
        (m for m in _length_methods(node.methods, options=options) if m.is_public),
        None,
    )
    if len_method is None:
        return []

    len_name: str = len_method.name
    empty_name: str = options.emptiness_method
    notes: tuple[Note, ...] = (
        Note(span=len_method.span, text=f"`{len_name}` defined here"),
    )

    candidates: list[FunctionSignature] = _emptiness_methods(
        node.methods, options=options,
    )
    if not candidates:
        return [context.finding(
            span=node.span,
            message=f"item `{node.name}` has a public `{len_name}` method "
            f"but no corresponding `{empty_name}` method",
            notes=notes,
        )]

    if any(m.is_public for m in candidates):
        return []

    private: FunctionSignature = candidates[0]
    return [context.finding(
        span=node.span,
        message=f"item `{node.name}` has a public `{len_name}` method "
        f"but a private `{empty_name}` method",
        notes=(*notes, Note(span=private.span, text=f"`{empty_name}` is private")),
    )]


def _check_trait(
    *,
    node: TraitDef,
    context: CheckContext,
    options: LenOptions,
) -> list[Finding]:
    if not node.is_public:
        return []

    lengths: list[FunctionSignature] = _length_methods(node.methods, options=options)
    if not lengths:
        return []
    len_method: FunctionSignature = lengths[0]

    if _emptiness_methods(node.methods, options=options):
        return []

    return [context.finding(
        span=node.span,
        message=f"trait `{node.name}` has a `{len_method.name}` method "
        f"but no `{options.emptiness_method}` method",
        notes=(Note(span=len_method.span, text=f"`{len_method.name}` defined here"),),
    )]
