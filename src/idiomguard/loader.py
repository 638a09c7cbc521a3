"""Loading of program model documents produced by a front end."""
from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from idiomguard.constants import Level
from idiomguard.diagnostics import Span
from idiomguard.model import (
    AddrOf,
    Attribute,
    BinaryOp,
    Block,
    Call,
    EnumDef,
    Expr,
    ForLoop,
    FunctionSignature,
    ImplBlock,
    Import,
    Item,
    Literal,
    MatchArm,
    MatchExpr,
    MatchSource,
    MethodCall,
    Module,
    OpaqueExpr,
    OverrideDirective,
    Param,
    PathExpr,
    Pattern,
    PatternKind,
    ReceiverKind,
    SourceFile,
    TraitDef,
    Variant,
    VecMacro,
    Visibility,
)


@dataclass(frozen=True, slots=True)
class LoadErrorInfo:
    """Why a model document could not be loaded."""

    message: str
    line: int = 1
    column: int = 1


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Result of loading a program model document."""

    file: Path
    source: SourceFile | None
    error: LoadErrorInfo | None


class ModelFormatError(Exception):
    """The document is not a well-formed program model."""


def load_model(*, file: Path) -> LoadResult:
    """Read and decode a program model document, returning the model or an error."""
    try:
        text: str = file.read_text(encoding="utf-8")
    except OSError as e:
        return LoadResult(
            file=file,
            source=None,
            error=LoadErrorInfo(message=f"Cannot read file: {e}"),
        )
    except UnicodeDecodeError as e:
        return LoadResult(
            file=file,
            source=None,
            error=LoadErrorInfo(message=f"Encoding error: {e}"),
        )

    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        return LoadResult(
            file=file,
            source=None,
            error=LoadErrorInfo(message=f"Invalid JSON: {e.msg}", line=e.lineno, column=e.colno),
        )
    except RecursionError:
        return LoadResult(
            file=file,
            source=None,
            error=LoadErrorInfo(message="Invalid JSON: document is nested too deeply"),
        )

    try:
        source: SourceFile = parse_model(data, default_path=str(file))
    except ModelFormatError as e:
        return LoadResult(
            file=file,
            source=None,
            error=LoadErrorInfo(message=f"Invalid program model: {e}"),
        )
    except RecursionError:
        return LoadResult(
            file=file,
            source=None,
            error=LoadErrorInfo(message="Invalid program model: nesting too deep"),
        )

    return LoadResult(file=file, source=source, error=None)


def parse_model(data: Any, *, default_path: str) -> SourceFile:
    """Build a SourceFile from a decoded model document."""
    if not isinstance(data, dict):
        raise ModelFormatError("document must be an object")

    path: str = data.get("file", default_path)
    if not isinstance(path, str):
        raise ModelFormatError("`file` must be a string")

    raw_source: Any = data.get("source")
    if raw_source is not None and not isinstance(raw_source, str):
        raise ModelFormatError("`source` must be a string")
    source_lines: tuple[str, ...] = tuple(raw_source.splitlines()) if raw_source else ()

    decoder: _Decoder = _Decoder(path=path)
    module: Any = data.get("module")
    if not isinstance(module, dict) or module.get("kind") != "module":
        raise ModelFormatError("`module` must be a node of kind 'module'")

    return SourceFile(
        path=path,
        module=decoder.module(module),
        source_lines=source_lines,
    )


class _Decoder:
    """Decodes nodes, stamping every span with the document's file."""

    def __init__(self, *, path: str) -> None:
        self._path: str = path
        self._items: Final[dict[str, Callable[[dict[str, Any]], Item]]] = {
            "module": self.module,
            "impl": self.impl_block,
            "trait": self.trait,
            "enum": self.enum,
            "function": self.function,
            "import": self.import_,
        }
        self._exprs: Final[dict[str, Callable[[dict[str, Any]], Expr]]] = {
            "binary": self.binary,
            "method_call": self.method_call,
            "call": self.call,
            "path": self.path,
            "literal": self.literal,
            "opaque": self.opaque,
            "addr_of": self.addr_of,
            "vec": self.vec_macro,
            "block": self.block,
            "match": self.match,
            "for": self.for_loop,
        }

    # -- items --------------------------------------------------------------

    def item(self, data: Any) -> Item:
        kind: str = _kind(data)
        parser: Callable[[dict[str, Any]], Item] | None = self._items.get(kind)
        if parser is None:
            raise ModelFormatError(f"unknown declaration kind {kind!r}")
        return parser(data)

    def module(self, data: dict[str, Any]) -> Module:
        return Module(
            name=_string(data, "name", default="crate"),
            span=self.span(data.get("span")),
            children=tuple(self.item(c) for c in _list(data, "children")),
            attributes=self.attributes(data),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def impl_block(self, data: dict[str, Any]) -> ImplBlock:
        trait_name: Any = data.get("trait")
        if trait_name is not None and not isinstance(trait_name, str):
            raise ModelFormatError("`trait` must be a string")
        return ImplBlock(
            name=_string(data, "name"),
            span=self.span(data.get("span")),
            methods=tuple(
                self.function(_node(m, "function")) for m in _list(data, "methods")
            ),
            visibility=_visibility(data),
            trait_name=trait_name,
            children=tuple(self.item(c) for c in _list(data, "children")),
            attributes=self.attributes(data),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def trait(self, data: dict[str, Any]) -> TraitDef:
        return TraitDef(
            name=_string(data, "name"),
            span=self.span(data.get("span")),
            methods=tuple(
                self.function(_node(m, "function"), in_trait=True)
                for m in _list(data, "methods")
            ),
            visibility=_visibility(data),
            attributes=self.attributes(data),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def enum(self, data: dict[str, Any]) -> EnumDef:
        variants: list[Variant] = []
        for raw in _list(data, "variants"):
            if isinstance(raw, str):
                variants.append(Variant(name=raw, span=self.span(None)))
            elif isinstance(raw, dict):
                variants.append(Variant(
                    name=_string(raw, "name"),
                    span=self.span(raw.get("span")),
                ))
            else:
                raise ModelFormatError("enum variants must be strings or objects")
        return EnumDef(
            name=_string(data, "name"),
            span=self.span(data.get("span")),
            variants=tuple(variants),
            visibility=_visibility(data),
            attributes=self.attributes(data),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def function(self, data: dict[str, Any], *, in_trait: bool = False) -> FunctionSignature:
        receiver: ReceiverKind | None = None
        if "receiver" in data:
            try:
                receiver = ReceiverKind(data["receiver"])
            except ValueError:
                raise ModelFormatError(
                    f"unknown receiver kind {data['receiver']!r}"
                ) from None

        return_type: Any = data.get("return_type")
        if return_type is not None and not isinstance(return_type, str):
            raise ModelFormatError("`return_type` must be a string")

        body: tuple[Expr, ...] | None
        if "body" not in data:
            body = None if in_trait else ()
        elif data["body"] is None:
            body = None
        else:
            body = tuple(self.expr(e) for e in _list(data, "body"))

        params: list[Param] = []
        for raw in _list(data, "params"):
            if isinstance(raw, str):
                params.append(Param(name=raw))
            elif isinstance(raw, dict):
                params.append(Param(
                    name=_string(raw, "name"),
                    type_name=_optional_string(raw, "type"),
                ))
            else:
                raise ModelFormatError("params must be strings or objects")

        return FunctionSignature(
            name=_string(data, "name"),
            span=self.span(data.get("span")),
            visibility=_visibility(data),
            receiver=receiver,
            params=tuple(params),
            return_type=return_type,
            body=body,
            attributes=self.attributes(data),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def import_(self, data: dict[str, Any]) -> Import:
        return Import(
            name=_string(data, "name"),
            span=self.span(data.get("span")),
            is_extern=_flag(data, "extern"),
            attributes=self.attributes(data),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    # -- expressions --------------------------------------------------------

    def expr(self, data: Any) -> Expr:
        kind: str = _kind(data)
        parser: Callable[[dict[str, Any]], Expr] | None = self._exprs.get(kind)
        if parser is None:
            raise ModelFormatError(f"unknown expression kind {kind!r}")
        return parser(data)

    def binary(self, data: dict[str, Any]) -> BinaryOp:
        return BinaryOp(
            op=_string(data, "op"),
            left=self.expr(data.get("left")),
            right=self.expr(data.get("right")),
            span=self.span(data.get("span")),
            text=_optional_string(data, "text"),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def method_call(self, data: dict[str, Any]) -> MethodCall:
        return MethodCall(
            receiver=self.expr(data.get("receiver")),
            method=_string(data, "method"),
            span=self.span(data.get("span")),
            args=tuple(self.expr(a) for a in _list(data, "args")),
            receiver_type=_optional_string(data, "receiver_type"),
            text=_optional_string(data, "text"),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def call(self, data: dict[str, Any]) -> Call:
        return Call(
            callee=self.expr(data.get("callee")),
            span=self.span(data.get("span")),
            args=tuple(self.expr(a) for a in _list(data, "args")),
            text=_optional_string(data, "text"),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def path(self, data: dict[str, Any]) -> PathExpr:
        return PathExpr(
            segments=_segments(data),
            span=self.span(data.get("span")),
            text=_optional_string(data, "text"),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def literal(self, data: dict[str, Any]) -> Literal:
        value: Any = data.get("value")
        if value is not None and not isinstance(value, (int, float, str, bool)):
            raise ModelFormatError("literal `value` must be a scalar")
        return Literal(
            value=value,
            span=self.span(data.get("span")),
            text=_optional_string(data, "text"),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def opaque(self, data: dict[str, Any]) -> OpaqueExpr:
        return OpaqueExpr(
            span=self.span(data.get("span")),
            text=_optional_string(data, "text"),
            children=tuple(self.expr(c) for c in _list(data, "children")),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def addr_of(self, data: dict[str, Any]) -> AddrOf:
        return AddrOf(
            inner=self.expr(data.get("inner")),
            span=self.span(data.get("span")),
            mutable=_flag(data, "mutable"),
            adjusted_type=_optional_string(data, "adjusted_type"),
            text=_optional_string(data, "text"),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def vec_macro(self, data: dict[str, Any]) -> VecMacro:
        element: Expr | None = None
        length: Expr | None = None
        repeat: Any = data.get("repeat")
        if repeat is not None:
            if not isinstance(repeat, dict):
                raise ModelFormatError("`repeat` must be an object")
            if data.get("elements"):
                raise ModelFormatError("`vec!` cannot have both `elements` and `repeat`")
            element = self.expr(repeat.get("element"))
            length = self.expr(repeat.get("length"))

        element_is_copy: Any = data.get("element_is_copy")
        if element_is_copy is not None and not isinstance(element_is_copy, bool):
            raise ModelFormatError("`element_is_copy` must be a boolean")

        return VecMacro(
            span=self.span(data.get("span")),
            elements=tuple(self.expr(e) for e in _list(data, "elements")),
            repeat_element=element,
            repeat_length=length,
            element_is_copy=element_is_copy,
            text=_optional_string(data, "text"),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def block(self, data: dict[str, Any]) -> Block:
        return Block(
            exprs=tuple(self.expr(e) for e in _list(data, "exprs")),
            span=self.span(data.get("span")),
            text=_optional_string(data, "text"),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def match(self, data: dict[str, Any]) -> MatchExpr:
        raw_source: Any = data.get("source", "normal")
        try:
            source: MatchSource = MatchSource(raw_source)
        except ValueError:
            raise ModelFormatError(f"unknown match source {raw_source!r}") from None

        arms: list[MatchArm] = []
        for raw in _list(data, "arms"):
            if not isinstance(raw, dict):
                raise ModelFormatError("match arms must be objects")
            guard: Any = raw.get("guard")
            arms.append(MatchArm(
                patterns=tuple(self.pattern(p) for p in _list(raw, "patterns")),
                body=self.expr(raw.get("body")),
                span=self.span(raw.get("span")),
                guard=self.expr(guard) if guard is not None else None,
            ))

        return MatchExpr(
            scrutinee=self.expr(data.get("scrutinee")),
            span=self.span(data.get("span")),
            arms=tuple(arms),
            scrutinee_type=_optional_string(data, "scrutinee_type"),
            source=source,
            text=_optional_string(data, "text"),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def for_loop(self, data: dict[str, Any]) -> ForLoop:
        return ForLoop(
            pattern=self.pattern(data.get("pattern")),
            iterable=self.expr(data.get("iterable")),
            span=self.span(data.get("span")),
            body=tuple(self.expr(e) for e in _list(data, "body")),
            text=_optional_string(data, "text"),
            overrides=self.directives(data),
            from_expansion=_flag(data, "from_expansion"),
        )

    def pattern(self, data: Any) -> Pattern:
        kind: str = _kind(data)
        try:
            pattern_kind: PatternKind = PatternKind(kind)
        except ValueError:
            raise ModelFormatError(f"unknown pattern kind {kind!r}") from None

        subpatterns: list[Any] = _list(data, "subpatterns")
        if "inner" in data:
            subpatterns = [data["inner"]]

        return Pattern(
            kind=pattern_kind,
            span=self.span(data.get("span")),
            text=_optional_string(data, "text"),
            value=_scalar(data, "value"),
            low=_scalar(data, "low"),
            high=_scalar(data, "high"),
            inclusive=not _flag(data, "exclusive"),
            name=_optional_string(data, "name"),
            by_ref=_flag(data, "by_ref"),
            mutable=_flag(data, "mutable"),
            segments=_segments(data) if "segments" in data else (),
            subpatterns=tuple(self.pattern(p) for p in subpatterns),
        )

    # -- shared pieces ------------------------------------------------------

    def span(self, raw: Any) -> Span:
        if raw is None:
            return Span(file=self._path, start_line=1, start_col=1, end_line=1, end_col=1)
        if (
            not isinstance(raw, list)
            or len(raw) != 4
            or not all(isinstance(v, int) and not isinstance(v, bool) for v in raw)
        ):
            raise ModelFormatError(f"span must be four integers, got {raw!r}")
        start_line, start_col, end_line, end_col = raw
        return Span(
            file=self._path,
            start_line=start_line,
            start_col=start_col,
            end_line=end_line,
            end_col=end_col,
        )

    def directives(self, data: dict[str, Any]) -> tuple[OverrideDirective, ...]:
        result: list[OverrideDirective] = []
        for raw in _list(data, "overrides"):
            if not isinstance(raw, dict):
                raise ModelFormatError("overrides must be objects")
            level_name: str = _string(raw, "level")
            try:
                level: Level = Level(level_name.lower())
            except ValueError:
                valid: list[str] = [lv.value for lv in Level]
                raise ModelFormatError(
                    f"override level must be one of {valid}, got {level_name!r}"
                ) from None
            result.append(OverrideDirective(
                rule=_string(raw, "rule"),
                level=level,
                span=self.span(raw.get("span")),
                text=_optional_string(raw, "text"),
            ))
        return tuple(result)

    def attributes(self, data: dict[str, Any]) -> tuple[Attribute, ...]:
        result: list[Attribute] = []
        for raw in _list(data, "attributes"):
            if not isinstance(raw, dict):
                raise ModelFormatError("attributes must be objects")
            args: list[Any] = _list(raw, "args")
            values: Any = raw.get("values", {})
            if not isinstance(values, dict):
                raise ModelFormatError("attribute `values` must be an object")
            result.append(Attribute(
                name=_string(raw, "name"),
                span=self.span(raw.get("span")),
                args=tuple(str(a) for a in args),
                values=tuple((str(k), str(v)) for k, v in values.items()),
            ))
        return tuple(result)


def _kind(data: Any) -> str:
    if not isinstance(data, dict):
        raise ModelFormatError(f"node must be an object, got {type(data).__name__}")
    kind: Any = data.get("kind")
    if not isinstance(kind, str):
        raise ModelFormatError("node is missing `kind`")
    return kind


def _node(data: Any, kind: str) -> dict[str, Any]:
    """Accept a node of `kind`; `kind` may be omitted where it is implied."""
    if not isinstance(data, dict):
        raise ModelFormatError(f"{kind} must be an object")
    if data.get("kind", kind) != kind:
        raise ModelFormatError(f"expected a {kind}, got {data.get('kind')!r}")
    return data


def _list(data: dict[str, Any], key: str) -> list[Any]:
    value: Any = data.get(key, [])
    if not isinstance(value, list):
        raise ModelFormatError(f"`{key}` must be a list")
    return value


def _string(data: dict[str, Any], key: str, *, default: str | None = None) -> str:
    value: Any = data.get(key, default)
    if not isinstance(value, str):
        raise ModelFormatError(f"`{key}` must be a string")
    return value


def _optional_string(data: dict[str, Any], key: str) -> str | None:
    value: Any = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ModelFormatError(f"`{key}` must be a string")
    return value


def _flag(data: dict[str, Any], key: str) -> bool:
    value: Any = data.get(key, False)
    if not isinstance(value, bool):
        raise ModelFormatError(f"`{key}` must be a boolean")
    return value


def _visibility(data: dict[str, Any]) -> Visibility:
    raw: Any = data.get("visibility", "private")
    try:
        return Visibility(raw)
    except ValueError:
        raise ModelFormatError(f"unknown visibility {raw!r}") from None


def _segments(data: dict[str, Any]) -> tuple[str, ...]:
    segments: Any = data.get("segments")
    if not isinstance(segments, list) or not all(isinstance(s, str) for s in segments):
        raise ModelFormatError("`segments` must be a list of strings")
    return tuple(segments)


def _scalar(data: dict[str, Any], key: str) -> int | float | str | bool | None:
    value: Any = data.get(key)
    if value is not None and not isinstance(value, (int, float, str, bool)):
        raise ModelFormatError(f"`{key}` must be a scalar")
    return value
