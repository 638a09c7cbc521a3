"""enum_variant_names / pub_enum_variant_names: redundant variant naming.

Two independent checks run on every enum:

* each variant that starts or ends with the enum's own name is reported;
* when all variants share a camel-case word prefix (or postfix), the enum
  itself is reported once, suggesting qualified variant paths instead.

Public enums report under the pedantic `pub_enum_variant_names` lint,
everything else under `enum_variant_names`.
"""
from __future__ import annotations

from idiomguard.constants import (
    ENUM_VARIANT_NAMES,
    PUB_ENUM_VARIANT_NAMES,
    Category,
    Level,
)
from idiomguard.diagnostics import Finding
from idiomguard.model import DeclKind, EnumDef, Node
from idiomguard.rules.base import CheckContext, LintInfo

LINT: LintInfo = LintInfo(
    id=ENUM_VARIANT_NAMES,
    description="enums where all variants share a prefix/postfix, or variants "
    "that repeat the enum's name",
    default_level=Level.WARN,
    category=Category.STYLE,
)

PUB_LINT: LintInfo = LintInfo(
    id=PUB_ENUM_VARIANT_NAMES,
    description="public enums where all variants share a prefix/postfix, or "
    "variants that repeat the enum's name",
    default_level=Level.ALLOW,
    category=Category.PEDANTIC,
)


class EnumVariantNamesRule:
    """Detect variant names that repeat the enum name or a shared prefix."""

    @property
    def lints(self) -> tuple[LintInfo, ...]:
        return (LINT, PUB_LINT)

    @property
    def kinds(self) -> frozenset[DeclKind]:
        return frozenset({DeclKind.ENUM})

    def select_lint(self, node: Node) -> LintInfo:
        if isinstance(node, EnumDef) and node.is_public:
            return PUB_LINT
        return LINT

    def check(
        self,
        *,
        node: Node,
        context: CheckContext,
    ) -> list[Finding]:
        if not isinstance(node, EnumDef) or not node.variants:
            return []

        findings: list[Finding] = _check_variant_affixes(node=node, context=context)

        if len(node.variants) >= 2:
            shared: Finding | None = _check_shared_affix(node=node, context=context)
            if shared is not None:
                findings.append(shared)

        return findings


def camel_case_until(s: str) -> int:
    """Length of the longest prefix of `s` made of complete camel-case words."""
    if not s or not s[0].isupper():
        return 0
    up: bool = True
    last_i: int = 0
    for i, c in enumerate(s[1:], start=1):
        if up:
            if c.islower():
                up = False
            else:
                return last_i
        elif c.isupper():
            up = True
            last_i = i
        elif not c.islower():
            return i
    return last_i if up else len(s)


def camel_case_from(s: str) -> int:
    """Start index of the longest suffix of `s` made of complete camel-case words."""
    if not s or not s[-1].islower():
        return len(s)
    down: bool = True
    last_i: int = len(s)
    for i in range(len(s) - 2, -1, -1):
        c: str = s[i]
        if down:
            if c.isupper():
                down = False
                last_i = i
            elif not c.islower():
                return last_i
        elif c.islower():
            down = True
        else:
            return last_i
    return last_i


def common_prefix(names: list[str]) -> str:
    """Word-aligned prefix shared by all names."""
    first: str = names[0]
    pre: str = first[:camel_case_until(first)]
    for name in names:
        pre = pre[:_partial_match(pre, name)]
        pre = pre[:camel_case_until(pre)]
        # `Food` is not a word prefix of `Foodstuff`.
        while pre and len(name) > len(pre) and name[len(pre)].islower():
            pre = pre[:camel_case_until(pre[:-1])]
    return pre


def common_postfix(names: list[str]) -> str:
    """Word-aligned postfix shared by all names."""
    first: str = names[0]
    post: str = first[camel_case_from(first):]
    for name in names:
        matched: int = _partial_rmatch(post, name)
        post = post[len(post) - matched:]
        post = post[camel_case_from(post):]
    return post


def _partial_match(pre: str, name: str) -> int:
    count: int = 0
    for a, b in zip(pre, name):
        if a != b:
            break
        count += 1
    return count


def _partial_rmatch(post: str, name: str) -> int:
    count: int = 0
    for a, b in zip(reversed(post), reversed(name)):
        if a != b:
            break
        count += 1
    return count


def _check_variant_affixes(*, node: EnumDef, context: CheckContext) -> list[Finding]:
    findings: list[Finding] = []
    enum_name: str = node.name
    size: int = len(enum_name)
    if size == 0:
        return findings

    for variant in node.variants:
        name: str = variant.name
        if name == enum_name:
            # One finding for an exact match, not a starts-with and an ends-with.
            findings.append(context.finding(
                span=variant.span,
                message="Variant name ends with the enum's name",
            ))
            continue
        if name.startswith(enum_name) and not name[size].islower():
            findings.append(context.finding(
                span=variant.span,
                message="Variant name starts with the enum's name",
            ))
        if name.endswith(enum_name) and not enum_name[0].islower():
            findings.append(context.finding(
                span=variant.span,
                message="Variant name ends with the enum's name",
            ))
    return findings


def _check_shared_affix(*, node: EnumDef, context: CheckContext) -> Finding | None:
    names: list[str] = [v.name for v in node.variants]
    minimum: int = context.options.enum_variants.min_prefix_length

    what: str
    value: str
    prefix: str = common_prefix(names)
    postfix: str = common_postfix(names)
    if prefix and len(prefix) >= minimum:
        what, value = "pre", prefix
    elif postfix and len(postfix) >= minimum:
        what, value = "post", postfix
    else:
        return None

    return context.finding(
        span=node.span,
        message=f"All variants have the same {what}fix: `{value}`",
        help=f"remove the {what}fixes and use full paths to the variants "
        "instead of glob imports",
    )
