"""Rule registry for idiomguard."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from functools import cache
from types import MappingProxyType
from typing import Final

from idiomguard.model import DeclKind
from idiomguard.rules import attrs, enum_variants, len_without_is_empty, len_zero, matches, vec
from idiomguard.rules.attrs import DeprecatedSemverRule, InlineAlwaysRule, UselessAttributeRule
from idiomguard.rules.base import LintInfo, Rule
from idiomguard.rules.enum_variants import EnumVariantNamesRule
from idiomguard.rules.len_without_is_empty import LenWithoutIsEmptyRule
from idiomguard.rules.len_zero import LenZeroRule
from idiomguard.rules.matches import (
    MatchBoolRule,
    MatchOverlappingArmRule,
    MatchRefPatsRule,
    SingleMatchRule,
)
from idiomguard.rules.vec import UselessVecRule

LINT_CATALOG: Final[tuple[LintInfo, ...]] = (
    len_without_is_empty.LINT,
    len_zero.LINT,
    enum_variants.LINT,
    enum_variants.PUB_LINT,
    attrs.INLINE_ALWAYS_LINT,
    attrs.DEPRECATED_SEMVER_LINT,
    attrs.USELESS_ATTRIBUTE_LINT,
    vec.LINT,
    matches.SINGLE_MATCH_LINT,
    matches.SINGLE_MATCH_ELSE_LINT,
    matches.MATCH_REF_PATS_LINT,
    matches.MATCH_BOOL_LINT,
    matches.MATCH_OVERLAPPING_ARM_LINT,
)


class RegistryError(Exception):
    """The rule set does not bind every lint to exactly one detector."""


@dataclass(frozen=True, slots=True)
class RuleRegistry:
    """Closed, read-only set of lints and the detectors bound to them."""

    rules: tuple[Rule, ...]
    catalog: MappingProxyType[str, LintInfo]

    def rules_for(self, kind: DeclKind) -> list[Rule]:
        """Detectors applicable to a declaration kind, in registration order."""
        return [rule for rule in self.rules if kind in rule.kinds]

    def lint(self, rule_id: str) -> LintInfo | None:
        return self.catalog.get(rule_id)


def build_registry(
    *,
    rules: Iterable[Rule],
    lints: Iterable[LintInfo],
) -> RuleRegistry:
    """Bind detectors to declared lints, rejecting unbound or unknown lints."""
    rule_list: tuple[Rule, ...] = tuple(rules)
    catalog: dict[str, LintInfo] = {}
    for info in lints:
        if info.id in catalog:
            raise RegistryError(f"lint `{info.id}` is declared twice")
        catalog[info.id] = info

    owners: dict[str, int] = {}
    for rule in rule_list:
        for info in rule.lints:
            if info.id not in catalog:
                raise RegistryError(
                    f"{type(rule).__name__} reports undeclared lint `{info.id}`"
                )
            owners[info.id] = owners.get(info.id, 0) + 1

    for lint_id in catalog:
        count: int = owners.get(lint_id, 0)
        if count == 0:
            raise RegistryError(f"the lint `{lint_id}` is not added to any rule")
        if count > 1:
            raise RegistryError(f"the lint `{lint_id}` is claimed by {count} rules")

    return RuleRegistry(rules=rule_list, catalog=MappingProxyType(catalog))


def _all_rules() -> list[Rule]:
    """Return all registered rule instances."""
    rules: list[Rule] = [
        LenWithoutIsEmptyRule(),
        LenZeroRule(),
        EnumVariantNamesRule(),
        InlineAlwaysRule(),
        DeprecatedSemverRule(),
        UselessAttributeRule(),
        UselessVecRule(),
        SingleMatchRule(),
        MatchRefPatsRule(),
        MatchBoolRule(),
        MatchOverlappingArmRule(),
    ]
    return rules


@cache
def default_registry() -> RuleRegistry:
    """The process-wide registry, built on first use."""
    return build_registry(rules=_all_rules(), lints=LINT_CATALOG)
