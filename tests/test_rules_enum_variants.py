"""Tests for enum_variant_names and pub_enum_variant_names."""
from __future__ import annotations

import pytest

from idiomguard.constants import Level
from idiomguard.diagnostics import Finding, Span
from idiomguard.model import EnumDef, Module, SourceFile, Variant, Visibility
from idiomguard.rules.base import CheckContext, LintInfo
from idiomguard.rules.enum_variants import (
    LINT,
    PUB_LINT,
    EnumVariantNamesRule,
    camel_case_from,
    camel_case_until,
    common_postfix,
    common_prefix,
)
from idiomguard.types import EnumVariantOptions, RuleOptions

RULE: EnumVariantNamesRule = EnumVariantNamesRule()


def _span(line: int) -> Span:
    return Span(file="lib.rs", start_line=line, start_col=5, end_line=line, end_col=15)


def _make_enum(
    name: str,
    variants: list[str],
    *,
    visibility: Visibility = Visibility.PRIVATE,
) -> EnumDef:
    return EnumDef(
        name=name,
        span=_span(1),
        variants=tuple(
            Variant(name=v, span=_span(i)) for i, v in enumerate(variants, start=2)
        ),
        visibility=visibility,
    )


def _check(enum: EnumDef, *, min_prefix_length: int = 3) -> list[Finding]:
    context: CheckContext = CheckContext(
        lint=RULE.select_lint(enum),
        level=Level.WARN,
        source=SourceFile(path="lib.rs", module=Module(name="crate", span=_span(1))),
        options=RuleOptions(
            enum_variants=EnumVariantOptions(min_prefix_length=min_prefix_length),
        ),
    )
    return RULE.check(node=enum, context=context)


class TestCamelCaseHelpers:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("", 0),
            ("abc", 0),
            ("Abc", 3),
            ("AbcDef", 6),
            ("ABCD", 0),
            ("AbcDD", 3),
            ("Abc1Def", 3),
        ],
    )
    def test_camel_case_until(self, name: str, expected: int) -> None:
        assert camel_case_until(name) == expected

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("", 0),
            ("Abc", 0),
            ("AbcDef", 0),
            ("ABCD", 4),
            ("abcDef", 3),
            ("AbcDD", 5),
        ],
    )
    def test_camel_case_from(self, name: str, expected: int) -> None:
        assert camel_case_from(name) == expected

    def test_common_prefix_whole_words(self) -> None:
        assert common_prefix(["FoodGood", "FoodMiddle", "FoodBad"]) == "Food"

    def test_common_prefix_stops_inside_word(self) -> None:
        assert common_prefix(["FoodBar", "Foodstuff"]) == ""

    def test_common_postfix(self) -> None:
        assert common_postfix(["RedColor", "BlueColor"]) == "Color"


class TestVariantRepeatsEnumName:
    def test_food_enum_reports_four_findings(self) -> None:
        enum: EnumDef = _make_enum("Food", ["FoodGood", "FoodMiddle", "FoodBad"])
        findings: list[Finding] = _check(enum)
        assert len(findings) == 4
        starts: list[Finding] = [
            f for f in findings if f.message == "Variant name starts with the enum's name"
        ]
        assert [f.span.start_line for f in starts] == [2, 3, 4]
        shared: list[Finding] = [f for f in findings if f.message.startswith("All variants")]
        assert len(shared) == 1
        assert shared[0].message == "All variants have the same prefix: `Food`"
        assert shared[0].span == enum.span
        assert shared[0].help == (
            "remove the prefixes and use full paths to the variants instead of glob imports"
        )

    def test_variant_ending_with_enum_name(self) -> None:
        findings: list[Finding] = _check(_make_enum("Food", ["Good", "BadFood"]))
        assert [f.message for f in findings] == ["Variant name ends with the enum's name"]
        assert findings[0].span.start_line == 3

    def test_variant_equal_to_enum_name_reported_once(self) -> None:
        findings: list[Finding] = _check(_make_enum("Food", ["Food", "Drink"]))
        assert [f.message for f in findings] == ["Variant name ends with the enum's name"]

    def test_name_continuing_into_lowercase_is_not_a_repeat(self) -> None:
        assert _check(_make_enum("Food", ["Foodstuff", "Drink"])) == []

    def test_single_variant_only_checks_enum_name(self) -> None:
        findings: list[Finding] = _check(_make_enum("Food", ["FoodGood"]))
        assert [f.message for f in findings] == ["Variant name starts with the enum's name"]

    def test_empty_enum(self) -> None:
        assert _check(_make_enum("Never", [])) == []


class TestSharedAffix:
    def test_stripped_prefix_gives_no_findings(self) -> None:
        assert _check(_make_enum("Food", ["Good", "Middle", "Bad"])) == []

    def test_shared_prefix_reported_once(self) -> None:
        findings: list[Finding] = _check(_make_enum("Event", ["OnClick", "OnHover", "OnDrag"]))
        # `On` is shorter than the minimum
        assert findings == []
        findings = _check(_make_enum("Event", ["MouseClick", "MouseHover", "MouseDrag"]))
        assert len(findings) == 1
        assert findings[0].message == "All variants have the same prefix: `Mouse`"

    def test_short_prefix_reported_with_lower_minimum(self) -> None:
        findings: list[Finding] = _check(
            _make_enum("Event", ["OnClick", "OnHover"]), min_prefix_length=2,
        )
        assert [f.message for f in findings] == ["All variants have the same prefix: `On`"]

    def test_shared_postfix_reported(self) -> None:
        findings: list[Finding] = _check(_make_enum("Paint", ["RedColor", "BlueColor"]))
        assert len(findings) == 1
        assert findings[0].message == "All variants have the same postfix: `Color`"
        assert findings[0].help is not None
        assert "postfixes" in findings[0].help

    def test_no_shared_words(self) -> None:
        assert _check(_make_enum("Shape", ["Circle", "Square", "Triangle"])) == []


class TestVisibility:
    def test_private_enum_uses_style_lint(self) -> None:
        enum: EnumDef = _make_enum("Food", ["FoodGood"])
        lint: LintInfo = RULE.select_lint(enum)
        assert lint is LINT
        assert lint.default_level == Level.WARN

    def test_public_enum_uses_pedantic_lint(self) -> None:
        enum: EnumDef = _make_enum("Food", ["FoodGood"], visibility=Visibility.PUBLIC)
        lint: LintInfo = RULE.select_lint(enum)
        assert lint is PUB_LINT
        assert lint.default_level == Level.ALLOW
        findings: list[Finding] = _check(enum)
        assert findings[0].rule_id == PUB_LINT.id
