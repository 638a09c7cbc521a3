"""Constants and enums for idiomguard configuration."""
from __future__ import annotations

from enum import Enum
from typing import Final

__version__: Final[str] = "0.1.0"


class Level(Enum):
    """Lint levels, ordered allow < warn < deny < forbid."""

    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"
    FORBID = "forbid"

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]

    @property
    def is_blocking(self) -> bool:
        """Return True for levels that fail a run."""
        return self.rank >= _LEVEL_RANKS[Level.DENY]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.rank >= other.rank


_LEVEL_RANKS: Final[dict[Level, int]] = {
    Level.ALLOW: 0,
    Level.WARN: 1,
    Level.DENY: 2,
    Level.FORBID: 3,
}


class OutputFormat(Enum):
    """Output format options."""

    TEXT = "text"
    JSON = "json"
    GITHUB = "github"


class ColorMode(Enum):
    """Color output modes."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


class Category(Enum):
    """Lint categories usable as override directive targets."""

    STYLE = "style"
    PEDANTIC = "pedantic"
    PERF = "perf"
    CORRECTNESS = "correctness"


WILDCARD_RULE: Final[str] = "all"

LEN_WITHOUT_IS_EMPTY: Final[str] = "len_without_is_empty"
LEN_ZERO: Final[str] = "len_zero"
ENUM_VARIANT_NAMES: Final[str] = "enum_variant_names"
PUB_ENUM_VARIANT_NAMES: Final[str] = "pub_enum_variant_names"
INLINE_ALWAYS: Final[str] = "inline_always"
DEPRECATED_SEMVER: Final[str] = "deprecated_semver"
USELESS_ATTRIBUTE: Final[str] = "useless_attribute"
USELESS_VEC: Final[str] = "useless_vec"
SINGLE_MATCH: Final[str] = "single_match"
SINGLE_MATCH_ELSE: Final[str] = "single_match_else"
MATCH_REF_PATS: Final[str] = "match_ref_pats"
MATCH_BOOL: Final[str] = "match_bool"
MATCH_OVERLAPPING_ARM: Final[str] = "match_overlapping_arm"

RULE_IDS: Final[frozenset[str]] = frozenset({
    LEN_WITHOUT_IS_EMPTY,    # Public `len` without `is_empty`
    LEN_ZERO,                # `x.len() == 0` instead of `x.is_empty()`
    ENUM_VARIANT_NAMES,      # Variants repeating the enum name or a shared prefix
    PUB_ENUM_VARIANT_NAMES,  # Same, for public enums
    INLINE_ALWAYS,           # `#[inline(always)]` on non-trivial functions
    DEPRECATED_SEMVER,       # `#[deprecated(since = "x")]` with non-semver x
    USELESS_ATTRIBUTE,       # Lint attributes on imports
    USELESS_VEC,             # `&vec![..]` where a slice would do
    SINGLE_MATCH,            # Two-arm match better written as `if let`
    SINGLE_MATCH_ELSE,       # Same, when the other arm is a block
    MATCH_REF_PATS,          # Every pattern prefixed with `&`
    MATCH_BOOL,              # `match` on a boolean
    MATCH_OVERLAPPING_ARM,   # Integer ranges of two arms overlap
})

CONFIG_UNKNOWN_LINT_CODE: Final[str] = "CFG001"
CONFIG_FORBID_CODE: Final[str] = "CFG002"
CONFIG_UNKNOWN_RULE_CODE: Final[str] = "CFG003"
INTERNAL_ERROR_CODE: Final[str] = "ICE001"
MODEL_ERROR_CODE: Final[str] = "MDL001"

DEFAULT_LENGTH_METHODS: Final[tuple[str, ...]] = ("len", "length")
DEFAULT_EMPTINESS_METHOD: Final[str] = "is_empty"
DEFAULT_MIN_PREFIX_LENGTH: Final[int] = 3

INTEGER_TYPES: Final[frozenset[str]] = frozenset({
    "int", "integer", "usize", "isize",
    "u8", "u16", "u32", "u64", "u128",
    "i8", "i16", "i32", "i64", "i128",
})
BOOLEAN_TYPES: Final[frozenset[str]] = frozenset({"bool", "boolean"})

DEFAULT_EXCLUDES: Final[tuple[str, ...]] = (
    "**/.*",
    "**/.git/**",
    "**/node_modules/**",
    "build/**",
    "dist/**",
    "target/**",
)

# Lints owned by the host compiler; directives naming them are accepted
# and have no effect on idiomguard lints.
HOST_LINTS: Final[frozenset[str]] = frozenset({
    "dead_code",
    "deprecated",
    "missing_docs",
    "unknown_lints",
    "unused",
    "unused_imports",
    "unused_variables",
})
