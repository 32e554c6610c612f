"""
compliance_engine/version.py

VersionComparer — package version precedence.
─────────────────────────────────────────────
Understands the version strings found in contrib `.info.yml` files and in
the QA policy feed:

    1.5              plain numeric release
    8.x-1.5          release with a Drupal core-compatibility prefix
    2.0.0-beta3      pre-release
    1.0-rc1, 1.0rc1  separators are optional
    3.1+pl2          patch level (ranks above the release)

Precedence of suffix tokens:

    dev < alpha (a) < beta (b) < rc < <release> < pl (p)

Anything else (empty strings, None, dev branches such as `1.x-dev`, free
text) is "unknown". Unknown versions never raise: they rank below every
well-formed version, and the result carries an `unknown` flag so the caller
can report the package instead of treating it as equal or outdated.
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple


class Ordering(IntEnum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


# Suffix ranks. RELEASE is the implicit token of a version without suffix.
_DEV, _ALPHA, _BETA, _RC, _RELEASE, _PATCH = range(6)

_SUFFIX_RANKS = {
    "dev": _DEV,
    "alpha": _ALPHA,
    "a": _ALPHA,
    "beta": _BETA,
    "b": _BETA,
    "rc": _RC,
    "pl": _PATCH,
    "p": _PATCH,
}

# Longest labels first so that "alpha" is not read as "a" + "lpha".
_LABELS = "dev|alpha|beta|rc|pl|a|b|p"

_CORE_PREFIX_RE = re.compile(r"^\d+\.x-", re.IGNORECASE)
_VERSION_RE = re.compile(
    rf"^v?(?P<release>\d+(?:\.\d+)*)(?P<suffix>(?:[-_.+]?(?:{_LABELS})\.?\d*)*)$",
    re.IGNORECASE,
)
_SUFFIX_TOKEN_RE = re.compile(rf"(?P<label>{_LABELS})\.?(?P<number>\d*)", re.IGNORECASE)

VersionKey = Tuple[Tuple[int, ...], Tuple[Tuple[int, int], ...]]


@dataclass(frozen=True)
class VersionComparison:
    """
    Result of comparing two version strings.

    Attributes:
        ordering      : How the left operand ranks against the right one.
        left_unknown  : The left operand was absent or malformed.
        right_unknown : The right operand was absent or malformed.
    """
    ordering: Ordering
    left_unknown: bool = False
    right_unknown: bool = False

    @property
    def unknown(self) -> bool:
        return self.left_unknown or self.right_unknown


def parse_version(version: Optional[str]) -> Optional[VersionKey]:
    """
    Turn a version string into a sortable key, or None when it is unknown.

    The key is (release segments without trailing zeros, suffix tokens),
    where each suffix token is (rank, number). The suffix always ends with
    an implicit release token, so `1.0-beta1-dev` sorts below `1.0-beta1`.
    """
    if version is None:
        return None
    text = str(version).strip()
    if not text:
        return None

    text = _CORE_PREFIX_RE.sub("", text, count=1)
    match = _VERSION_RE.match(text)
    if match is None:
        return None

    release = [int(part) for part in match.group("release").split(".")]
    while len(release) > 1 and release[-1] == 0:
        release.pop()

    suffix = tuple(
        (_SUFFIX_RANKS[token.group("label").lower()], int(token.group("number") or 0))
        for token in _SUFFIX_TOKEN_RE.finditer(match.group("suffix"))
    ) + ((_RELEASE, 0),)

    return tuple(release), suffix


def is_well_formed(version: Optional[str]) -> bool:
    return parse_version(version) is not None


def compare(left: Optional[str], right: Optional[str]) -> VersionComparison:
    """
    Compare two version strings.

    Well-formed versions are compared by precedence. An unknown version is
    LESS than any well-formed one; two unknown versions are EQUAL. In both
    cases the returned comparison flags which side was unknown.
    """
    left_key = parse_version(left)
    right_key = parse_version(right)

    if left_key is None or right_key is None:
        if left_key is None and right_key is None:
            ordering = Ordering.EQUAL
        elif left_key is None:
            ordering = Ordering.LESS
        else:
            ordering = Ordering.GREATER
        return VersionComparison(
            ordering=ordering,
            left_unknown=left_key is None,
            right_unknown=right_key is None,
        )

    if left_key < right_key:
        return VersionComparison(Ordering.LESS)
    if left_key > right_key:
        return VersionComparison(Ordering.GREATER)
    return VersionComparison(Ordering.EQUAL)
