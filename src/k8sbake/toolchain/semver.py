"""
Semantic version ranges.

Implements the npm-style range grammar users write in version inputs (caret,
tilde, x-ranges, comparators, hyphen ranges and `||` alternatives) on top of
`packaging.version.Version` ordering.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from packaging.version import InvalidVersion, Version

from k8sbake.exceptions import VersionError

_WILDCARDS = frozenset({"x", "X", "*"})
_OPERATOR_SPACING = re.compile(r"(<=|>=|<|>|=|\^|~>|~)\s+")
_HYPHEN = re.compile(r"^\s*(\S+)\s+-\s+(\S+)\s*$")
_COMPARATOR = re.compile(r"^(<=|>=|<|>|=|\^|~>|~)?\s*(.*)$")
_PARTIAL = re.compile(
    r"^[vV]?(?P<major>\d+|[xX*])"
    r"(?:\.(?P<minor>\d+|[xX*])"
    r"(?:\.(?P<patch>\d+|[xX*])"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?"
    r"(?:\+[0-9A-Za-z.-]+)?)?)?$"
)
_RANGE_MARKERS = ("^", "~", "<", ">", "*", "||")

_ZERO = Version("0.0.0")

Partial = Tuple[Optional[int], Optional[int], Optional[int], Optional[str]]


def parse_version(value: str) -> Optional[Version]:
    """
    Parse a release tag or version string, tolerating a leading "v" or "=".

    Returns:
        Optional[Version]: The parsed version, or None when it is not a version.
    """
    if not value:
        return None
    cleaned = value.strip().lstrip("=").strip()
    try:
        return Version(cleaned)
    except InvalidVersion:
        return None


def has_range_marker(token: str) -> bool:
    """
    Return True when `token` uses range syntax.

    Plain versions like "v3.0.0" or "3.0.0" carry no marker; "^3", "~1.2",
    ">=1.0.0 <2", "3.x", "*", "1.0.0 - 2.0.0" and "^3 || ^4" do.
    """
    if not token:
        return False
    if any(marker in token for marker in _RANGE_MARKERS):
        return True
    if _HYPHEN.match(token):
        return True
    for word in token.split():
        segments = word.lstrip("=vV").split("-")[0].split(".")
        if any(segment in _WILDCARDS for segment in segments):
            return True
    return False


def _parse_partial(text: str, source: str) -> Partial:
    match = _PARTIAL.match(text)
    if not match:
        raise VersionError(f"Invalid version in range: {text!r}", value=source)

    def number(group: str) -> Optional[int]:
        raw = match.group(group)
        if raw is None or raw in _WILDCARDS:
            return None
        return int(raw)

    major, minor, patch = number("major"), number("minor"), number("patch")
    # Anything after a wildcard is a wildcard too ("1.x.3" means "1.x").
    if major is None:
        minor = patch = None
    elif minor is None:
        patch = None
    pre = match.group("pre") if patch is not None else None
    return major, minor, patch, pre


def _version(
    major: int, minor: int = 0, patch: int = 0, pre: Optional[str] = None
) -> Version:
    text = f"{major}.{minor}.{patch}"
    if pre:
        text = f"{text}-{pre}"
    try:
        return Version(text)
    except InvalidVersion as e:
        raise VersionError(f"Invalid prerelease identifier: {pre!r}", value=text) from e


@dataclass(frozen=True)
class Comparator:
    """A single `<op> <version>` bound."""

    operator: str
    version: Version

    def test(self, version: Version) -> bool:
        if self.operator == ">=":
            return version >= self.version
        if self.operator == ">":
            return version > self.version
        if self.operator == "<=":
            return version <= self.version
        if self.operator == "<":
            return version < self.version
        return version == self.version

    def __str__(self) -> str:
        return f"{self.operator}{self.version}"


_NEVER = Comparator("<", _ZERO)


def _lower_upper(lower: Version, upper: Optional[Version]) -> List[Comparator]:
    comparators = [Comparator(">=", lower)]
    if upper is not None:
        comparators.append(Comparator("<", upper))
    return comparators


def _x_range(partial: Partial) -> List[Comparator]:
    major, minor, patch, pre = partial
    if major is None:
        return []
    if minor is None:
        return _lower_upper(_version(major), _version(major + 1))
    if patch is None:
        return _lower_upper(_version(major, minor), _version(major, minor + 1))
    return [Comparator("==", _version(major, minor, patch, pre))]


def _caret(partial: Partial) -> List[Comparator]:
    major, minor, patch, pre = partial
    if major is None:
        return []
    lower = _version(major, minor or 0, patch or 0, pre)
    if major > 0 or minor is None:
        upper = _version(major + 1)
    elif minor > 0 or patch is None:
        upper = _version(0, minor + 1)
    else:
        upper = _version(0, 0, patch + 1)
    return _lower_upper(lower, upper)


def _tilde(partial: Partial) -> List[Comparator]:
    major, minor, patch, pre = partial
    if major is None:
        return []
    lower = _version(major, minor or 0, patch or 0, pre)
    if minor is None:
        return _lower_upper(lower, _version(major + 1))
    return _lower_upper(lower, _version(major, minor + 1))


def _primitive(operator: str, partial: Partial) -> List[Comparator]:
    major, minor, patch, pre = partial
    if major is None:
        # ">=*" and "<=*" match anything, "<*" and ">*" match nothing.
        return [] if operator in (">=", "<=") else [_NEVER]
    if patch is not None:
        return [Comparator(operator, _version(major, minor, patch, pre))]

    if operator == ">=":
        return [Comparator(">=", _version(major, minor or 0))]
    if operator == "<":
        return [Comparator("<", _version(major, minor or 0))]
    if minor is None:
        bumped = _version(major + 1)
    else:
        bumped = _version(major, minor + 1)
    # ">1.2" is ">=1.3.0", "<=1.2" is "<1.3.0".
    return [Comparator(">=" if operator == ">" else "<", bumped)]


def _parse_comparator(text: str, source: str) -> List[Comparator]:
    match = _COMPARATOR.match(text)
    operator, rest = match.group(1) or "", match.group(2)
    partial = _parse_partial(rest, source)
    if operator == "^":
        return _caret(partial)
    if operator in ("~", "~>"):
        return _tilde(partial)
    if operator in ("", "="):
        return _x_range(partial)
    return _primitive(operator, partial)


def _parse_hyphen(low: str, high: str, source: str) -> List[Comparator]:
    lower = _parse_partial(low, source)
    upper = _parse_partial(high, source)
    comparators: List[Comparator] = []
    if lower[0] is not None:
        comparators.append(
            Comparator(">=", _version(lower[0], lower[1] or 0, lower[2] or 0, lower[3]))
        )
    major, minor, patch, pre = upper
    if major is not None:
        if minor is None:
            comparators.append(Comparator("<", _version(major + 1)))
        elif patch is None:
            comparators.append(Comparator("<", _version(major, minor + 1)))
        else:
            comparators.append(Comparator("<=", _version(major, minor, patch, pre)))
    return comparators


class SemverRange:
    """
    A parsed range: a union of comparator sets.

    A version satisfies the range when every comparator of at least one set
    holds. Pre-release versions never satisfy a range.
    """

    def __init__(self, raw: str, comparator_sets: List[List[Comparator]]):
        self.raw = raw
        self.comparator_sets = comparator_sets

    @classmethod
    def parse(cls, expression: str) -> "SemverRange":
        """
        Parse a range expression.

        Raises:
            VersionError: If any part of the expression is not valid range syntax.
        """
        if expression is None or not expression.strip():
            raise VersionError("Empty version range", value=expression)

        sets: List[List[Comparator]] = []
        for alternative in expression.split("||"):
            alternative = alternative.strip()
            if not alternative:
                sets.append([])
                continue
            hyphen = _HYPHEN.match(alternative)
            if hyphen:
                sets.append(_parse_hyphen(hyphen.group(1), hyphen.group(2), expression))
                continue
            comparators: List[Comparator] = []
            for part in _OPERATOR_SPACING.sub(r"\1", alternative).split():
                comparators.extend(_parse_comparator(part, expression))
            sets.append(comparators)
        return cls(expression, sets)

    def contains(self, version: Version) -> bool:
        if version.is_prerelease:
            return False
        return any(
            all(comparator.test(version) for comparator in comparators)
            for comparators in self.comparator_sets
        )

    def satisfies(self, value: str) -> bool:
        """Return True when the version string `value` falls inside this range."""
        version = parse_version(value)
        return version is not None and self.contains(version)

    def max_satisfying(self, candidates: Iterable[str]) -> Optional[str]:
        """
        Return the highest candidate inside this range, as originally spelled.

        Candidates that are not versions, or are pre-releases, are ignored.
        """
        best: Optional[Tuple[Version, str]] = None
        for candidate in candidates:
            version = parse_version(candidate)
            if version is None or not self.contains(version):
                continue
            if best is None or version > best[0]:
                best = (version, candidate)
        return best[1] if best else None

    def __str__(self) -> str:
        return " || ".join(
            " ".join(str(c) for c in comparators) or "*"
            for comparators in self.comparator_sets
        )

    def __repr__(self) -> str:
        return f"SemverRange({self.raw!r})"


def is_valid_range(expression: str) -> bool:
    try:
        SemverRange.parse(expression)
    except VersionError:
        return False
    return True
