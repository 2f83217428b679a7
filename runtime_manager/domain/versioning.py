"""
Semantic version helpers: parsing, release trains and exact pre-release matching.

Versions and range matching come from ``semantic_version``. Requirements are
parsed here into individual comparators so that the pre-release identifier of
each comparator can be compared on its own, which ``SimpleSpec`` does not expose.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional, Sequence

from semantic_version import SimpleSpec, Version

from runtime_manager.core.errors import InvalidRequirementError, InvalidVersionError


class ReleaseTrain(str, Enum):
    STABLE = "stable"
    NIGHTLY = "nightly"
    INTERNAL = "internal"

    def __str__(self) -> str:
        return self.value


NIGHTLY_TOKEN = "nightly"

_COMPARATOR_RE = re.compile(
    r"""^
    (?P<op>>=|<=|=|>|<|\^|~)?
    \s*
    (?P<major>\d+|[xX*])
    (?:\.(?P<minor>\d+|[xX*]))?
    (?:\.(?P<patch>\d+|[xX*]))?
    (?:-(?P<pre>[0-9A-Za-z.-]+))?
    (?:\+(?P<build>[0-9A-Za-z.-]+))?
    $""",
    re.VERBOSE,
)
_WILDCARDS = ("x", "X", "*")


def parse_version(value: str) -> Version:
    """Parse a full ``major.minor.patch[-pre][+build]`` version."""
    try:
        return Version(value.strip())
    except (ValueError, AttributeError):
        raise InvalidVersionError(str(value))


def try_parse_version(value: str) -> Optional[Version]:
    try:
        return parse_version(value)
    except InvalidVersionError:
        return None


def prerelease_of(version: Version) -> str:
    """Return the dotted pre-release identifier, or an empty string."""
    return ".".join(version.prerelease)


def classify_prerelease(prerelease: str) -> ReleaseTrain:
    if not prerelease:
        return ReleaseTrain.STABLE
    if NIGHTLY_TOKEN in prerelease:
        return ReleaseTrain.NIGHTLY
    return ReleaseTrain.INTERNAL


def classify(version: Version) -> ReleaseTrain:
    return classify_prerelease(prerelease_of(version))


class Comparator:
    """
    A single constraint of a requirement, e.g. ``>=1.2.0`` or ``=0.3.0-nightly-2023-09-01``.

    Operators follow Cargo: a bare version means caret, ``=`` means exact.
    """

    def __init__(self, op: str, release: str, prerelease: str = ""):
        self.op = op
        self.release = release
        self.prerelease = prerelease
        self._spec = self._build_spec()

    @classmethod
    def parse(cls, text: str) -> "Comparator":
        raw = text.strip()
        match = _COMPARATOR_RE.match(raw)
        if not match:
            raise InvalidRequirementError(raw, "unrecognized comparator")

        parts = [match.group("major"), match.group("minor"), match.group("patch")]
        parts = [p for p in parts if p is not None]
        wildcard = any(p in _WILDCARDS for p in parts)
        prerelease = match.group("pre") or ""

        if wildcard and prerelease:
            raise InvalidRequirementError(raw, "wildcards cannot carry a pre-release")
        if prerelease and len(parts) < 3:
            raise InvalidRequirementError(raw, "a pre-release requires major.minor.patch")

        op = match.group("op") or ""
        if wildcard and op:
            raise InvalidRequirementError(raw, "wildcards cannot be combined with an operator")

        release = ".".join("*" if p in _WILDCARDS else p for p in parts)
        return cls(op=op, release=release, prerelease=prerelease)

    def _build_spec(self) -> SimpleSpec:
        if self.op == "":
            op = "" if "*" in self.release else "^"
        elif self.op == "=":
            op = "=="
        else:
            op = self.op
        try:
            return SimpleSpec(f"{op}{self.release}")
        except ValueError as e:
            raise InvalidRequirementError(str(self), str(e))

    def matches_exact(self, version: Version) -> bool:
        candidate_pre = prerelease_of(version)
        if self.prerelease or candidate_pre:
            return self._spec.match(version.truncate()) and self.prerelease == candidate_pre
        return self._spec.match(version)

    def __str__(self) -> str:
        suffix = f"-{self.prerelease}" if self.prerelease else ""
        return f"{self.op}{self.release}{suffix}"

    def __repr__(self) -> str:
        return f"Comparator({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Comparator):
            return NotImplemented
        return (self.op, self.release, self.prerelease) == (other.op, other.release, other.prerelease)


class VersionRequirement:
    """A comma separated list of comparators that must all hold."""

    def __init__(self, comparators: Sequence[Comparator] = ()):
        self.comparators: List[Comparator] = list(comparators)

    @classmethod
    def parse(cls, text: str) -> "VersionRequirement":
        if text is None:
            raise InvalidRequirementError("None")
        stripped = text.strip()
        if stripped == "*":
            return cls()
        if not stripped:
            raise InvalidRequirementError(text, "empty requirement")
        pieces = [piece.strip() for piece in stripped.split(",")]
        if any(not piece for piece in pieces):
            raise InvalidRequirementError(text, "empty comparator")
        return cls([Comparator.parse(piece) for piece in pieces])

    def __str__(self) -> str:
        if not self.comparators:
            return "*"
        return ", ".join(str(c) for c in self.comparators)

    def __repr__(self) -> str:
        return f"VersionRequirement({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRequirement):
            return NotImplemented
        return self.comparators == other.comparators


def matches_exact(requirement: VersionRequirement, version: Version) -> bool:
    """
    Match ``version`` against ``requirement`` with exact pre-release semantics.

    When either a comparator or the version carries a pre-release identifier, the
    comparator only holds if the release numbers satisfy it and both identifiers
    are the same string. An empty requirement matches stable versions only.
    """
    if not requirement.comparators:
        return not version.prerelease
    return all(c.matches_exact(version) for c in requirement.comparators)


def classify_requirement(requirement: VersionRequirement) -> ReleaseTrain:
    if not requirement.comparators:
        return ReleaseTrain.STABLE
    return classify_prerelease(requirement.comparators[0].prerelease)
