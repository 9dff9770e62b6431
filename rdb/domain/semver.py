"""
Strict semantic version parsing and precedence (https://semver.org).

Only full ``MAJOR.MINOR.PATCH[-pre][+build]`` strings are accepted; leading
zeros in numeric identifiers are rejected. Build metadata is kept for
display but ignored for ordering.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Optional, Tuple

_IDENT = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"

SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9][0-9]*)"
    r"\.(?P<minor>0|[1-9][0-9]*)"
    r"\.(?P<patch>0|[1-9][0-9]*)"
    rf"(?:-(?P<prerelease>{_IDENT}(?:\.{_IDENT})*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@total_ordering
@dataclass(frozen=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...] = ()
    build: Tuple[str, ...] = ()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    def _prerelease_key(self) -> tuple:
        # Numeric identifiers sort below alphanumeric ones.
        return tuple((0, int(p)) if p.isdigit() else (1, p) for p in self.prerelease)

    def _cmp_key(self) -> tuple:
        # A release outranks any of its pre-releases.
        release_flag = 0 if self.prerelease else 1
        return (self.major, self.minor, self.patch, release_flag, self._prerelease_key())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._cmp_key() == other._cmp_key()

    def __hash__(self) -> int:
        return hash(self._cmp_key())

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._cmp_key() < other._cmp_key()


def parse_semver(raw: str) -> SemVer:
    """
    Parse ``raw`` into a :class:`SemVer`.

    Raises ValueError when the string is not a valid semantic version.
    """
    match = SEMVER_RE.fullmatch(raw)
    if match is None:
        raise ValueError(f"Invalid semantic version {raw!r}")

    prerelease = match.group("prerelease")
    build = match.group("build")
    return SemVer(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        prerelease=tuple(prerelease.split(".")) if prerelease else (),
        build=tuple(build.split(".")) if build else (),
    )


def try_parse_semver(raw: str) -> Optional[SemVer]:
    try:
        return parse_semver(raw)
    except ValueError:
        return None


def is_newer(candidate: str, current: str) -> bool:
    """
    True only when both strings parse and ``candidate`` has strictly higher precedence.
    """
    new = try_parse_semver(candidate)
    old = try_parse_semver(current)
    if new is None or old is None:
        return False
    return new > old
