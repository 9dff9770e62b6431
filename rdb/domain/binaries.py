"""
Allow-list normalization of binary download URLs.

A :class:`BinaryURLResolver` holds an immutable table of
``(pattern, transform)`` rules built once at startup. Rules are tried in
order and the first match decides the stored URL.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Tuple

from rdb.core.errors import ValidationError

BINARY_URL_ERROR = "binary URL must be a Google Drive file, GitHub release asset, or Discord attachment"

DEFAULT_GITHUB_OWNERS: Tuple[str, ...] = ("Dual-Iron",)


def _drive_direct(match: re.Match[str]) -> str:
    return f"https://drive.google.com/uc?export=download&id={match.group('id')}"


def _matched_substring(match: re.Match[str]) -> str:
    return match.group(0)


@dataclass(frozen=True)
class BinaryRule:
    name: str
    pattern: re.Pattern[str]
    transform: Callable[[re.Match[str]], str]


def build_rules(github_owners: Iterable[str] = DEFAULT_GITHUB_OWNERS) -> Tuple[BinaryRule, ...]:
    """
    Build the rule table. Order matters: the first matching rule wins.
    """
    owners = "|".join(re.escape(owner) for owner in github_owners)
    rules = [
        BinaryRule(
            "drive-file",
            re.compile(r"https://drive\.google\.com/file/d/(?P<id>[^/?#]+)"),
            _drive_direct,
        ),
        BinaryRule(
            "drive-direct",
            re.compile(r"https://drive\.google\.com/uc\?export=download&id=[^/&#]+"),
            _matched_substring,
        ),
    ]
    if owners:
        rules.append(
            BinaryRule(
                "github-release",
                re.compile(rf"https://github\.com/(?:{owners})/.+/.+/download/.+?/[^/]+"),
                _matched_substring,
            )
        )
    rules.append(
        BinaryRule(
            "discord-attachment",
            re.compile(r"https://cdn\.discordapp\.com/attachments/[0-9]+/[0-9]+/[^/]+"),
            _matched_substring,
        )
    )
    return tuple(rules)


class BinaryURLResolver:
    def __init__(self, rules: Tuple[BinaryRule, ...] | None = None):
        self._rules = rules if rules is not None else build_rules()

    @property
    def rules(self) -> Tuple[BinaryRule, ...]:
        return self._rules

    def resolve(self, url: str) -> str:
        """
        Return the canonical stored form of ``url``.

        Raises ValidationError if no allow-listed host matches.
        """
        for rule in self._rules:
            match = rule.pattern.search(url)
            if match is not None:
                return rule.transform(match)
        raise ValidationError(BINARY_URL_ERROR)

    def resolve_all(self, urls: Iterable[str]) -> list[str]:
        """Resolve every URL; a single failure rejects the whole list."""
        return [self.resolve(url) for url in urls]
