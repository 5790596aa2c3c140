"""Include/exclude display filters over packet summary text.

A filter specification is a ``;``-separated list of patterns::

    "TCP;!192.168.1.1"   # show TCP packets, except those mentioning 192.168.1.1

A leading ``!`` marks an exclude rule. Matching is a case-insensitive
substring test against the rendered summary line. Exclude rules always win;
when at least one include rule exists, a packet must match one of them.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

SPEC_SEPARATOR = ";"
EXCLUDE_MARKER = "!"


class FilterKind(enum.Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"


@dataclass(frozen=True)
class FilterRule:
    pattern: str
    kind: FilterKind = FilterKind.INCLUDE

    @cached_property
    def folded(self) -> str:
        return self.pattern.casefold()

    def matches(self, text: str) -> bool:
        return self.folded in text.casefold()

    @property
    def is_exclude(self) -> bool:
        return self.kind is FilterKind.EXCLUDE


def parse_filter_spec(spec: Optional[str]) -> Tuple[FilterRule, ...]:
    """Split a raw filter specification into an immutable rule tuple."""
    if not spec:
        return ()

    rules = []
    for piece in spec.split(SPEC_SEPARATOR):
        piece = piece.strip()
        if not piece:
            continue
        if piece.startswith(EXCLUDE_MARKER):
            pattern = piece[len(EXCLUDE_MARKER):].strip()
            if not pattern:
                logger.warning("Ignoring empty exclude rule in filter %r", spec)
                continue
            rules.append(FilterRule(pattern, FilterKind.EXCLUDE))
        else:
            rules.append(FilterRule(piece, FilterKind.INCLUDE))

    logger.debug("Parsed filter %r into %d rule(s)", spec, len(rules))
    return tuple(rules)


def should_display(text: str, rules: Sequence[FilterRule]) -> bool:
    """Return whether a summary line survives *rules*."""
    if not rules:
        return True

    if any(rule.matches(text) for rule in rules if rule.is_exclude):
        return False

    includes = [rule for rule in rules if not rule.is_exclude]
    if not includes:
        return True
    return any(rule.matches(text) for rule in includes)


__all__ = ["FilterKind", "FilterRule", "parse_filter_spec", "should_display"]
