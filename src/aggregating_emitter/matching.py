"""Segment matchers and the pattern filter that composes them.

Event names and patterns are split on ``.`` into segments. A pattern matches
a name only when both have the same number of segments and every pair of
segments satisfies at least one configured matcher. Matchers are symmetric,
so an emitted name may itself carry wildcards or list options.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable

from .protocols import NAMESPACE_DELIMITER, SegmentMatcher

WILDCARD = "*"


@functools.lru_cache(maxsize=1024)
def _wildcard_regex(segment: str) -> re.Pattern[str]:
    """Compile ``segment`` so that each ``*`` matches any substring."""
    return re.compile(".*".join(re.escape(part) for part in segment.split(WILDCARD)))


def _list_options(segment: str) -> list[str]:
    if len(segment) >= 2 and segment.startswith("{") and segment.endswith("}"):
        return segment[1:-1].split(",")
    return []


def exact_matcher(left: str, right: str) -> bool:
    return left == right


def wildcard_matcher(left: str, right: str) -> bool:
    """Match ``*`` as a whole segment, or as "any substring" inside one."""
    if left == WILDCARD or right == WILDCARD:
        return True
    return (
        _wildcard_regex(left).fullmatch(right) is not None
        or _wildcard_regex(right).fullmatch(left) is not None
    )


def list_option_matcher(left: str, right: str) -> bool:
    """Match ``{a,b,c}`` against any one of its comma separated options."""
    return right in _list_options(left) or left in _list_options(right)


class PatternFilter:
    """Whole-name matcher composed from segment matchers.

    The matcher tuple is fixed at construction; :meth:`matches` never inspects
    anything but the two names it is given.
    """

    __slots__ = ("_matchers",)

    def __init__(self, matchers: Iterable[SegmentMatcher] = (exact_matcher,)):
        self._matchers: tuple[SegmentMatcher, ...] = tuple(matchers)
        if not self._matchers:
            raise ValueError("PatternFilter requires at least one segment matcher")

    @property
    def matchers(self) -> tuple[SegmentMatcher, ...]:
        return self._matchers

    def matches(self, candidate: str, pattern: str) -> bool:
        """Return True when every segment of ``candidate`` matches ``pattern``."""
        left_segments = candidate.split(NAMESPACE_DELIMITER)
        right_segments = pattern.split(NAMESPACE_DELIMITER)
        if len(left_segments) != len(right_segments):
            return False
        return all(
            any(matcher(left, right) for matcher in self._matchers)
            for left, right in zip(left_segments, right_segments)
        )

    __call__ = matches

    def __repr__(self) -> str:
        names = ", ".join(getattr(m, "__name__", repr(m)) for m in self._matchers)
        return f"{type(self).__name__}({names})"
