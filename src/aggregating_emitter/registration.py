"""Handler registration and storage.

This module contains the registry that owns an emitter's mutable state, the
entry type it stores, and the parser for lifecycle event keys.

CONTENTS:
- HandlerEntry: A registered handler plus its sort order
- ParsedEventKey / parse_event_key: ``[lifecycle:]<eventName>[:sortOrder]``
- HandlerRegistry: Pattern keyed storage with register/unregister

STORAGE LAYOUT:
    without lifecycles: _events[pattern] = [HandlerEntry, ...]
    with lifecycles:    _events[event_name][phase_index] = [HandlerEntry, ...]

Pattern keys keep the order in which they were first registered; resolution
relies on that order. Phase lists are kept sorted by ``(sort_order, sequence)``
so handlers with equal sort orders run in registration order.

THREAD SAFETY: None. Callers that register or unregister while an emission is
resolving handlers must serialize those calls themselves.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .exceptions import (
    EventRegistrationError,
    InvalidSortOrderError,
    MalformedEventKeyError,
    UnknownLifecycleError,
)
from .protocols import ALL_LIFECYCLES, DEFAULT_LIFECYCLE, KEY_DELIMITER, EventPattern

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HandlerEntry:
    """A handler stored in one registry slot.

    Attributes:
        handler: The callable (``None`` entries are skipped by waterfalls)
        sort_order: Position within a lifecycle phase, lower runs first
        sequence: Registry-wide insertion counter used to break sort ties
    """

    handler: Callable[..., Any] | None
    sort_order: int = 0
    sequence: int = field(default=0, compare=False)

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.sort_order, self.sequence)


class ParsedEventKey(NamedTuple):
    phase: str
    event_name: EventPattern
    sort_order: int


def parse_event_key(
    event_key: str, phases: Sequence[str], unregistering: bool = False
) -> ParsedEventKey:
    """Split a lifecycle event key into phase, event name and sort order.

    Args:
        event_key: Key of the form ``[lifecycle:]<eventName>[:sortOrder]``
        phases: Configured lifecycle phases, in order
        unregistering: Accept ``*`` as the phase (targets every phase)

    Raises:
        UnknownLifecycleError: No known phase prefix and no ``default`` phase
        MalformedEventKeyError: More than one part after the phase
        InvalidSortOrderError: The sort order is not an integer
    """
    parts = event_key.split(KEY_DELIMITER)
    if parts[0] in phases or (unregistering and parts[0] == ALL_LIFECYCLES):
        phase = parts[0]
        parts = parts[1:]
    elif DEFAULT_LIFECYCLE in phases:
        phase = DEFAULT_LIFECYCLE
    else:
        raise UnknownLifecycleError(event_key, phases)

    if len(parts) > 2:
        raise MalformedEventKeyError(event_key, phases)

    raw_order = parts[1] if len(parts) == 2 else ""
    try:
        sort_order = int(raw_order) if raw_order else 0
    except ValueError:
        raise InvalidSortOrderError(event_key, raw_order) from None

    return ParsedEventKey(phase, parts[0], sort_order)


class HandlerRegistry:
    """Pattern keyed handler storage.

    With an empty ``phases`` sequence the registry stores a flat list per
    literal pattern (``:`` has no meaning). Otherwise each key is parsed with
    :func:`parse_event_key` and stored per phase index.
    """

    def __init__(self, phases: Sequence[str] = (), debug: bool = False):
        self._phases: tuple[str, ...] = tuple(phases)
        self._debug = debug
        self._sequence = itertools.count()

        self._events: dict[EventPattern, Any] = {}
        """Flat lists, or phase index -> list when lifecycles are enabled."""

    @property
    def phases(self) -> tuple[str, ...]:
        return self._phases

    @property
    def uses_lifecycles(self) -> bool:
        return bool(self._phases)

    def register(self, event_key: str, handler: Callable[..., Any] | None) -> HandlerEntry:
        """Store ``handler`` under ``event_key`` and return its entry.

        Raises:
            EventRegistrationError: The key cannot be parsed (lifecycles only)
        """
        if not self._phases:
            entry = HandlerEntry(handler, sequence=next(self._sequence))
            self._events.setdefault(event_key, []).append(entry)
            if self._debug:
                logger.debug(f"Registered {_describe(handler)} for {event_key!r}")
            return entry

        phase, event_name, sort_order = parse_event_key(event_key, self._phases)
        entry = HandlerEntry(handler, sort_order, next(self._sequence))
        phase_index = self._phases.index(phase)
        handlers = self._events.setdefault(event_name, {}).setdefault(phase_index, [])
        handlers.append(entry)
        handlers.sort(key=lambda registered: registered.sort_key)
        if self._debug:
            logger.debug(
                f"Registered {_describe(handler)} for {event_name!r} "
                f"in {phase!r} at sort order {sort_order}"
            )
        return entry

    def unregister(
        self, event_key: str, handler: Callable[..., Any] | None = None
    ) -> int:
        """Remove ``handler`` (or every handler) from the targeted list(s).

        With lifecycles, a ``*`` phase targets every phase of the event name.
        Keys that cannot be parsed are ignored. Returns the number of entries
        removed.
        """
        if not self._phases:
            return _remove(self._events.get(event_key), handler)

        try:
            phase, event_name, _ = parse_event_key(
                event_key, self._phases, unregistering=True
            )
        except EventRegistrationError as e:
            logger.debug(f"Ignoring unregister for {event_key!r}: {e}")
            return 0

        lists = self._events.get(event_name)
        if not lists:
            return 0
        if phase == ALL_LIFECYCLES:
            indexes = list(range(len(self._phases)))
        else:
            indexes = [self._phases.index(phase)]

        removed = sum(_remove(lists.get(index), handler) for index in indexes)
        if self._debug and removed:
            logger.debug(f"Unregistered {removed} handler(s) from {event_key!r}")
        return removed

    def get(self, pattern: EventPattern) -> Any:
        """Raw storage for ``pattern``; a list or a phase index mapping."""
        return self._events.get(pattern)

    def items(self) -> Iterator[tuple[EventPattern, Any]]:
        """Iterate ``(pattern, storage)`` in first-registration order."""
        return iter(self._events.items())

    def patterns(self) -> list[EventPattern]:
        return list(self._events)

    def handler_count(self, pattern: EventPattern | None = None) -> int:
        """Count registered entries for one pattern, or across all patterns."""
        if pattern is not None:
            return _count(self._events.get(pattern))
        return sum(_count(storage) for storage in self._events.values())

    def clear(self) -> None:
        self._events.clear()


def _remove(entries: list[HandlerEntry] | None, handler: Callable[..., Any] | None) -> int:
    if not entries:
        return 0
    before = len(entries)
    if handler is None:
        entries.clear()
    else:
        entries[:] = [entry for entry in entries if entry.handler is not handler]
    return before - len(entries)


def _count(storage: Any) -> int:
    if not storage:
        return 0
    if isinstance(storage, dict):
        return sum(len(entries) for entries in storage.values())
    return len(storage)


def _describe(handler: Callable[..., Any] | None) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
