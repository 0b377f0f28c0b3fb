"""Errors raised while registering event handlers.

Every error here is raised synchronously from ``EventEmitter.on`` and leaves
the registry untouched. ``off`` and the ``emit*`` family never raise them.
"""

from __future__ import annotations

from collections.abc import Sequence

EVENT_KEY_STRUCTURE = "[lifecycle:]<eventName>[:sortOrder]"


class EventRegistrationError(ValueError):
    """Base class for handler registration failures."""

    def __init__(self, event_key: str, message: str):
        super().__init__(message)
        self.event_key = event_key


class UnknownLifecycleError(EventRegistrationError):
    """The key names no configured lifecycle and no "default" phase exists."""

    def __init__(self, event_key: str, available: Sequence[str]):
        self.available = tuple(available)
        super().__init__(
            event_key,
            f"Unable to register event handler for {event_key} with no "
            f'"default" lifecycle available. Available options: '
            f"{', '.join(self.available)}",
        )


class MalformedEventKeyError(EventRegistrationError):
    """The key has more ``:`` separated parts than phase and sort order."""

    def __init__(self, event_key: str, available: Sequence[str]):
        self.available = tuple(available)
        super().__init__(
            event_key,
            f"Unable to register event handler for {event_key}. Invalid event "
            f"structure. Structure should be {EVENT_KEY_STRUCTURE} where "
            f"lifecycle is one of {', '.join(self.available)}",
        )


class InvalidSortOrderError(EventRegistrationError):
    """The sort order suffix is not an integer."""

    def __init__(self, event_key: str, sort_order: str):
        self.sort_order = sort_order
        super().__init__(
            event_key,
            f"Unable to register event handler for {event_key}. Sort order "
            f"{sort_order!r} is not an integer. Structure should be "
            f"{EVENT_KEY_STRUCTURE}",
        )
