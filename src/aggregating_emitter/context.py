"""Per-emission event context and waterfall signals.

Every emit call creates one :class:`EventContext` and passes it as the first
argument to each handler. Waterfall handlers steer the chain through the
value they return; :func:`classify` turns that raw value into one of the
:data:`WaterfallSignal` variants before the engine folds it in.
"""

from __future__ import annotations

import contextvars
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final

from .protocols import EventName


@dataclass(frozen=True, slots=True)
class Continue:
    """Pass ``value`` on as the running result, even when it is ``None``."""

    value: Any


@dataclass(frozen=True, slots=True)
class ContinueEmpty:
    """Keep going, but call the next handler with no positional arguments."""


@dataclass(frozen=True, slots=True)
class ReturnEmpty:
    """Stop the chain now; the emission returns ``None``."""


@dataclass(frozen=True, slots=True)
class NoOpinion:
    """Leave the running result and the next input unchanged."""


WaterfallSignal = Continue | ContinueEmpty | ReturnEmpty | NoOpinion

CONTINUE_EMPTY: Final = ContinueEmpty()
RETURN_EMPTY: Final = ReturnEmpty()
NO_OPINION: Final = NoOpinion()


def classify(result: Any) -> WaterfallSignal:
    """Map a handler's raw return value onto a waterfall signal."""
    if isinstance(result, (Continue, ContinueEmpty, ReturnEmpty, NoOpinion)):
        return result
    if result is None:
        return NO_OPINION
    return Continue(result)


@dataclass(slots=True, eq=False)
class EventContext:
    """Data passed to each handler for a single emission.

    ``event_name`` is the name that was emitted (not the pattern the handler
    registered with). ``lifecycles`` exposes the results of every phase that
    has fully completed so far, keyed by phase name; handlers only read it.
    """

    _event_name: EventName
    _lifecycle_results: dict[str, list[Any]] = field(default_factory=dict)
    _default_prevented: bool = False

    continue_with_empty = CONTINUE_EMPTY
    """Return this to continue a waterfall with zero arguments."""

    return_empty = RETURN_EMPTY
    """Return this to halt a waterfall with an empty result."""

    @property
    def event_name(self) -> EventName:
        return self._event_name

    @property
    def lifecycles(self) -> Mapping[str, list[Any]]:
        return MappingProxyType(self._lifecycle_results)

    @property
    def default_prevented(self) -> bool:
        return self._default_prevented

    def prevent_default(self) -> None:
        """Stop a waterfall once the calling handler's result is folded in.

        Has no effect on the parallel protocols.
        """
        self._default_prevented = True

    def _record_phase(self, phase: str, results: list[Any]) -> None:
        self._lifecycle_results[phase] = results


# Context variable for current event context
event_ctx: contextvars.ContextVar[EventContext | None] = contextvars.ContextVar(
    "event_ctx", default=None
)
"""The EventContext of the emission currently running handlers, if any."""
