"""Resolve an emitted event name to the handlers that should run.

Two strategies, chosen once when the emitter is built:

- ``exact``: a direct dictionary lookup on the emitted name. Used when only
  the exact segment matcher is configured and lifecycles are off.
- ``advanced``: scan every registered pattern in first-registration order,
  keep the ones the :class:`PatternFilter` accepts and concatenate their
  handlers. Under lifecycles the merge happens phase by phase and the result
  always has one list per phase.
"""

from __future__ import annotations

from .matching import PatternFilter
from .protocols import EventName
from .registration import HandlerEntry, HandlerRegistry

Resolution = list[HandlerEntry] | list[list[HandlerEntry]]


class HandlerResolver:
    """Fixed resolution strategy bound to one registry."""

    __slots__ = ("_registry", "_filter", "_advanced")

    def __init__(
        self,
        registry: HandlerRegistry,
        pattern_filter: PatternFilter | None = None,
        advanced: bool = False,
    ):
        self._registry = registry
        self._filter = pattern_filter or PatternFilter()
        self._advanced = advanced or registry.uses_lifecycles

    @property
    def advanced(self) -> bool:
        return self._advanced

    @property
    def pattern_filter(self) -> PatternFilter:
        return self._filter

    def resolve(self, event: EventName) -> Resolution:
        """Return handlers for ``event`` (per phase when lifecycles are on)."""
        if not self._advanced:
            return list(self._registry.get(event) or ())
        if self._registry.uses_lifecycles:
            return self._resolve_lifecycles(event)
        handlers: list[HandlerEntry] = []
        for pattern, entries in self._registry.items():
            if self._filter.matches(event, pattern):
                handlers.extend(entries)
        return handlers

    def _resolve_lifecycles(self, event: EventName) -> list[list[HandlerEntry]]:
        phases: list[list[HandlerEntry]] = [[] for _ in self._registry.phases]
        for pattern, by_phase in self._registry.items():
            if not self._filter.matches(event, pattern):
                continue
            for index, entries in by_phase.items():
                phases[index].extend(entries)
        return phases

    def resolve_flat(self, event: EventName) -> list[HandlerEntry]:
        """Handlers in phase order, then sort order, as one sequence."""
        resolved = self.resolve(event)
        if not self._registry.uses_lifecycles:
            return resolved  # type: ignore[return-value]
        return [entry for phase in resolved for entry in phase]  # type: ignore[union-attr]
