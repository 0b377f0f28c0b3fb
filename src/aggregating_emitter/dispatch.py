"""The four emission protocols.

CONCURRENCY PATTERNS:
- emit(): Handlers run one after another in the calling thread
- emit_async(): Handlers of one phase run concurrently via asyncio.gather(),
  phases run strictly in order
- emit_waterfall() / emit_waterfall_async(): Strictly sequential, each
  handler's output becomes the next handler's input

Results of the parallel protocols always follow resolution order, whatever
order handlers finish in. Phase results are recorded on the context only
after the whole phase has completed, so handlers see earlier phases but never
their own.

ERROR HANDLING: A handler exception propagates to the caller unchanged and
ends the emission. Nothing is retried and no partial result is returned.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .context import (
    Continue,
    ContinueEmpty,
    EventContext,
    ReturnEmpty,
    classify,
    event_ctx,
)
from .protocols import EventName
from .registration import HandlerEntry
from .resolver import HandlerResolver

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WaterfallState:
    """Running state of one waterfall emission."""

    next_args: tuple[Any, ...]
    result: Any = None
    returning: bool = False

    def fold(self, raw: Any, ctx: EventContext) -> None:
        """Apply one handler's return value, then honour prevent_default()."""
        signal = classify(raw)
        if isinstance(signal, Continue):
            self.result = signal.value
            self.next_args = (signal.value,)
        elif isinstance(signal, ContinueEmpty):
            self.next_args = ()
        elif isinstance(signal, ReturnEmpty):
            self.result = None
            self.returning = True
        if ctx.default_prevented:
            self.returning = True


class DispatchEngine:
    """Invoke resolved handlers according to one of four protocols."""

    def __init__(
        self,
        resolver: HandlerResolver,
        phases: Sequence[str] = (),
        debug: bool = False,
    ):
        self._resolver = resolver
        self._phases = tuple(phases)
        self._debug = debug

    def _call(self, entry: HandlerEntry, ctx: EventContext, args, kwargs) -> Any:
        handler = entry.handler
        try:
            return handler(ctx, *args, **kwargs)  # type: ignore[misc]
        except Exception:
            if self._debug:
                logger.exception(f"Handler {handler} failed for {ctx.event_name!r}")
            raise

    async def _call_async(
        self, entry: HandlerEntry, ctx: EventContext, args, kwargs
    ) -> Any:
        result = self._call(entry, ctx, args, kwargs)
        if inspect.isawaitable(result):
            try:
                result = await result
            except Exception:
                if self._debug:
                    logger.exception(
                        f"Handler {entry.handler} failed for {ctx.event_name!r}"
                    )
                raise
        return result

    def emit(self, event: EventName, *args: Any, **kwargs: Any) -> list[Any]:
        """Call every matching handler in order and collect the results.

        Nothing is awaited here: a coroutine handler's coroutine object is
        returned as its result. Use :meth:`emit_async` for async handlers.
        """
        ctx = EventContext(event)
        token = event_ctx.set(ctx)
        try:
            handlers = self._resolver.resolve(event)
            if not self._phases:
                return [self._call(entry, ctx, args, kwargs) for entry in handlers]

            results: list[list[Any]] = []
            for phase, entries in zip(self._phases, handlers):
                phase_results = [
                    self._call(entry, ctx, args, kwargs)
                    for entry in entries  # type: ignore[union-attr]
                ]
                ctx._record_phase(phase, phase_results)
                results.append(phase_results)
            return results
        finally:
            event_ctx.reset(token)

    async def emit_async(self, event: EventName, *args: Any, **kwargs: Any) -> list[Any]:
        """Run each phase's handlers concurrently, one phase at a time."""
        ctx = EventContext(event)
        token = event_ctx.set(ctx)
        try:
            handlers = self._resolver.resolve(event)
            if not self._phases:
                return await self._gather(handlers, ctx, args, kwargs)  # type: ignore[arg-type]

            results: list[list[Any]] = []
            for phase, entries in zip(self._phases, handlers):
                phase_results = await self._gather(entries, ctx, args, kwargs)  # type: ignore[arg-type]
                ctx._record_phase(phase, phase_results)
                results.append(phase_results)
            return results
        finally:
            event_ctx.reset(token)

    async def _gather(
        self, entries: list[HandlerEntry], ctx: EventContext, args, kwargs
    ) -> list[Any]:
        if not entries:
            return []
        return list(
            await asyncio.gather(
                *(self._call_async(entry, ctx, args, kwargs) for entry in entries)
            )
        )

    def emit_waterfall(self, event: EventName, *args: Any, **kwargs: Any) -> Any:
        """Thread one value through every matching handler, in order."""
        ctx = EventContext(event)
        token = event_ctx.set(ctx)
        try:
            state = WaterfallState(next_args=args)
            for entry in self._resolver.resolve_flat(event):
                if entry.handler is None:
                    continue
                state.fold(self._call(entry, ctx, state.next_args, kwargs), ctx)
                if state.returning:
                    break
            return state.result
        finally:
            event_ctx.reset(token)

    async def emit_waterfall_async(
        self, event: EventName, *args: Any, **kwargs: Any
    ) -> Any:
        """Asynchronous :meth:`emit_waterfall`; handlers may be coroutines."""
        ctx = EventContext(event)
        token = event_ctx.set(ctx)
        try:
            state = WaterfallState(next_args=args)
            for entry in self._resolver.resolve_flat(event):
                if entry.handler is None:
                    continue
                raw = await self._call_async(entry, ctx, state.next_args, kwargs)
                state.fold(raw, ctx)
                if state.returning:
                    break
            return state.result
        finally:
            event_ctx.reset(token)
