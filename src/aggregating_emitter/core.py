"""EventEmitter facade.

This module contains the EventEmitter class, which binds an
:class:`EmitterConfig` to a registry, a resolver and a dispatch engine and
exposes the public register/unregister/emit API.

CONTENTS:
- EventEmitter: on(), off(), emit(), emit_async(), emit_waterfall(),
  emit_waterfall_async(), plus introspection and event tracing

THREAD SAFETY: Not thread-safe. Registration and emission on the same emitter
must be serialized by the caller.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import EmitterConfig
from .dispatch import DispatchEngine
from .protocols import EventName, EventPattern, F
from .registration import HandlerRegistry
from .resolver import HandlerResolver

logger = logging.getLogger(__name__)

# Create a console instance for Rich output
_console = Console(stderr=True)  # Use stderr to avoid interfering with stdout

_METHOD_COLORS = {
    "emit": "cyan",
    "emit_async": "blue",
    "emit_waterfall": "magenta",
    "emit_waterfall_async": "magenta",
}


class EventEmitter:
    """
    Pattern-matched, lifecycle-ordered event emitter.

    LIFECYCLE:
    1. Configuration: matchers and phases fixed from EmitterConfig
    2. Registration: on() / off() mutate the handler registry
    3. Emission: emit*() resolves matching handlers and runs them

    TYPICAL USAGE:
    ```python
    events = EventEmitter(wildcards=True, lifecycles=True)

    @events.on("before:data.*")
    def validate(event, record):
        ...

    events.on("data.save", store)

    events.emit("data.save", record)  # [[], [validated], [stored], [], []]
    value = events.emit_waterfall("data.save", record)
    ```

    MATCHING:
    - Names are split on "." and compared segment by segment
    - wildcards=True: "*" matches a whole segment or any substring in one
    - list_options=True: "{a,b}" matches either option
    - Patterns and names with different segment counts never match

    LIFECYCLES:
    - Keys take the form "[lifecycle:]<eventName>[:sortOrder]"
    - Phases run in configured order, sort order breaks ties within a phase
    - emit()/emit_async() return one result list per phase
    """

    def __init__(
        self,
        config: EmitterConfig | None = None,
        *,
        debug: bool = False,
        event_trace: bool = False,
        **options: Any,
    ):
        """
        Initialize EventEmitter.

        Args:
            config: Emitter configuration; built from ``options`` when omitted
            debug: Log registrations and handler failures
            event_trace: Enable event tracing (logs every emission)
            **options: EmitterConfig fields (wildcards, list_options, lifecycles)
        """
        if config is None:
            config = EmitterConfig(**options)
        elif options:
            config = EmitterConfig.model_validate({**config.model_dump(), **options})
        self._config = config
        self._debug = debug
        self._event_trace = event_trace
        self._event_trace_verbosity = 1  # 0=minimal, 1=normal, 2=verbose
        self._event_trace_use_rich = True

        self._registry = HandlerRegistry(config.phases, debug=debug)
        self._resolver = HandlerResolver(
            self._registry,
            config.build_filter(),
            advanced=config.uses_advanced_matching,
        )
        self._engine = DispatchEngine(self._resolver, config.phases, debug=debug)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(wildcards={self._config.wildcards}, "
            f"list_options={self._config.list_options}, "
            f"lifecycles={list(self._config.phases)})"
        )

    @property
    def config(self) -> EmitterConfig:
        return self._config

    @property
    def lifecycles(self) -> tuple[str, ...]:
        return self._config.phases

    def on(self, pattern: EventPattern, handler: F | None = None) -> Any:
        """
        Register ``handler`` against ``pattern``.

        Can be called directly or used as a decorator:
        ```python
        events.on("user.login", audit)

        @events.on("after:user.login:10")
        def notify(event, user): ...
        ```

        Raises:
            EventRegistrationError: The lifecycle key is invalid. The registry
                is left unchanged.
        """
        if handler is None:

            def decorator(fn: F) -> F:
                self._registry.register(pattern, fn)
                return fn

            return decorator

        self._registry.register(pattern, handler)
        return handler

    def off(self, pattern: EventPattern, handler: Callable[..., Any] | None = None) -> None:
        """
        Unregister ``handler`` from ``pattern``, or every handler when omitted.

        With lifecycles, ``"*:event"`` targets every phase. Note that
        ``off("*:event")`` without a handler empties every phase list for
        ``event``, including phases other components registered into.
        Never raises.
        """
        self._registry.unregister(pattern, handler)

    def emit(self, event: EventName, *args: Any, **kwargs: Any) -> list[Any]:
        """
        Emit ``event`` synchronously.

        Every matching handler is called with ``(event_context, *args,
        **kwargs)``, one after another.

        Returns:
            The handlers' return values in execution order, or one such list
            per lifecycle phase when lifecycles are enabled.
        """
        return self._traced("emit", event, args, kwargs, self._engine.emit)

    async def emit_async(self, event: EventName, *args: Any, **kwargs: Any) -> list[Any]:
        """
        Emit ``event`` asynchronously.

        Handlers within a phase run concurrently; phases run in order. The
        result has the same shape as :meth:`emit`.
        """
        return await self._traced_async(
            "emit_async", event, args, kwargs, self._engine.emit_async
        )

    def emit_waterfall(self, event: EventName, *args: Any, **kwargs: Any) -> Any:
        """
        Emit ``event`` so that each handler's output becomes the next input.

        Returning ``None`` leaves the data unchanged. Return
        ``event.continue_with_empty`` to continue with no arguments, or
        ``event.return_empty`` to stop and return ``None``. Calling
        ``event.prevent_default()`` stops the chain after the current handler.

        Returns:
            The last value a handler passed on, or ``None``.
        """
        return self._traced(
            "emit_waterfall", event, args, kwargs, self._engine.emit_waterfall
        )

    async def emit_waterfall_async(
        self, event: EventName, *args: Any, **kwargs: Any
    ) -> Any:
        """An asynchronous version of :meth:`emit_waterfall`."""
        return await self._traced_async(
            "emit_waterfall_async",
            event,
            args,
            kwargs,
            self._engine.emit_waterfall_async,
        )

    def handler_count(self, pattern: EventPattern | None = None) -> int:
        """Number of registered handlers for a stored pattern, or in total."""
        return self._registry.handler_count(pattern)

    def event_names(self) -> list[EventPattern]:
        """Registered patterns (without lifecycle prefix) in registration order."""
        return self._registry.patterns()

    def _traced(self, method: str, event, args, kwargs, dispatch) -> Any:
        if not self._event_trace:
            return dispatch(event, *args, **kwargs)

        start_time = time.perf_counter()
        result: Any = None
        error: BaseException | None = None
        try:
            result = dispatch(event, *args, **kwargs)
            return result
        except Exception as e:
            error = e
            raise
        finally:
            self._log_event(
                event,
                method,
                args,
                kwargs,
                duration_ms=(time.perf_counter() - start_time) * 1000,
                result=result,
                error=error,
            )

    async def _traced_async(self, method: str, event, args, kwargs, dispatch) -> Any:
        if not self._event_trace:
            return await dispatch(event, *args, **kwargs)

        start_time = time.perf_counter()
        result: Any = None
        error: BaseException | None = None
        try:
            result = await dispatch(event, *args, **kwargs)
            return result
        except Exception as e:
            error = e
            raise
        finally:
            self._log_event(
                event,
                method,
                args,
                kwargs,
                duration_ms=(time.perf_counter() - start_time) * 1000,
                result=result,
                error=error,
            )

    def set_event_trace(
        self, enabled: bool, verbosity: int = 1, use_rich: bool = True
    ) -> None:
        """
        Enable or disable event tracing with configurable output.

        When enabled, logs every emission with its arguments and timing.

        Args:
            enabled: Whether to enable event tracing
            verbosity: Level of detail (0=minimal, 1=normal, 2=verbose)
            use_rich: Whether to use Rich formatting for output
        """
        self._event_trace = enabled
        self._event_trace_verbosity = verbosity
        self._event_trace_use_rich = use_rich

        if enabled:
            msg = f"Event tracing enabled for {self.__class__.__name__}"
            if use_rich:
                _console.print(
                    Panel(
                        f"[bold green]✓[/bold green] {msg}\n"
                        f"[dim]Verbosity: {['minimal', 'normal', 'verbose'][verbosity]}[/dim]",
                        title="Event Tracing",
                        border_style="green",
                    )
                )
            else:
                logger.info(f"{msg} (verbosity={verbosity})")
        else:
            msg = f"Event tracing disabled for {self.__class__.__name__}"
            if use_rich:
                _console.print(f"[yellow]ℹ[/yellow] {msg}")
            else:
                logger.info(msg)

    @property
    def event_trace_enabled(self) -> bool:
        """Check if event tracing is enabled."""
        return self._event_trace

    def _handler_total(self, event: EventName) -> int:
        if self._registry.uses_lifecycles:
            return sum(len(phase) for phase in self._resolver.resolve(event))  # type: ignore[arg-type]
        return len(self._resolver.resolve(event))

    def _format_event_trace(
        self,
        event: EventName,
        method: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        handler_count: int,
        duration_ms: float | None = None,
        result: Any = None,
        error: BaseException | None = None,
    ) -> tuple[Text, Table | None]:
        """
        Format event trace data for Rich output.

        Returns:
            Tuple of (main_text, optional_table)
        """
        method_color = _METHOD_COLORS.get(method, "white")

        text = Text()
        text.append("⚡ ", style="bold")
        text.append(event, style=f"bold {method_color}")
        text.append(" | ")
        text.append(f"{method}()", style=f"{method_color}")
        text.append(" | ")

        if handler_count > 0:
            text.append(f"handlers: {handler_count}", style="green")
        else:
            text.append("no handlers", style="dim red")

        # Duration with color coding
        if duration_ms is not None:
            text.append(" | ")
            if duration_ms < 10:
                dur_style = "green"
            elif duration_ms < 100:
                dur_style = "yellow"
            else:
                dur_style = "red"
            text.append(f"{duration_ms:.2f}ms", style=f"bold {dur_style}")

        if error:
            text.append(" | ")
            text.append(f"ERROR: {error!r}", style="bold red")

        table = None
        if self._event_trace_verbosity >= 2:
            table = Table(show_header=True, header_style="bold cyan", box=None)
            table.add_column("Field", style="cyan", width=15)
            table.add_column("Value", overflow="fold")

            for index, value in enumerate(args):
                table.add_row(f"arg:{index}", _truncate(value, 100))
            for key, value in kwargs.items():
                table.add_row("param:" + key, _truncate(value, 100))

            if result is not None:
                table.add_row("result", _truncate(result, 200), style="green")

            if error:
                table.add_row("error", str(error), style="red")

        return text, table

    def _log_event(
        self,
        event: EventName,
        method: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        duration_ms: float | None = None,
        result: Any = None,
        error: BaseException | None = None,
    ) -> None:
        """
        Log emission details when tracing is enabled.

        Args:
            event: Emitted event name
            method: Protocol used (emit, emit_async, ...)
            args: Positional arguments passed to the emit call
            kwargs: Keyword arguments passed to the emit call
            duration_ms: Execution duration in milliseconds
            result: Value returned by the emission
            error: Any error that occurred
        """
        if not self._event_trace:
            return

        handler_count = self._handler_total(event)

        if self._event_trace_use_rich:
            text, table = self._format_event_trace(
                event, method, args, kwargs, handler_count, duration_ms, result, error
            )
            _console.print(text)
            if table:
                _console.print(table)
            return

        parts = [
            "[EVENT TRACE]",
            f"event={event!r}",
            f"method={method}",
            f"handlers={handler_count}",
        ]
        if duration_ms is not None:
            parts.append(f"duration={duration_ms:.2f}ms")
        if error:
            parts.append(f"error={error!r}")
        if args or kwargs:
            parts.append(f"args={_truncate((args, kwargs), 200)}")
        if result is not None and self._event_trace_verbosity >= 1:
            parts.append(f"result={_truncate(result, 100)}")

        logger.debug(" | ".join(parts))


def _truncate(value: Any, limit: int) -> str:
    text = str(value)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text
