"""Shared type aliases and protocols for the aggregating emitter."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from .context import EventContext

# Type definitions
EventName = str
EventPattern = str
SortOrder = int
F = TypeVar("F", bound=Callable[..., Any])

SegmentMatcher = Callable[[str, str], bool]
"""Symmetric predicate over two name segments."""

DEFAULT_LIFECYCLES: tuple[str, ...] = ("early", "before", "default", "after", "late")
"""Phase order used when lifecycles are enabled with ``True``."""

DEFAULT_LIFECYCLE = "default"
ALL_LIFECYCLES = "*"
NAMESPACE_DELIMITER = "."
KEY_DELIMITER = ":"


@runtime_checkable
class EventHandler(Protocol):
    """Protocol for callables registered against an event pattern.

    Handlers receive the per-emission :class:`EventContext` first, followed by
    whatever positional and keyword arguments were passed to the emit call
    (or, for waterfalls, the value threaded from the previous handler).
    """

    def __call__(self, ctx: EventContext, *args: Any, **kwargs: Any) -> Any: ...
