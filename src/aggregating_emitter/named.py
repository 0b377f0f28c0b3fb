"""Named emitter instances.

An :class:`EmitterRegistry` maps names to emitters. The first emitter created
under a name is returned for that name until it is explicitly removed;
options passed for an existing name are ignored. Emitters requested without a
name are never stored and never shared.

``default_registry`` is the process-wide table behind the module-level
helpers. It starts empty when the module is imported, grows through
:func:`aggregating_emitter` and shrinks only through
:func:`remove_named_emitter` / :func:`remove_named_emitters`. Code that needs
isolation (tests in particular) can create its own ``EmitterRegistry``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from .config import EmitterConfig
from .core import EventEmitter

logger = logging.getLogger(__name__)


class EmitterRegistry:
    """Thread-safe name -> EventEmitter table with first-write-wins semantics."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._emitters: dict[str, EventEmitter] = {}

    def get_or_create(
        self,
        name: str | None = None,
        config: EmitterConfig | None = None,
        **options: Any,
    ) -> EventEmitter:
        """Return the emitter stored under ``name``, creating it if absent.

        Args:
            name: Name to look up; ``None`` always creates an unshared emitter
            config: Configuration used only when a new emitter is created
            **options: EmitterConfig fields and EventEmitter keyword options

        Returns:
            The first emitter ever stored under ``name`` (or a fresh one)
        """
        if not name:
            return EventEmitter(config, **options)

        with self._lock:
            emitter = self._emitters.get(name)
            if emitter is None:
                emitter = EventEmitter(config, **options)
                self._emitters[name] = emitter
                logger.debug(f"Created named emitter {name!r}: {emitter!r}")
            return emitter

    def get(self, name: str) -> EventEmitter | None:
        with self._lock:
            return self._emitters.get(name)

    def remove(self, name: str) -> bool:
        """Forget ``name``. The emitter itself keeps working for its holders.

        Returns:
            True if an emitter was stored under ``name``
        """
        with self._lock:
            return self._emitters.pop(name, None) is not None

    def remove_all(self) -> None:
        with self._lock:
            self._emitters.clear()

    def names(self) -> list[str]:
        with self._lock:
            return list(self._emitters)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._emitters

    def __len__(self) -> int:
        with self._lock:
            return len(self._emitters)


default_registry = EmitterRegistry()
"""Process-wide table used by the module-level helpers."""


def aggregating_emitter(name: str | None = None, **options: Any) -> EventEmitter:
    """Find an emitter by name in ``default_registry`` or create a new one.

    If no name is provided, an anonymous emitter that cannot be fetched again
    is created.
    """
    return default_registry.get_or_create(name, **options)


def AggregatingEmitter(name: str | None = None, **options: Any) -> EventEmitter:  # noqa: N802
    """Alias of :func:`aggregating_emitter`."""
    return aggregating_emitter(name, **options)


def remove_named_emitter(name: str) -> bool:
    """Remove ``name`` from ``default_registry``; True if it existed."""
    return default_registry.remove(name)


def remove_named_emitters() -> None:
    """Remove every emitter from ``default_registry``."""
    default_registry.remove_all()
