"""Emitter configuration.

``EmitterConfig`` is validated once, frozen, and then turned into a fixed
matching strategy: the tuple of segment matchers and the lifecycle phases.
Option names follow Python conventions, with the camelCase spelling
``listOptions`` accepted as an alias.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .matching import (
    PatternFilter,
    exact_matcher,
    list_option_matcher,
    wildcard_matcher,
)
from .protocols import (
    ALL_LIFECYCLES,
    DEFAULT_LIFECYCLE,
    DEFAULT_LIFECYCLES,
    KEY_DELIMITER,
    SegmentMatcher,
)


class EmitterConfig(BaseModel):
    """Options recognised when creating an :class:`EventEmitter`.

    Attributes:
        wildcards: Enable ``*`` matching inside and across whole segments
            (``"data.*"`` matches ``"data.get"``).
        list_options: Enable ``{a,b}`` segments (``"data.{get,set}"``
            matches ``"data.get"`` and ``"data.set"``).
        lifecycles: ``False`` to disable phases, ``True`` for
            ``early, before, default, after, late``, or an explicit ordered
            list of phase names. Without a ``"default"`` phase every
            registration must carry a phase prefix.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    wildcards: bool = False
    list_options: bool = Field(default=False, alias="listOptions")
    lifecycles: bool | tuple[str, ...] = False

    @field_validator("lifecycles", mode="before")
    @classmethod
    def _coerce_lifecycles(cls, value: object) -> object:
        if isinstance(value, list):
            return tuple(value)
        return value

    @field_validator("lifecycles")
    @classmethod
    def _validate_lifecycles(cls, value: bool | tuple[str, ...]):
        if isinstance(value, bool):
            return value
        seen: set[str] = set()
        for phase in value:
            if not phase:
                raise ValueError("lifecycle names must be non-empty strings")
            if phase == ALL_LIFECYCLES or KEY_DELIMITER in phase:
                raise ValueError(
                    f"lifecycle name {phase!r} may not be {ALL_LIFECYCLES!r} "
                    f"or contain {KEY_DELIMITER!r}"
                )
            if phase in seen:
                raise ValueError(f"lifecycle {phase!r} is listed more than once")
            seen.add(phase)
        return value

    @property
    def phases(self) -> tuple[str, ...]:
        """The ordered lifecycle phases, empty when lifecycles are disabled."""
        if self.lifecycles is True:
            return DEFAULT_LIFECYCLES
        if self.lifecycles is False:
            return ()
        return self.lifecycles

    @property
    def uses_lifecycles(self) -> bool:
        return bool(self.phases)

    @property
    def has_default_phase(self) -> bool:
        return DEFAULT_LIFECYCLE in self.phases

    @property
    def matchers(self) -> tuple[SegmentMatcher, ...]:
        matchers: list[SegmentMatcher] = [exact_matcher]
        if self.wildcards:
            matchers.append(wildcard_matcher)
        if self.list_options:
            matchers.append(list_option_matcher)
        return tuple(matchers)

    @property
    def uses_advanced_matching(self) -> bool:
        """Whether resolution must scan patterns rather than look up a key."""
        return len(self.matchers) > 1 or self.uses_lifecycles

    def build_filter(self) -> PatternFilter:
        return PatternFilter(self.matchers)
