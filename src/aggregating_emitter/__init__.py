"""Pattern-matched, lifecycle-ordered, in-process event emitter."""

from __future__ import annotations

import logging

# Configuration
from .config import EmitterConfig

# Event context and waterfall signals
from .context import (
    CONTINUE_EMPTY,
    NO_OPINION,
    RETURN_EMPTY,
    Continue,
    ContinueEmpty,
    EventContext,
    NoOpinion,
    ReturnEmpty,
    WaterfallSignal,
    event_ctx,
)

# Main EventEmitter class
from .core import EventEmitter

# Registration errors
from .exceptions import (
    EventRegistrationError,
    InvalidSortOrderError,
    MalformedEventKeyError,
    UnknownLifecycleError,
)

# Matching
from .matching import (
    PatternFilter,
    exact_matcher,
    list_option_matcher,
    wildcard_matcher,
)

# Named emitters
from .named import (
    AggregatingEmitter,
    EmitterRegistry,
    aggregating_emitter,
    default_registry,
    remove_named_emitter,
    remove_named_emitters,
)
from .protocols import DEFAULT_LIFECYCLES, EventHandler, EventName, EventPattern
from .registration import HandlerEntry, HandlerRegistry, ParsedEventKey, parse_event_key
from .resolver import HandlerResolver

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "EventEmitter",
    "EmitterConfig",
    "EventContext",
    # Waterfall signals
    "Continue",
    "ContinueEmpty",
    "ReturnEmpty",
    "NoOpinion",
    "WaterfallSignal",
    "CONTINUE_EMPTY",
    "RETURN_EMPTY",
    "NO_OPINION",
    # Errors
    "EventRegistrationError",
    "UnknownLifecycleError",
    "MalformedEventKeyError",
    "InvalidSortOrderError",
    # Matching, registration and resolution
    "PatternFilter",
    "exact_matcher",
    "wildcard_matcher",
    "list_option_matcher",
    "HandlerEntry",
    "HandlerRegistry",
    "HandlerResolver",
    "ParsedEventKey",
    "parse_event_key",
    # Named emitters
    "EmitterRegistry",
    "default_registry",
    "aggregating_emitter",
    "AggregatingEmitter",
    "remove_named_emitter",
    "remove_named_emitters",
    # Type aliases
    "EventName",
    "EventPattern",
    "EventHandler",
    "DEFAULT_LIFECYCLES",
    # Context variable (advanced usage)
    "event_ctx",
]
