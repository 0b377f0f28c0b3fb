from __future__ import annotations

import logging

DEFAULT_FORMAT = "%(levelname)s %(name)s - %(message)s"
LIBRARY_LOGGER = "aggregating_emitter"


def configure_library_logging(
    level: int = logging.INFO,
    format: str = DEFAULT_FORMAT,
    stream=None,
) -> logging.Logger:
    """Attach a stream handler to the library logger unless one is present.

    Emitters log registrations, ignored unregistrations and handler failures
    under the ``aggregating_emitter`` namespace. Applications that already
    configure logging can ignore this; scripts can call it once to see those
    messages. The root logger is never touched.
    """
    library_logger = logging.getLogger(LIBRARY_LOGGER)
    library_logger.setLevel(level)

    if any(
        not isinstance(handler, logging.NullHandler)
        for handler in library_logger.handlers
    ):
        return library_logger

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(format))
    library_logger.addHandler(handler)
    return library_logger
