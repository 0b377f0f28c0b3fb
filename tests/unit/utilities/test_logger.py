"""Tests for utilities/logger.py module."""

import io
import logging
from collections.abc import Iterator

import pytest

from aggregating_emitter import EventEmitter
from aggregating_emitter.utilities.logger import (
    DEFAULT_FORMAT,
    LIBRARY_LOGGER,
    configure_library_logging,
)


@pytest.fixture()
def library_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger(LIBRARY_LOGGER)
    original_handlers = list(logger.handlers)
    original_level = logger.level
    yield logger
    logger.handlers = original_handlers
    logger.setLevel(original_level)


class TestConfigureLibraryLogging:
    """Tests for configure_library_logging helper."""

    def test_adds_stream_handler_with_format(self, library_logger):
        stream = io.StringIO()

        configured = configure_library_logging(
            level=logging.DEBUG, format="%(message)s", stream=stream
        )

        assert configured is library_logger
        assert library_logger.level == logging.DEBUG
        EventEmitter(debug=True).on("event", print)
        assert "Registered print for 'event'" in stream.getvalue()

    def test_does_not_stack_handlers(self, library_logger):
        configure_library_logging(stream=io.StringIO())
        count = len(library_logger.handlers)

        configure_library_logging(stream=io.StringIO())

        assert len(library_logger.handlers) == count

    def test_root_logger_is_untouched(self, library_logger, monkeypatch):
        called = False

        def fake_basic_config(**kwargs):
            nonlocal called
            called = True

        monkeypatch.setattr(logging, "basicConfig", fake_basic_config)

        configure_library_logging(stream=io.StringIO())

        assert called is False

    def test_default_format(self, library_logger):
        configure_library_logging(stream=io.StringIO())

        stream_handlers = [
            handler
            for handler in library_logger.handlers
            if isinstance(handler, logging.StreamHandler)
        ]
        assert stream_handlers[-1].formatter._fmt == DEFAULT_FORMAT
        assert library_logger.level == logging.INFO
