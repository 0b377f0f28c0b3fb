from .logger import DEFAULT_FORMAT, LIBRARY_LOGGER, configure_library_logging

__all__ = ["DEFAULT_FORMAT", "LIBRARY_LOGGER", "configure_library_logging"]
