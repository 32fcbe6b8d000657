"""Package logging setup."""

import logging

PACKAGE_LOGGERS = (
    "offline_events",
    "fetch_outcome",
    "cache_region",
    "offline_queue",
    "fetch_sync",
    "fetch_compose_offline",
    "offline_lifecycle",
)


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to every offline package logger (once)."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    for name in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(name)
        package_logger.setLevel(numeric_level)

        # Avoid duplicate handlers
        if not package_logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(numeric_level)
            handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
            package_logger.addHandler(handler)
