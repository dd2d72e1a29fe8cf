"""Process logging configuration for the CLI."""

from __future__ import annotations

import logging

_LOGGING_INITIALIZED = False

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbosity: str = "info") -> None:
    """Configure root logging with a single stderr handler.

    Args:
        verbosity: Console verbosity (info, debug). Calling again only
            adjusts the level of the existing handler.
    """
    global _LOGGING_INITIALIZED

    level_map = {"info": logging.INFO, "debug": logging.DEBUG}
    console_level = level_map.get(verbosity.lower(), logging.INFO)

    root = logging.getLogger()
    if not _LOGGING_INITIALIZED:
        root.setLevel(logging.DEBUG)
        root.handlers.clear()
        handler = logging.StreamHandler()
        handler.setLevel(console_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        _LOGGING_INITIALIZED = True
    else:
        for handler in root.handlers:
            if isinstance(handler, logging.StreamHandler):
                handler.setLevel(console_level)

    # boto stays quiet even with --debug; its wire logs can echo secrets
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
