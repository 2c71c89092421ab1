"""Logging setup for Gemini Studio."""

import logging
import sys

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str | int = "INFO", fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Configure the ``gemini_studio`` logger hierarchy.

    Attaches a single stderr handler; calling again only updates the level.

    Args:
        level: Logging level name or number.
        fmt: Log record format string.

    Returns:
        The package root logger.
    """
    root = logging.getLogger("gemini_studio")
    root.setLevel(level.upper() if isinstance(level, str) else level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``gemini_studio`` namespace."""
    if name == "gemini_studio" or name.startswith("gemini_studio."):
        return logging.getLogger(name)
    return logging.getLogger(f"gemini_studio.{name}")


def mask_credential(credential: str | None) -> str:
    """Mask an API key for logging, keeping only a short prefix."""
    if not credential:
        return "<none>"
    if len(credential) <= 8:
        return "***"
    return credential[:4] + "..."
