"""
Logging setup for the approval engine.

All modules log under the "autoapprove" namespace. Nothing is configured on
import; applications call configure_logging() once.
"""
import logging
from typing import Optional

_logger = logging.getLogger("autoapprove")

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    level: int = logging.INFO,
    handler: Optional[logging.Handler] = None,
    format_string: Optional[str] = None,
) -> None:
    """
    Attach a handler to the "autoapprove" logger.

    Calling it again replaces the previously installed handler instead of
    stacking a second one.
    """
    if handler is None:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))

    for existing in list(_logger.handlers):
        if getattr(existing, "_autoapprove_handler", False):
            _logger.removeHandler(existing)

    handler._autoapprove_handler = True
    _logger.addHandler(handler)
    _logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the package namespace."""
    if name.startswith("autoapprove"):
        return logging.getLogger(name)
    return logging.getLogger(f"autoapprove.{name}")
