"""Centralized logging configuration for the family steward bridge."""

import logging
import sys
from typing import Final

from family_steward.environment import get_log_level

# Packages that should have their minimum logging level set to INFO
_VERBOSE_PACKAGES: Final[set[str]] = {
    "asyncio",  # subprocess and event loop chatter
    "mcp",  # protocol model library
}


def configure_logging() -> None:
    """Configure logging based on FAMILY_STEWARD_LOG_LEVEL (default: INFO).

    Everything goes to stderr: stdout belongs to the protocol stream.
    Forces verbose packages to log at INFO minimum level.
    """
    try:
        level = get_log_level("LOG_LEVEL", logging.INFO)
    except ValueError:
        # Use basic logging to report the error since we haven't configured logging yet
        logging.basicConfig(level=logging.ERROR, stream=sys.stderr)
        log = logging.getLogger(__name__)
        log.exception("Failed to configure logging")
        raise

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    for package in _VERBOSE_PACKAGES:
        logger = logging.getLogger(package)
        logger.setLevel(max(level, logging.INFO))

    log = logging.getLogger(__name__)
    log.debug("Logging configured at level %s", logging.getLevelName(level))
