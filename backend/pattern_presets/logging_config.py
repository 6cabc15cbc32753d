"""
Logging setup for the service and the CLI.

Root handler via logging.basicConfig; modules log through
logging.getLogger(__name__).
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure logging for the current sys.stderr and set the level.

    Safe to call repeatedly: force=True replaces the previous handler,
    so a swapped or closed stderr is never written to again.
    Unknown level names fall back to INFO.
    """
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(level=resolved, format=LOG_FORMAT, force=True)

    package_logger = logging.getLogger("pattern_presets")
    package_logger.setLevel(resolved)
    return package_logger
