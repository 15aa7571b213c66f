"""
Logging setup for the Storefront backend.

Modules log through ``logging.getLogger(__name__)``; this only installs the
root handler and level once per process.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the root logger.

    Safe to call more than once (e.g. from every create_app() in tests);
    only the level is updated after the first call.

    Args:
        level: Log level name such as "DEBUG" or "INFO"
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(level.upper())

    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # httpx logs every PostgREST request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True
