"""
Logging setup for applications embedding the client.

Library modules only create named loggers; handlers are installed here
on request.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send hwsecure log records to stdout at the given level."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("hwsecure").setLevel(getattr(logging, level.upper()))
