from __future__ import annotations

import logging
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(debug: bool = False, stream: Optional[TextIO] = None) -> logging.Logger:
    """Attach a single stderr handler to the ``baish`` logger.

    Warnings and errors are always shown; ``debug`` turns on request
    and parsing details.  Calling this again replaces the handler.
    """
    logger = logging.getLogger("baish")
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

    logging.captureWarnings(True)
    return logger
