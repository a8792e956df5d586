"""Logging configuration helpers."""

import logging

LOGGER_NAME = "nutrivision"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Attach one stream handler to the package logger and set its level.

    Repeated calls only change the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
