"""Logging configuration helpers."""

import logging

PACKAGE_LOGGER = "macro_tracker"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Attach one stream handler to the package logger and apply ``level``.

    ``level`` accepts a number or a level name such as ``"DEBUG"``, so the
    value can come straight from settings. Repeated calls only update the level.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
