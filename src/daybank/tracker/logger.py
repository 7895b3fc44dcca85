"""Logging setup for daybank.

Modules log through ``logging.getLogger(__name__)``; this module only decides
where the ``daybank`` logger tree writes to.
"""

import logging
import sys
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "daybank"

_HANDLER_MARK = "_daybank_handler"


def configure_logging(level: Union[int, str] = logging.WARNING, rich: bool = False) -> logging.Logger:
    """Attach a single handler to the ``daybank`` logger.

    Calling this again replaces the previously installed handler, so the CLI
    and tests can reconfigure freely.

    Args:
        level: Logging level name or number
        rich: Render through Rich (stderr) instead of a plain stream handler

    Returns:
        The configured ``daybank`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)

    if rich:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    setattr(handler, _HANDLER_MARK, True)
    logger.addHandler(handler)
    return logger
