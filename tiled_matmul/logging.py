"""Package-wide logger helpers."""

from __future__ import annotations

import logging
from typing import Optional

_ROOT_NAME = "tiled_matmul"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
_DATE_FORMAT = "%H:%M:%S"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the ``tiled_matmul`` namespace.

    Parameters
    ----------
    name : Optional[str]
        Component name, e.g. ``"MatrixMulRunner"``. ``None`` returns the package root logger.

    Returns
    -------
    logging.Logger
        The named logger.
    """
    if not name:
        return logging.getLogger(_ROOT_NAME)
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


def configure_logging(log_level: str = "INFO") -> logging.Logger:
    """Attach a single stream handler to the package root logger.

    Calling this more than once only updates the level; handlers are never duplicated.

    Parameters
    ----------
    log_level : str
        One of ``DEBUG``, ``INFO``, ``WARNING`` or ``ERROR``.

    Returns
    -------
    logging.Logger
        The configured package root logger.
    """
    log_level = log_level.upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"Invalid log_level: {log_level}")

    logger = get_logger()
    logger.setLevel(getattr(logging, log_level))
    if not any(getattr(h, "_tiled_matmul_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        handler._tiled_matmul_handler = True
        logger.addHandler(handler)
    return logger
