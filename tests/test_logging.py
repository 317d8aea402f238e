"""Tests for logging.py"""

import logging
import sys

import pytest

from tiled_matmul.logging import configure_logging, get_logger


def test_get_logger_namespacing():
    assert get_logger().name == "tiled_matmul"
    assert get_logger("MatrixMulRunner").name == "tiled_matmul.MatrixMulRunner"


def test_configure_logging_does_not_duplicate_handlers():
    logger = configure_logging("INFO")
    handlers = list(logger.handlers)

    configure_logging("debug")

    assert logger.handlers == handlers
    assert logger.level == logging.DEBUG


def test_invalid_level_raises():
    with pytest.raises(ValueError, match="Invalid log_level"):
        configure_logging("TRACE")


if __name__ == "__main__":
    pytest.main(sys.argv)
