"""Tests for logging setup."""

import logging

from bridgeroute.config import Settings
from bridgeroute.utils.logs import setup_logging


def test_debug_level():
    setup_logging(Settings(_env_file=None, debug=True))

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_explicit_level_wins():
    setup_logging(Settings(_env_file=None, debug=True, log_level="error"))

    assert logging.getLogger().level == logging.ERROR
