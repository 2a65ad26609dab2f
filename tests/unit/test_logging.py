"""Tests for package logging helpers."""
import logging

import pytest

from driveupload import setup_logging
from driveupload.core.logging import get_logger, PACKAGE_LOGGER


@pytest.fixture
def restore_levels():
    """Reset levels touched by a test."""
    names = [PACKAGE_LOGGER, 'driveupload.upload.chunk', 'driveupload.api.metadata']
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


class TestLogging:
    """Test suite for get_logger and setup_logging."""

    def test_short_name_is_prefixed(self):
        assert get_logger('upload.chunk') is logging.getLogger('driveupload.upload.chunk')

    def test_full_name_kept(self):
        assert get_logger('driveupload.api.metadata').name == 'driveupload.api.metadata'
        assert get_logger(PACKAGE_LOGGER).name == PACKAGE_LOGGER

    def test_foreign_prefix_not_matched(self):
        assert get_logger('driveuploader').name == 'driveupload.driveuploader'

    def test_setup_logging_sets_existing_loggers(self, restore_levels):
        """Test setup_logging reaches loggers created before it ran."""
        chunk_logger = get_logger('upload.chunk')

        setup_logging(logging.DEBUG)

        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG
        assert chunk_logger.level == logging.DEBUG
        assert chunk_logger.isEnabledFor(logging.DEBUG)
