"""
Unit tests for the log file setup.
"""
from loguru import logger

from ibs3.utils.logging import LOG_FILE, setup_logging


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_log_file(self, tmp_path):
        log_dir = tmp_path / 'logs'
        handler = setup_logging(log_dir, 'WARNING')
        try:
            logger.info('not written')
            logger.warning('upload of base_photos_2024-03-05.tar.gz failed')
        finally:
            logger.remove(handler)

        content = (log_dir / LOG_FILE).read_text()
        assert 'WARNING | upload of base_photos_2024-03-05.tar.gz failed' in content
        assert 'not written' not in content
