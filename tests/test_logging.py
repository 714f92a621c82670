"""Tests for logging setup."""

import logging

import pytest

from gdrive_sync.utils.logging import LOGGER_NAME, TimedOperation, setup_logging


@pytest.fixture
def package_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


class TestSetupLogging:
    """Test handler wiring."""

    def test_file_gets_debug_records(self, tmp_path, package_logger):
        log_file = tmp_path / "logs" / "sync.log"

        logger = setup_logging(log_level="WARNING", log_file=log_file, log_to_console=False)
        logging.getLogger(f"{LOGGER_NAME}.sync").debug("upload file a.txt")

        assert logger.level == logging.DEBUG
        assert "upload file a.txt" in log_file.read_text(encoding="utf-8")

    def test_repeated_setup_replaces_handlers(self, tmp_path, package_logger):
        setup_logging(log_file=tmp_path / "a.log")
        logger = setup_logging(log_file=tmp_path / "b.log")
        assert len(logger.handlers) == 2

    def test_console_only_uses_requested_level(self, package_logger):
        logger = setup_logging(log_level="error")
        assert logger.level == logging.ERROR
        assert len(logger.handlers) == 1

    def test_quiets_http_libraries(self, package_logger):
        setup_logging(log_to_console=False)
        assert logging.getLogger("urllib3").level == logging.WARNING


class TestTimedOperation:
    """Test TimedOperation."""

    def test_records_elapsed(self, tmp_path, package_logger):
        logger = setup_logging(log_file=tmp_path / "t.log", log_to_console=False)

        with TimedOperation(logger, "sync of /data") as timer:
            pass

        assert timer.elapsed >= 0
        assert "sync of /data: done" in (tmp_path / "t.log").read_text(encoding="utf-8")

    def test_logs_failure_and_reraises(self, tmp_path, package_logger):
        logger = setup_logging(log_file=tmp_path / "t.log", log_to_console=False)

        with pytest.raises(RuntimeError):
            with TimedOperation(logger, "sync"):
                raise RuntimeError("boom")

        assert "sync: failed after" in (tmp_path / "t.log").read_text(encoding="utf-8")
