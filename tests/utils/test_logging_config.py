"""Tests for logging configuration."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from ultra_plan.utils.logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_package_logger():
    package_logger = logging.getLogger("ultra_plan")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield
    for handler in package_logger.handlers:
        if handler not in handlers:
            handler.close()
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)


@pytest.mark.unit
class TestSetupLogging:
    def test_stderr_only_by_default(self):
        logger = setup_logging()
        assert logger.name == "ultra_plan"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_explicit_level(self):
        logger = setup_logging(level="debug")
        assert logger.level == logging.DEBUG

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("ULTRA_PLAN_LOG_LEVEL", "WARNING")
        logger = setup_logging()
        assert logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logging(level="chatty")
        assert logger.level == logging.INFO

    def test_file_handler_created(self, tmp_path):
        log_dir = tmp_path / "logs"
        logger = setup_logging(level="INFO", log_dir=log_dir)

        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert log_dir.is_dir()

        logging.getLogger("ultra_plan.training_plan.safety").info("written to file")
        file_handlers[0].flush()
        assert "written to file" in (log_dir / "ultra_plan.log").read_text()

    def test_repeated_calls_do_not_duplicate_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1
