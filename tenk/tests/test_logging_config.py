"""Tests for process logging setup."""

import logging
import pytest


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_console_and_file_handlers(self, tmp_path, restore_root):
        from logging.handlers import RotatingFileHandler
        from tenk.common.logging_config import setup_logging

        log_file = tmp_path / "logs" / "advisor.log"
        root = setup_logging(log_file=log_file)

        assert len(root.handlers) == 2
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG

        logging.getLogger("tenk.retriever.selector").debug("picked #2")
        file_handlers[0].flush()
        assert "picked #2" in log_file.read_text(encoding="utf-8")

    def test_repeated_setup_does_not_duplicate(self, tmp_path, restore_root):
        from tenk.common.logging_config import setup_logging

        first = setup_logging(log_file=tmp_path / "a.log")
        old_file = [h for h in first.handlers if isinstance(h, logging.FileHandler)][0]
        root = setup_logging(log_file=tmp_path / "a.log")

        assert len(root.handlers) == 2
        assert old_file not in root.handlers
        assert old_file.stream is None
