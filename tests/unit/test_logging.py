"""Tests for structured logging setup."""

from __future__ import annotations

import json
import logging

from gamecfg.utils.logging import ROOT_LOGGER, setup_logging


class TestSetupLogging:
    def test_console_output(self, capfd):
        """setup_logging() should produce output on stdout."""
        setup_logging("DEBUG")
        logging.getLogger("gamecfg.test_console").info("hello console")
        out = capfd.readouterr().out
        assert "hello console" in out

    def test_log_level(self):
        setup_logging("WARNING")
        assert logging.getLogger(ROOT_LOGGER).level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("CHATTY")
        assert logging.getLogger(ROOT_LOGGER).level == logging.INFO

    def test_json_mode(self, capfd):
        """log_json=True should emit one JSON object per line."""
        setup_logging("INFO", log_json=True)
        logging.getLogger("gamecfg.test_json").info("json test")
        out = capfd.readouterr().out
        lines = [line for line in out.strip().splitlines() if "json test" in line]
        assert lines
        data = json.loads(lines[0])
        assert data["event"] == "json test"
        assert data["level"] == "info"
        assert data["logger"] == "gamecfg.test_json"

    def test_json_mode_formats_exceptions(self, capfd):
        setup_logging("INFO", log_json=True)
        try:
            raise RuntimeError("kaboom")
        except RuntimeError:
            logging.getLogger("gamecfg.test_exc").exception("it broke")
        out = capfd.readouterr().out
        line = next(line for line in out.splitlines() if "it broke" in line)
        assert "kaboom" in json.loads(line)["exception"]

    def test_file_logging(self, tmp_path):
        """log_file should create the file (and its parent) with content."""
        log_path = tmp_path / "logs" / "gamecfg.log"
        setup_logging("INFO", log_file=str(log_path))
        logging.getLogger("gamecfg.test_file").info("file test message")
        for handler in logging.getLogger(ROOT_LOGGER).handlers:
            handler.flush()
        assert log_path.exists()
        assert "file test message" in log_path.read_text()

    def test_repeated_setup_no_duplicate_handlers(self):
        setup_logging("INFO")
        count1 = len(logging.getLogger(ROOT_LOGGER).handlers)
        setup_logging("INFO")
        count2 = len(logging.getLogger(ROOT_LOGGER).handlers)
        assert count2 == count1 == 1

    def test_does_not_propagate_to_root(self):
        setup_logging("INFO")
        assert logging.getLogger(ROOT_LOGGER).propagate is False

    def test_other_loggers_untouched(self, capfd):
        setup_logging("DEBUG")
        logging.getLogger("someother.lib").debug("not ours")
        assert "not ours" not in capfd.readouterr().out
