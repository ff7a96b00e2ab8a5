"""
Tests for the output channel and logging setup.
"""

import logging
from unittest.mock import patch

from devsetup.core.observability.logging_config import _parse_level, setup_logging
from devsetup.core.observability.output import OutputChannel


class TestOutputChannel:
    def test_notify_always_visible(self, terminal):
        OutputChannel(verbose=False, terminal=terminal).notify("Installing ARM GNU toolchain...")
        assert terminal.getvalue() == "Installing ARM GNU toolchain...\n"

    def test_trace_hidden_when_quiet(self, terminal):
        OutputChannel(verbose=False, terminal=terminal).trace("detail")
        assert terminal.getvalue() == ""

    def test_trace_visible_when_verbose(self, terminal):
        OutputChannel(verbose=True, terminal=terminal).trace("detail")
        assert terminal.getvalue() == "detail\n"

    def test_log_error_not_on_terminal(self, terminal, caplog):
        with caplog.at_level(logging.ERROR):
            OutputChannel(terminal=terminal).log_error("Fatal: thing failed")
        assert terminal.getvalue() == ""
        assert "Fatal: thing failed" in caplog.text

    def test_notify_recorded_in_log(self, terminal, caplog):
        with caplog.at_level(logging.INFO):
            OutputChannel(terminal=terminal).notify("hello")
        assert "hello" in caplog.text

    def test_terminal_captured_at_construction(self, terminal):
        out = OutputChannel(terminal=terminal)
        with out.terminal() as stream:
            assert stream is terminal

    @patch("devsetup.core.observability.output.click.prompt", return_value="alice")
    def test_prompt(self, mock_prompt):
        assert OutputChannel().prompt("Enter your Git username") == "alice"
        assert mock_prompt.call_args.kwargs["show_default"] is False

    @patch("devsetup.core.observability.output.click.prompt", return_value="")
    def test_hidden_prompt_with_empty_default(self, mock_prompt):
        assert OutputChannel().prompt("Passphrase", hide_input=True, default="") == ""
        assert mock_prompt.call_args.kwargs["hide_input"] is True

    @patch("devsetup.core.observability.output.click.confirm", return_value=True)
    def test_confirm(self, _mock):
        assert OutputChannel().confirm("Proceed?")


class TestSetupLogging:
    def test_file_truncated_each_run(self, tmp_path):
        log = tmp_path / "setup-errors.log"
        log.write_text("stale content from last run\n")
        path = setup_logging(log)
        logging.getLogger("devsetup.test").error("fresh error")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert path == log
        text = log.read_text()
        assert "stale content" not in text
        assert "fresh error" in text

    def test_no_console_handler_when_quiet(self, tmp_path):
        setup_logging(tmp_path / "x.log")
        stream_handlers = [
            h for h in logging.getLogger().handlers
            if type(h) is logging.StreamHandler
        ]
        assert stream_handlers == []

    def test_console_handler_when_verbose(self, tmp_path):
        setup_logging(tmp_path / "x.log", console_level="DEBUG")
        root = logging.getLogger()
        assert any(type(h) is logging.StreamHandler for h in root.handlers)
        assert root.level == logging.DEBUG

    def test_no_file(self):
        assert setup_logging(None) is None
        assert logging.getLogger().handlers

    def test_echoed_records_skipped_on_console(self, tmp_path, capsys):
        setup_logging(None, console_level="DEBUG")
        log = logging.getLogger("devsetup.test")
        log.info("already shown", extra={"echoed": True})
        log.info("only in log")
        err = capsys.readouterr().err
        assert "already shown" not in err

    def test_parse_level(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("bogus") == logging.WARNING
        assert _parse_level(None) == logging.WARNING
