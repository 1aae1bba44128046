from __future__ import annotations

import io
import pytest
import logging
from typing import Generator
from unittest.mock import MagicMock, patch

import depatlas.utils.logger as logger_module
from depatlas.utils.logger import (
    ColoredFormatter,
    disable_logging,
    get_logger,
    is_logging_configured,
    level_for_verbosity,
    setup_logging,
)


@pytest.fixture
def clean_logger_state() -> Generator[None, None, None]:
    """Reset the ``depatlas`` logger before and after each test.

    Yields:
        None
    """
    root_logger = logging.getLogger("depatlas")
    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)
    logger_module._configured = False

    yield

    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True
    logger_module._configured = False


@pytest.fixture
def captured_stream() -> io.StringIO:
    """Provide a StringIO stream for capturing log output."""
    return io.StringIO()


def _tty_stream() -> MagicMock:
    stream = MagicMock()
    stream.isatty.return_value = True
    return stream


def _record(level: int = logging.INFO, msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("depatlas.test", level, __file__, 1, msg, None, None)


@pytest.mark.unit
class TestColoredFormatter:
    """Tests for ColoredFormatter ANSI color formatting."""

    def test_color_disabled_for_non_tty(self, captured_stream: io.StringIO) -> None:
        """StringIO is not a terminal, so no escapes are emitted."""
        formatter = ColoredFormatter("%(levelname)s: %(message)s", stream=captured_stream)

        assert formatter.use_color is False
        assert formatter.format(_record()) == "INFO: hello"

    def test_color_enabled_for_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        formatter = ColoredFormatter("%(levelname)s: %(message)s", stream=_tty_stream())

        output = formatter.format(_record(logging.ERROR))

        assert formatter.use_color is True
        assert output.startswith("\033[31mERROR\033[0m")

    @pytest.mark.parametrize("env_var", ["NO_COLOR", "CI"])
    def test_env_disables_color(self, monkeypatch: pytest.MonkeyPatch, env_var: str) -> None:
        monkeypatch.setenv(env_var, "1")
        formatter = ColoredFormatter("%(levelname)s", stream=_tty_stream())

        assert formatter.use_color is False

    def test_explicit_opt_out(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        formatter = ColoredFormatter("%(levelname)s", stream=_tty_stream(), use_color=False)

        assert formatter.use_color is False

    def test_isatty_raising_means_no_color(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        stream = MagicMock()
        stream.isatty.side_effect = ValueError("closed")

        assert ColoredFormatter("%(message)s", stream=stream).use_color is False

    def test_format_restores_levelname(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Other handlers must see the untouched record."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        formatter = ColoredFormatter("%(levelname)s", stream=_tty_stream())
        record = _record(logging.WARNING)

        formatter.format(record)

        assert record.levelname == "WARNING"


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging and friends."""

    def test_emits_to_stream(self, clean_logger_state: None, captured_stream: io.StringIO) -> None:
        setup_logging(level=logging.INFO, stream=captured_stream)

        get_logger("graph").info("Built graph")

        assert "INFO: Built graph" in captured_stream.getvalue()
        assert is_logging_configured()

    def test_level_filters(self, clean_logger_state: None, captured_stream: io.StringIO) -> None:
        setup_logging(level=logging.WARNING, stream=captured_stream)

        get_logger("graph").info("hidden")
        get_logger("graph").warning("shown")

        assert "hidden" not in captured_stream.getvalue()
        assert "shown" in captured_stream.getvalue()

    def test_verbose_format_includes_logger_name(
        self, clean_logger_state: None, captured_stream: io.StringIO
    ) -> None:
        setup_logging(level=logging.DEBUG, verbose=True, stream=captured_stream)

        get_logger("registry").debug("lookup")

        assert "depatlas.registry" in captured_stream.getvalue()

    def test_repeated_setup_replaces_handler(self, clean_logger_state: None) -> None:
        setup_logging(stream=io.StringIO())
        setup_logging(stream=io.StringIO())

        assert len(logging.getLogger("depatlas").handlers) == 1

    def test_disable_logging(self, clean_logger_state: None, captured_stream: io.StringIO) -> None:
        setup_logging(stream=captured_stream)
        disable_logging()

        get_logger().error("silenced")

        assert captured_stream.getvalue() == ""
        assert not is_logging_configured()
        assert isinstance(logging.getLogger("depatlas").handlers[0], logging.NullHandler)


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger naming."""

    def test_root(self) -> None:
        assert get_logger().name == "depatlas"
        assert get_logger("depatlas").name == "depatlas"

    def test_child_names_are_qualified_once(self) -> None:
        assert get_logger("graph").name == "depatlas.graph"
        assert get_logger("depatlas.graph") is get_logger("graph")

    def test_null_handler_installed(self, clean_logger_state: None) -> None:
        get_logger("anything")

        handlers = logging.getLogger("depatlas").handlers
        assert any(isinstance(h, logging.NullHandler) for h in handlers)


@pytest.mark.unit
class TestLevelForVerbosity:
    @pytest.mark.parametrize(
        "verbose, level",
        [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
    )
    def test_mapping(self, verbose: int, level: int) -> None:
        assert level_for_verbosity(verbose) == level

    def test_setup_logging_uses_stderr_by_default(self, clean_logger_state: None) -> None:
        fake_stderr = io.StringIO()
        with patch("depatlas.utils.logger.sys.stderr", fake_stderr):
            setup_logging(level=logging.INFO)
            get_logger().info("to stderr")

        assert "to stderr" in fake_stderr.getvalue()
