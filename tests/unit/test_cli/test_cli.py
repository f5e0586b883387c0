"""Tests for the crudline command-line interface."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from crudline.cli import _serve, main, parse_args
from crudline.config.settings import Settings


@pytest.fixture(autouse=True)
def restore_logging(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Undo setup_logging() changes made by main()."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CRUDLINE_PORT", raising=False)
    pkg_logger = logging.getLogger("crudline")
    level, handlers = pkg_logger.level, list(pkg_logger.handlers)
    yield
    for handler in list(pkg_logger.handlers):
        if handler not in handlers:
            pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(level)


def write_config(tmp_path: Path, port: int) -> Path:
    path = tmp_path / "crudline.yaml"
    path.write_text(f"client:\n  port: {port}\n  timeout: 2.0\n")
    return path


class TestParseArgs:
    def test_serve(self) -> None:
        args = parse_args(["serve"])
        assert args.command == "serve"
        assert args.config is None
        assert args.verbose is False

    def test_send_with_options(self) -> None:
        args = parse_args(["-v", "-c", "other.yaml", "send", "CREATE|42"])
        assert args.command == "send"
        assert args.line == "CREATE|42"
        assert args.verbose is True
        assert args.config == Path("other.yaml")

    def test_no_command_prints_help(self) -> None:
        with pytest.raises(SystemExit):
            main([])


class TestSendCommand:
    def test_send_ok(
        self, tmp_path: Path, server_address: tuple[str, int], capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = write_config(tmp_path, server_address[1])
        assert main(["-c", str(config), "send", "CREATE|42"]) == 0
        assert capsys.readouterr().out.strip() == "OK|CREATE"

    def test_send_unknown(
        self, tmp_path: Path, server_address: tuple[str, int], capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = write_config(tmp_path, server_address[1])
        assert main(["-c", str(config), "send", "PING"]) == 2
        assert capsys.readouterr().out.strip() == "ERROR|UNKNOWN"

    def test_send_no_server(
        self, tmp_path: Path, free_port: int, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = write_config(tmp_path, free_port)
        assert main(["-c", str(config), "send", "SHAKE"]) == 1
        assert "Error sending SHAKE" in capsys.readouterr().err


class TestServeCommand:
    def test_serve_starts_server_once(self) -> None:
        settings = Settings()
        stop = threading.Event()
        stop.set()
        with patch("crudline.server.lifecycle.start_server") as mock_start:
            assert _serve(settings, stop) == 0
        mock_start.assert_called_once_with(settings.server)

    def test_main_serve_dispatches(self, tmp_path: Path) -> None:
        with patch("crudline.cli._serve", return_value=0) as mock_serve:
            assert main(["-c", str(tmp_path / "missing.yaml"), "serve"]) == 0
        mock_serve.assert_called_once()
