"""Tests for the gmx-mirror command line: argument parsing, the command
listener and the main() session flow."""

import io
import threading
from contextlib import contextmanager
from unittest.mock import patch

import pytest

from gmx_mirror import __version__
from gmx_mirror.cli import CommandListener, _build_parser, main
from gmx_mirror.config_loader import CONFIG_ENV_VAR
from gmx_mirror.sync.models import Direction, PathKind, SyncResult
from gmx_mirror.sync.reporter import LoggingSink

# -------------------------------------------------------------------------
# Argument parsing
# -------------------------------------------------------------------------


class TestParser:
    def test_defaults(self):
        args = _build_parser().parse_args([])
        assert args.project is None
        assert args.mirror_dir is None
        assert args.reverb_spacing is None
        assert args.debug is False
        assert args.no_commands is False

    def test_all_options(self):
        args = _build_parser().parse_args(
            [
                "example.gmx",
                "--mirror-dir", "edit",
                "--manifest", "example.gmx/example.project.gmx",
                "--reverb-spacing", "2.5",
                "--dedup-spacing", "0.05",
                "--log-file", "sync.log",
                "--log-format", "json",
                "--debug",
                "--no-commands",
            ]
        )
        assert args.project == "example.gmx"
        assert args.mirror_dir == "edit"
        assert args.reverb_spacing == 2.5
        assert args.dedup_spacing == 0.05
        assert args.log_format == "json"
        assert args.debug and args.no_commands

    def test_bad_log_format(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["--log-format", "xml"])

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


# -------------------------------------------------------------------------
# CommandListener
# -------------------------------------------------------------------------


class TestCommandListener:
    @pytest.fixture
    def sink(self):
        return LoggingSink()

    @pytest.fixture
    def out(self):
        return io.StringIO()

    @pytest.fixture
    def listener(self, sink, out):
        return CommandListener(sink, threading.Event(), stream=io.StringIO(), out=out)

    def test_help(self, listener, out):
        assert listener.execute("help") is True
        assert "quit" in out.getvalue()

    def test_status(self, listener, sink, out):
        sink.report(
            SyncResult(
                name="obj_enemy",
                direction=Direction.NATIVE_TO_MIRROR,
                kind=PathKind.NATIVE_OBJECT,
                success=True,
                timestamp=0.0,
            )
        )
        assert listener.execute("status") is True
        text = out.getvalue()
        assert "1 native -> mirror, 0 mirror -> native, 0 failed" in text
        assert "Last:" in text and "translated obj_enemy" in text

    def test_status_without_results(self, listener, out):
        listener.execute("status")
        assert "Last:" not in out.getvalue()

    @pytest.mark.parametrize("command", ["quit", "exit", "q"])
    def test_quit(self, listener, command):
        assert listener.execute(command) is False

    def test_blank_line(self, listener, out):
        assert listener.execute("") is True
        assert out.getvalue() == ""

    def test_unknown(self, listener, out):
        assert listener.execute("sync") is True
        assert "Unknown command 'sync'. Type 'help'." in out.getvalue()

    def test_run_stops_on_quit(self, sink, out):
        stop = threading.Event()
        listener = CommandListener(sink, stop, stream=io.StringIO("help\n  QUIT \nstatus\n"), out=out)
        listener.run()
        assert stop.is_set()
        assert "0 native -> mirror" not in out.getvalue()

    def test_eof_does_not_stop(self, sink, out):
        stop = threading.Event()
        CommandListener(sink, stop, stream=io.StringIO("help\n"), out=out).run()
        assert not stop.is_set()


# -------------------------------------------------------------------------
# main()
# -------------------------------------------------------------------------


@pytest.fixture
def isolated_cli(tmp_path, monkeypatch):
    """Empty home, no config env vars, no .env, no real logging setup."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    for key in ("GMX_MIRROR_PROJECT", "GMX_MIRROR_DIR", "GMX_MIRROR_MANIFEST"):
        monkeypatch.delenv(key, raising=False)
    with (
        patch("gmx_mirror.cli.load_dotenv"),
        patch("gmx_mirror.cli.setup_logging") as mock_logging,
    ):
        yield mock_logging


class TestMain:
    def test_init_config(self, tmp_path, monkeypatch, isolated_cli, capsys):
        monkeypatch.chdir(tmp_path)
        assert main(["--init-config"]) == 0
        assert (tmp_path / ".gmx_mirror" / "config.yml").is_file()
        assert "Config file:" in capsys.readouterr().err

    def test_no_project(self, tmp_path, monkeypatch, isolated_cli):
        monkeypatch.chdir(tmp_path)
        assert main(["--no-commands"]) == 1

    def test_bad_config_file(self, tmp_path, monkeypatch, isolated_cli):
        bad = tmp_path / "bad.yml"
        bad.write_text("logging:\n  format: xml\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(bad))
        assert main([]) == 1

    def test_session(self, gmx_project, monkeypatch, isolated_cli, capsys):
        monkeypatch.chdir(gmx_project.parent)
        seen = {}

        @contextmanager
        def fake_session(config, sink=None):
            seen["config"] = config
            seen["sink"] = sink
            yield object()

        with (
            patch("gmx_mirror.cli.mirror_session", fake_session),
            patch(
                "gmx_mirror.cli._install_signal_handlers",
                side_effect=lambda event: event.set(),
            ),
        ):
            code = main(["--no-commands", "--reverb-spacing", "2", "--log-format", "json"])

        assert code == 0
        assert seen["config"].reverb_spacing == 2.0
        assert seen["config"].project_dir == gmx_project.resolve()
        assert isinstance(seen["sink"], LoggingSink)
        assert isolated_cli.call_args[1]["log_format"] == "json"
        assert capsys.readouterr().err.rstrip().endswith("Success")

    def test_session_failure(self, gmx_project, monkeypatch, isolated_cli):
        monkeypatch.chdir(gmx_project.parent)

        @contextmanager
        def failing_session(config, sink=None):
            raise RuntimeError("Initial translation failed: line 1: boom")
            yield

        with (
            patch("gmx_mirror.cli.mirror_session", failing_session),
            patch("gmx_mirror.cli._install_signal_handlers"),
        ):
            assert main(["--no-commands"]) == 1
