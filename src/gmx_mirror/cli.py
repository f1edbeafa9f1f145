"""Command-line entry point for gmx-mirror."""

import argparse
import logging
import signal
import sys
import threading
from typing import TextIO

from dotenv import load_dotenv

from . import __version__
from .config_loader import ensure_config
from .lifespan import load_unified_config, mirror_session, resolve_config
from .logger import setup_logging
from .sync.reporter import LoggingSink, format_result, format_session_summary

logger = logging.getLogger(__name__)

_HELP_TEXT = """\
Commands:
  help    show this message
  status  show translation counts and the last result
  quit    stop syncing and remove the mirror directory"""


class CommandListener(threading.Thread):
    """Read ``help`` / ``status`` / ``quit`` commands from a stream.

    Only reads the sink's tally; never touches the engine.  ``quit`` and
    end of input set *stop_event*.

    Args:
        sink: Sink whose tally ``status`` prints.
        stop_event: Set to end the session.
        stream: Input stream (stdin by default).
        out: Where replies are written (stderr by default).
    """

    def __init__(
        self,
        sink: LoggingSink,
        stop_event: threading.Event,
        stream: TextIO | None = None,
        out: TextIO | None = None,
    ) -> None:
        super().__init__(name="gmx-mirror-commands", daemon=True)
        self.sink = sink
        self.stop_event = stop_event
        self.stream = stream or sys.stdin
        self.out = out or sys.stderr

    def run(self) -> None:
        for line in self.stream:
            if self.stop_event.is_set():
                return
            if not self.execute(line.strip().lower()):
                self.stop_event.set()
                return
        # EOF on a non-interactive stdin is not a request to stop.

    def execute(self, command: str) -> bool:
        """Run one command; return ``False`` when the session should stop."""
        if not command:
            return True
        if command in ("quit", "exit", "q"):
            return False
        if command == "help":
            self._reply(_HELP_TEXT)
        elif command == "status":
            self._reply(format_session_summary(self.sink.snapshot()))
            last = self.sink.last
            if last is not None:
                self._reply(f"Last: {format_result(last)}")
        else:
            self._reply(f"Unknown command '{command}'. Type 'help'.")
        return True

    def _reply(self, text: str) -> None:
        print(text, file=self.out, flush=True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gmx-mirror",
        description="Keep a GameMaker: Studio project and an editable text mirror in sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mirror the single *.gmx project in the current directory into ./NiceObjects
  gmx-mirror

  # Explicit project and mirror location
  gmx-mirror example.gmx --mirror-dir ~/edit/example

  # Longer reverb window for slow network drives
  gmx-mirror example.gmx --reverb-spacing 2.5

  # Structured logs to a file
  gmx-mirror --log-file gmx-mirror.log --log-format json

The mirror directory is removed when the session ends (Ctrl-C or 'quit').
        """,
    )
    parser.add_argument(
        "project",
        nargs="?",
        help="GameMaker project directory (takes precedence over GMX_MIRROR_PROJECT and config files)",
    )
    parser.add_argument(
        "--mirror-dir",
        help="Mirror directory (default: ./NiceObjects)",
    )
    parser.add_argument(
        "--manifest",
        help="Path to <Project>.project.gmx (default: discovered in the project directory)",
    )
    parser.add_argument(
        "--reverb-spacing",
        type=float,
        help="Seconds after a translation during which changes on the other side are ignored (default: 1.0)",
    )
    parser.add_argument(
        "--dedup-spacing",
        type=float,
        help="Seconds within which repeated changes of one file are ignored (default: 0.1)",
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        help="Log line format (default: text)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-commands",
        action="store_true",
        help="Do not read commands from stdin",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a starter .gmx_mirror/config.yml and exit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"gmx-mirror version {__version__}",
    )
    return parser


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def _handler(signum, frame):
        logger.info("Signal %s received", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handler)


def main(argv: list[str] | None = None) -> int:
    """Run one session; return the process exit status."""
    args = _build_parser().parse_args(argv)

    if args.init_config:
        path = ensure_config()
        print(f"Config file: {path}", file=sys.stderr)
        return 0

    # .env before YAML so ${VAR} interpolation can use .env values
    load_dotenv()

    try:
        unified = load_unified_config()
    except RuntimeError:
        return 1

    setup_logging(
        debug=args.debug or unified.sync.debug,
        log_file=args.log_file or unified.logging.file,
        log_format=args.log_format or unified.logging.format,
        level=unified.logging.level,
    )

    overrides = {}
    for key in ("project", "mirror_dir", "manifest", "reverb_spacing", "dedup_spacing"):
        value = getattr(args, key)
        if value is not None:
            overrides[key] = value
    if args.debug:
        overrides["debug"] = True
    if overrides:
        logger.info("Config overrides from CLI: %s", ", ".join(sorted(overrides)))

    try:
        config = resolve_config(unified, overrides)
    except RuntimeError:
        return 1

    if config.debug and not args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    stop_event = threading.Event()
    _install_signal_handlers(stop_event)
    sink = LoggingSink()

    try:
        with mirror_session(config, sink=sink):
            if not args.no_commands:
                CommandListener(sink, stop_event).start()
            while not stop_event.wait(0.5):
                pass
    except RuntimeError as e:
        logger.error("%s", e)
        return 1

    logger.info("Session summary: %s", format_session_summary(sink.snapshot()))
    print("Success", file=sys.stderr)
    return 0


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
