"""CLI/bootstrap helpers for the Space Coast Devs reader."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from spacecoast_reader.action_messages import build_actionable_error
from spacecoast_reader.config import (
    get_config_path,
    get_default_log_path,
    get_host_key_path,
    load_config,
    save_config,
)
from spacecoast_reader.models import UserConfig

logger = logging.getLogger(__name__)

LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

LAUNCH_MODES = ("local", "ssh")


def _configure_logging(debug: bool, log_file: Path | None = None) -> None:
    """Send log records to the rotating diagnostic log file.

    INFO and above are always recorded; ``debug`` lowers the level to DEBUG.
    Nothing goes to the terminal since the TUI owns it.
    """
    log_path = log_file or get_default_log_path()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        print(f"Warning: diagnostic log disabled ({log_path}: {e})", file=sys.stderr)
        logging.disable(logging.CRITICAL)
        return
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(process)d %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG if debug else logging.INFO)


def _configure_color_mode(color_mode: str) -> None:
    """Configure environment hints for terminal color behavior."""
    if color_mode == "never":
        os.environ["NO_COLOR"] = "1"
        os.environ.pop("FORCE_COLOR", None)
        return
    if color_mode == "always":
        os.environ["FORCE_COLOR"] = "1"
        os.environ.pop("NO_COLOR", None)
        return
    # auto
    os.environ.pop("FORCE_COLOR", None)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _acquire_controlling_tty() -> None:
    """Claim the terminal on stdin as this session's controlling terminal."""
    import fcntl
    import termios

    try:
        fcntl.ioctl(sys.stdin.fileno(), termios.TIOCSCTTY, 0)
    except OSError as e:
        logger.warning("Could not claim the session terminal: %s", e)


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be between 1 and 65535, got {port}")
    return port


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spacecoast-reader",
        description="Read the Space Coast Devs blog in a terminal UI",
    )
    parser.add_argument(
        "mode",
        nargs="?",
        choices=LAUNCH_MODES,
        default="local",
        help="local: run in this terminal (default); ssh: serve the reader over SSH",
    )
    parser.add_argument(
        "--latest",
        action="store_true",
        help="Open the newest post as soon as the list has loaded",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log at DEBUG level (default log: ~/.config/spacecoast-reader/debug.log)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write the diagnostic log to this file instead of the config directory",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output mode for terminal UI (default: auto)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable terminal colors (equivalent to --color never)",
    )
    source = parser.add_argument_group("content source")
    source.add_argument("--owner", default=None, help="Repository owner (default: config value)")
    source.add_argument("--repo", default=None, help="Repository name (default: config value)")
    source.add_argument(
        "--path",
        dest="content_path",
        default=None,
        help="Directory holding the posts (default: config value)",
    )
    ssh = parser.add_argument_group("ssh mode")
    ssh.add_argument("--host", default=None, help="Address to listen on (default: config value)")
    ssh.add_argument("--port", type=_port, default=None, help="Port to listen on (default: 22)")
    ssh.add_argument(
        "--host-key",
        type=Path,
        default=None,
        help="Private host key file (default: ssh_host_key in the config directory)",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write the effective configuration to the config file and exit",
    )
    # Set by the ssh server for each session process
    parser.add_argument("--session-tty", action="store_true", help=argparse.SUPPRESS)
    return parser


def _apply_cli_overrides(config: UserConfig, args: argparse.Namespace) -> None:
    """Apply per-run flag overrides on top of the loaded config."""
    overrides = {
        "owner": args.owner,
        "repo": args.repo,
        "content_path": args.content_path,
        "ssh_host": args.host,
        "ssh_port": args.port,
        "ssh_host_key": str(args.host_key) if args.host_key is not None else None,
    }
    for attr, value in overrides.items():
        if value is not None:
            setattr(config, attr, value)


def _build_child_args(args: argparse.Namespace) -> list[str]:
    """Flags handed to each per-session reader process in ssh mode."""
    child_args: list[str] = []
    if args.latest:
        child_args.append("--latest")
    if args.debug:
        child_args.append("--debug")
    if args.log_file is not None:
        child_args.extend(["--log-file", str(args.log_file)])
    if args.no_color:
        child_args.append("--no-color")
    elif args.color != "auto":
        child_args.extend(["--color", args.color])
    for flag, value in (
        ("--owner", args.owner),
        ("--repo", args.repo),
        ("--path", args.content_path),
    ):
        if value is not None:
            child_args.extend([flag, value])
    return child_args


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    save_config_fn: Callable[[UserConfig], bool] = save_config,
    configure_logging_fn: Callable[[bool, Path | None], None] = _configure_logging,
    configure_color_mode_fn: Callable[[str], None] = _configure_color_mode,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    acquire_controlling_tty_fn: Callable[[], None] = _acquire_controlling_tty,
    app_factory: Callable[..., Any] | None = None,
    serve_fn: Callable[..., int] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    args = _build_parser().parse_args(argv)

    color_mode = "never" if args.no_color else args.color
    configure_color_mode_fn(color_mode)
    configure_logging_fn(args.debug, args.log_file)
    logger.debug("spacecoast-reader starting, mode=%s, pid=%d", args.mode, os.getpid())

    config = load_config_fn()
    _apply_cli_overrides(config, args)

    if args.init_config:
        if not save_config_fn(config):
            print(
                build_actionable_error(
                    "write the config file",
                    why=f"{get_config_path()} is not writable",
                    next_step="check the directory permissions and try again",
                ),
                file=sys.stderr,
            )
            return 1
        print(f"Wrote configuration to {get_config_path()}")
        return 0

    if args.mode == "ssh":
        if serve_fn is None:
            from spacecoast_reader.ssh_server import serve as _serve

            serve_fn = _serve
        return serve_fn(
            config,
            host_key_path=get_host_key_path(config),
            child_args=_build_child_args(args),
        )

    if args.session_tty:
        acquire_controlling_tty_fn()

    if not validate_interactive_tty_fn():
        print(
            "Error: spacecoast-reader requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run spacecoast-reader directly in a terminal session", file=sys.stderr)
        print("  - Use 'spacecoast-reader ssh' to serve the reader to SSH clients", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    if app_factory is None:
        from spacecoast_reader.app import ContentBrowser as _ContentBrowser

        app_factory = _ContentBrowser

    app = app_factory(config, open_latest=args.latest)
    app.run()
    logger.debug("spacecoast-reader exited normally")
    return 0


__all__ = [
    "LAUNCH_MODES",
    "_apply_cli_overrides",
    "_build_child_args",
    "_configure_color_mode",
    "_configure_logging",
    "_validate_interactive_tty",
    "main",
]
