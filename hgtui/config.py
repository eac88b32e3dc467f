from __future__ import annotations

import argparse
import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path

from hgtui import __version__
from hgtui.fetch import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

MARKER_FILE_NAME = ".hgtui.toml"
LOG_FILE_NAME = ".hgtui.log"


@dataclass
class AppConfig:
    config_path: Path
    show_help: bool
    debug: bool
    base_url: str
    timeout_seconds: int


def parse_args(argv: list[str]) -> AppConfig:
    parser = argparse.ArgumentParser(
        prog="hgtui",
        description="A TUI toolkit to view HelloGitHub.",
    )
    parser.add_argument(
        "-p",
        "--path",
        default=os.getenv("HGTUI_CONFIG_PATH") or str(Path.home()),
        help="Directory holding the hgtui config and log files (default: home directory)",
    )
    parser.add_argument("-s", "--show-help", action="store_true", help="Show key bindings on start")
    parser.add_argument(
        "--debug",
        action="store_true",
        help=f"Write a debug log to <path>/{LOG_FILE_NAME}",
    )
    parser.add_argument("--base-url", default=os.getenv("HGTUI_BASE_URL") or DEFAULT_BASE_URL)
    parser.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT_SECONDS)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    if args.timeout < 1:
        raise ValueError("--timeout must be >= 1")
    if not args.base_url.startswith(("http://", "https://")):
        raise ValueError("--base-url must be an http(s) URL")

    return AppConfig(
        config_path=Path(args.path).expanduser(),
        show_help=args.show_help,
        debug=args.debug,
        base_url=args.base_url,
        timeout_seconds=args.timeout,
    )


def init_config(config_path: Path) -> bool:
    """Create the first-run marker file; True means this is the first run."""
    marker = config_path / MARKER_FILE_NAME
    if marker.exists():
        return False
    try:
        marker.touch()
    except OSError as exc:
        logger.debug("Cannot create %s: %s", marker, exc)
        return False
    return True


def configure_logging(config: AppConfig) -> str:
    """Install the debug log file handler.

    Returns a warning for the user when ``--debug`` was asked for but the log
    file cannot be opened; logging then stays off like a normal run.
    """
    if not config.debug:
        # The TUI owns the terminal, so nothing may reach stderr.
        logging.disable(logging.CRITICAL)
        return ""

    log_path = config.config_path / LOG_FILE_NAME
    try:
        config.config_path.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
    except OSError as exc:
        logging.disable(logging.CRITICAL)
        return f"Debug log disabled, cannot write {log_path}: {exc}"

    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(threadName)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)
    return ""
