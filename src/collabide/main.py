"""Command-line entry point: logging setup and the uvicorn server."""

from __future__ import annotations

import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Sequence

import uvicorn

from collabide import config
from collabide.utils import load_settings
from collabide.web.app import create_app

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
LOG_FILE_NAME = "collabide.log"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5
LOGGER = logging.getLogger(__name__)

_logging_ready = False


def configure_logging(logs_root: Path | None = None, *, console_level: int = logging.INFO) -> Path:
    """Route every logger to the console and to a rotating file; return the log path.

    Repeated calls are no-ops so that tests and embedding code can call this
    freely. uvicorn's loggers are made to propagate to the root handlers.
    """
    global _logging_ready
    directory = logs_root or config.DATA_DIR / "logs"
    log_path = directory / LOG_FILE_NAME
    if _logging_ready:
        return log_path

    directory.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(formatter)

    rotating = RotatingFileHandler(log_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    rotating.setLevel(logging.DEBUG)
    rotating.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [console, rotating]
    root.setLevel(logging.DEBUG)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True

    _logging_ready = True
    return log_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="collabide",
        description="Serve the collabide agent and presence API.",
    )
    parser.add_argument("--host", help="Interface to bind (default from settings)")
    parser.add_argument("--port", type=int, help="Port to listen on (default from settings)")
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="Keep files in memory and the mirror only; skip the sqlite store",
    )
    parser.add_argument("--log-dir", type=Path, help="Directory for rotating log files")
    parser.add_argument("--verbose", action="store_true", help="Show DEBUG lines on the console")
    return parser


def resolve_settings(args: argparse.Namespace) -> dict[str, Any]:
    """Load settings and apply command-line overrides on top."""
    settings = load_settings()
    if args.host:
        settings["host"] = args.host
    if args.port:
        settings["port"] = args.port
    if args.no_persist:
        settings["persist"] = False
    return settings


def run(settings: dict[str, Any]) -> int:
    app = create_app(settings)
    LOGGER.info(
        "Serving collabide %s | host=%s | port=%s | persist=%s",
        config.APP_VERSION,
        settings["host"],
        settings["port"],
        settings["persist"],
    )
    uvicorn.run(app, host=settings["host"], port=settings["port"], log_config=None)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    log_path = configure_logging(args.log_dir, console_level=logging.DEBUG if args.verbose else logging.INFO)
    LOGGER.debug("Logging to %s", log_path)
    try:
        exit_code = run(resolve_settings(args))
    except KeyboardInterrupt:
        exit_code = 130
    except Exception:  # noqa: BLE001
        LOGGER.exception("collabide terminated unexpectedly")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
