"""Application logging with Loguru.

Sinks: stdout always, a rotating file under ``LOG_DIR`` when set, and a
Slack webhook for ``SLACK_LOG_LEVEL`` and above when a URL is configured.
Stdlib and uvicorn loggers are routed through Loguru.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from app.core.config import settings

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[name]}:{function}:{line} | {message}"
LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}
DEFAULT_LOGGER_NAME = "ledger-api"

_logging_configured = False


class InterceptHandler(logging.Handler):
    """Redirect stdlib logs to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_name == "emit":
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def resolve_level(raw: str | None, default: str = "INFO") -> str:
    """Map a user supplied level name onto a Loguru level."""
    level = (raw or default).strip().upper()
    level = LEVEL_ALIASES.get(level, level)
    return level if level in LOG_LEVELS else default


def format_slack_text(record: dict) -> str:
    name = record["extra"].get("name") or DEFAULT_LOGGER_NAME
    return f"[{record['level'].name}] {name}:{record['function']}:{record['line']}\n{record['message']}"


def _slack_sink(message: Any) -> None:
    if not settings.SLACK_WEBHOOK_URL:
        return
    try:
        httpx.post(settings.SLACK_WEBHOOK_URL, json={"text": format_slack_text(message.record)}, timeout=5.0)
    except httpx.HTTPError:
        # Logging here would recurse into this sink
        pass


def configure_logging() -> None:
    global _logging_configured

    if _logging_configured:
        return
    _logging_configured = True

    level = resolve_level(settings.effective_log_level)

    logger.remove()
    logger.configure(extra={"name": DEFAULT_LOGGER_NAME})
    logger.add(sys.stdout, level=level, format=LOG_FORMAT, backtrace=False, diagnose=False)

    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / f"{DEFAULT_LOGGER_NAME}.log",
            level=level,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention="14 days",
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )

    if settings.SLACK_WEBHOOK_URL:
        logger.add(_slack_sink, level=resolve_level(settings.SLACK_LOG_LEVEL, default="ERROR"), enqueue=True)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logging.getLogger(logger_name).handlers = [InterceptHandler()]
        logging.getLogger(logger_name).propagate = False


def get_logger(name: str) -> logger.__class__:
    return logger.bind(name=name)


configure_logging()
