"""Logging configuration using Loguru."""

import sys
from pathlib import Path

from loguru import logger

_FRONTEND_LEVELS = {
    "trace": "TRACE",
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
}


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "2 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """Configure Loguru logger with JSON serialization and file rotation."""
    logger.remove()

    # Console logging
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        colorize=True,
        serialize=False,
    )

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        # File logging with JSON serialization
        logger.add(
            log_path / "nexus_{time:YYYY-MM-DD}.log",
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation=file_rotation,
            retention=file_retention,
            compression=compression,
            serialize=serialize,
            enqueue=True,
        )


def get_logger(name: str):
    """Get a logger instance for a module."""
    return logger.bind(module=name)


def relay_frontend_log(level: str, message: str, context: str | None = None) -> str:
    """
    Forward a log line emitted by the canvas front end into the engine's sinks.

    Unknown levels are logged as INFO. A blank context is ignored.

    Args:
        level: Front-end level name (trace, debug, info, warn, warning, error)
        message: Log message
        context: Optional extra detail appended after " | "

    Returns:
        The loguru level name that was used
    """
    detail = message
    if context is not None and context.strip():
        detail = f"{message} | {context}"

    resolved = _FRONTEND_LEVELS.get((level or "").strip().lower(), "INFO")
    logger.bind(module="frontend").log(resolved, f"[frontend] {detail}")
    return resolved
