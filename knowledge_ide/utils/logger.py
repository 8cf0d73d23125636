"""
Logging configuration using Loguru.

Workspace log lines carry the acting user and the open project as bound
context (``user_id``, ``project_id``); both default to "-" so module-level
loggers share the same line format.
"""

import sys
from pathlib import Path

from loguru import logger

CONTEXT_DEFAULTS = {"user_id": "-", "project_id": "-"}


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """Configure Loguru logger with a console sink and an optional rotating JSON file sink."""
    logger.remove()
    logger.configure(extra=CONTEXT_DEFAULTS)

    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
            "<magenta>{extra[user_id]}@{extra[project_id]}</magenta> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        serialize=False,
    )

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "kide_{time:YYYY-MM-DD}.log",
            level=level,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
                "{extra[user_id]}@{extra[project_id]} | {name}:{function}:{line} - {message}"
            ),
            rotation=file_rotation,
            retention=file_retention,
            compression=compression,
            serialize=serialize,
            enqueue=True,
        )


def get_logger(name: str, user_id: str | None = None, project_id: str | None = None):
    """
    Get a logger bound to a module name.

    Args:
        name: Module name
        user_id: Session user to tag every line with
        project_id: Open project to tag every line with
    """
    context = {"module": name}
    if user_id is not None:
        context["user_id"] = user_id
    if project_id is not None:
        context["project_id"] = project_id
    return logger.bind(**context)
