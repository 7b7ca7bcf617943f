"""
Logging configuration for the custom exception middleware using Loguru.

Provides environment-aware formatting (JSON when writing to a pipe or a log
collector, colored text on an interactive terminal) and a ``get_logger``
helper bound to the calling module's name.
"""

import json
import sys
from typing import Any

from loguru import logger

from custom_exception_middleware.core.config import settings


def _serialize_record(record: dict) -> str:
    """
    Custom serializer for JSON format that includes extra fields.

    The JSON document is stored on the record and referenced from the
    returned template, so Loguru never parses braces or markup inside it.

    Args:
        record: Loguru record dictionary

    Returns:
        Format template emitting the JSON document
    """
    log_entry = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "message": record["message"],
        "function": record["function"],
        "line": record["line"],
    }

    # Add any extra fields bound to the logger
    log_entry.update(
        {key: value for key, value in record["extra"].items() if key != "serialized"}
    )

    if record["exception"]:
        log_entry["exception"] = {
            "type": record["exception"].type.__name__
            if record["exception"].type
            else None,
            "value": str(record["exception"].value),
        }

    record["extra"]["serialized"] = json.dumps(log_entry, default=str)
    return "{extra[serialized]}\n"


def _determine_log_format() -> str:
    """
    Determine log format based on settings and environment.

    Returns:
        "json" when stdout is not a terminal, "text" otherwise
    """
    log_format = settings.log_format

    if log_format == "auto":
        is_tty = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        return "text" if is_tty else "json"

    return log_format


def setup_logging() -> None:
    """
    Set up Loguru logging configuration.

    Replaces the default handler with a stdout sink:
    - JSON structured output for log aggregation
    - Colored, human-readable text output for local development
    """
    logger.remove()

    log_format_type = _determine_log_format()
    log_level = settings.log_level.upper()

    if log_format_type == "json":
        logger.add(
            sys.stdout,
            format=_serialize_record,
            level=log_level,
            serialize=False,  # We handle serialization ourselves
            backtrace=True,
            diagnose=False,  # Don't show local variables in production
        )
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            ),
            level=log_level,
            colorize=True,
            backtrace=True,
            diagnose=True,
        )

    logger.info(f"Logging initialized with format={log_format_type}, level={log_level}")


def get_logger(name: str) -> Any:
    """
    Get a logger instance bound to a module name.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Loguru logger instance bound to the module name
    """
    return logger.bind(module=name)
