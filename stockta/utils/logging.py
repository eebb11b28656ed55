"""
Logging configuration for StockTA.

Provides structured logging with a rich console handler and an optional
rotating log file.
"""

import functools
import logging
import logging.config
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler

from stockta.core.config import settings


def rich_stderr_handler(**kwargs) -> RichHandler:
    """Rich console handler writing to stderr so stdout stays clean for reports."""
    return RichHandler(console=Console(stderr=True), **kwargs)


def build_logging_config(log_level: str, log_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the dictConfig mapping for the application loggers.

    Args:
        log_level: Level for the console handler and package loggers
        log_file: Optional path of a rotating log file

    Returns:
        Logging configuration dictionary
    """
    handlers = ["console"]

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "()": rich_stderr_handler,
                "level": log_level,
                "formatter": "standard",
                "markup": False,
                "rich_tracebacks": True,
                "show_path": settings.is_development,
            },
        },
        "loggers": {
            "stockta": {
                "level": log_level,
                "handlers": handlers,
                "propagate": False,
            },
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console"],
        },
    }

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logging_config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filename": log_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
        }
        handlers.append("file")

    return logging_config


def setup_logging(log_level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Set up logging configuration for the application.

    Args:
        log_level: Log level to use (overrides settings; ``debug`` implies DEBUG)
        log_file: Log file path (overrides settings)
    """
    if log_level is None:
        log_level = "DEBUG" if settings.debug else settings.log_level
    if log_file is None:
        log_file = settings.log_file

    logging.config.dictConfig(build_logging_config(log_level.upper(), log_file))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (defaults to caller's module)

    Returns:
        Configured logger instance
    """
    if name is None:
        frame = sys._getframe(1)
        name = frame.f_globals.get("__name__", "unknown")

    return structlog.get_logger(name)


def log_performance(func):
    """
    Decorator to log function performance.

    Args:
        func: Function to decorate

    Returns:
        Decorated function
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(
                "Function execution failed",
                function=func.__name__,
                execution_time=f"{time.perf_counter() - start_time:.3f}s",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        logger.debug(
            "Function executed successfully",
            function=func.__name__,
            execution_time=f"{time.perf_counter() - start_time:.3f}s",
        )
        return result

    return wrapper


# Initialize logging on module import
if not structlog.is_configured():
    setup_logging()
