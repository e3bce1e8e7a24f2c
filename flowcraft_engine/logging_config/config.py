"""
Logging setup for the Flowcraft engine service
"""

import logging
import sys
from typing import Optional

from .formatters import SimpleFormatter, StructuredFormatter

NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "httpx",
    "httpcore",
    "supabase",
    "gotrue",
    "postgrest",
    "realtime",
    "storage3",
)


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: Optional[str] = "simple",
) -> logging.Logger:
    """
    Install a single stdout handler on the root logger.

    Args:
        service_name: Name of the service logger to return
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Format type ("simple", "json", "standard")

    Returns:
        Configured service logger
    """
    level = getattr(logging, str(log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if log_format == "json":
        formatter: logging.Formatter = StructuredFormatter()
    elif log_format == "simple" or log_format is None:
        formatter = SimpleFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(levelname)s:     %(asctime)s - %(name)s - [%(filename)s:%(lineno)d] - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    _configure_third_party_loggers()

    logger = logging.getLogger(service_name)
    logger.info(f"Logging configured for {service_name} with level={logging.getLevelName(level)}, format={log_format}")
    return logger


def _configure_third_party_loggers() -> None:
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
    # Access logs: errors only
    logging.getLogger("uvicorn.access").setLevel(logging.ERROR)
