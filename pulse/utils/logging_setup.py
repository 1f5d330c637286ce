import logging
import os
import sys


def set_logger(log_level: int | None = None, name: str = "pulse") -> logging.Logger:
    """
    Setup logging configuration for pulse.

    Logs go to stderr: the MCP stdio transport owns stdout.

    Args:
        log_level: The logging level (e.g., logging.INFO, logging.DEBUG).
            Defaults to PULSE_LOG_LEVEL or INFO.
        name: The name of the logger.

    Returns:
        A configured logger instance.
    """
    if log_level is None:
        level_name = os.getenv("PULSE_LOG_LEVEL", "INFO").upper()
        log_level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
