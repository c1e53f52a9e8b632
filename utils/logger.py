"""
Centralized logging configuration for the scenario simulation engine

Environment:
    SCENARIO_ENGINE_LOG_LEVEL: Level name for new loggers (e.g. DEBUG)
    SCENARIO_ENGINE_LOG_DIR: Directory for dated log files (default data/logs)
"""
import logging
import os
from datetime import datetime
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
DEFAULT_LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data', 'logs')


def resolve_level(level: Optional[int] = None) -> int:
    """Explicit level, else SCENARIO_ENGINE_LOG_LEVEL, else INFO"""
    if level is not None:
        return level
    name = os.environ.get('SCENARIO_ENGINE_LOG_LEVEL', '').upper()
    resolved = logging.getLevelName(name) if name else logging.INFO
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Create a configured logger instance.

    Args:
        name: Logger name (typically __name__ from calling module)
        level: Logging level (environment or INFO when omitted)

    Returns:
        Configured logger instance
    """
    level = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Dated file log only when the directory exists
    log_dir = os.environ.get('SCENARIO_ENGINE_LOG_DIR', DEFAULT_LOG_DIR)
    if os.path.isdir(log_dir):
        file_handler = logging.FileHandler(
            os.path.join(log_dir, f'scenario_engine_{datetime.now().strftime("%Y%m%d")}.log')
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class LogContext:
    """
    Context manager for logging operation timing.

    The elapsed seconds stay available on ``duration`` after the block.
    Failures are always logged at ERROR and never suppressed.
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.INFO):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.start_time = None
        self.duration = 0.0

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.log(self.level, f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = (datetime.now() - self.start_time).total_seconds()
        if exc_type:
            self.logger.error(f"Failed: {self.operation} after {self.duration:.2f}s - {exc_val}")
        else:
            self.logger.log(self.level, f"Completed: {self.operation} in {self.duration:.2f}s")
        return False
