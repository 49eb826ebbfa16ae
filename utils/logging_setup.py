"""
Logging setup for the state import engine.
"""

import logging
import sys
import time
from pathlib import Path

NOISY_LOGGERS = ('boto3', 'botocore', 'urllib3')


def setup_logging(config, logger_name: str = "tfimport") -> logging.Logger:
    """
    Attach console and optional file handlers to the import logger.

    The logger stops propagating so repeated engine runs don't duplicate
    records through the root logger.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(config.get_log_level())
    logger.handlers.clear()
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(config.console_log_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))
    logger.addHandler(console_handler)

    if config.log_file:
        log_file = Path(config.log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(config.file_log_level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def log_configuration(logger: logging.Logger, config):
    logger.info("⚙️  Import Configuration:")
    logger.info(f"   Provider: {config.provider}")
    logger.info(f"   Region: {config.region or 'default'}")
    logger.info(f"   Services: {', '.join(config.services) if config.services is not None else 'all'}")
    logger.info(f"   Filters: {len(config.filters)}")
    logger.info(f"   Refresh Pool Size: {config.pool_size}")
    logger.info(f"   Slow Query Delay: {config.slow_query_delay:.2f}s")


class TimedLogger:
    """Context manager logging the start and duration of an import phase"""

    def __init__(self, logger: logging.Logger, phase: str):
        self.logger = logger
        self.phase = phase
        self.started = None

    def __enter__(self):
        self.started = time.monotonic()
        self.logger.info(f"🚀 Starting {self.phase}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.monotonic() - self.started
        if exc_type is None:
            self.logger.info(f"✅ {self.phase} completed in {elapsed:.2f} seconds")
        else:
            self.logger.error(f"❌ {self.phase} failed after {elapsed:.2f} seconds: {exc_val}")
