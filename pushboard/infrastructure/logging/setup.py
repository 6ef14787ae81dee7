"""
Logging setup and configuration utilities.

This module configures loguru sinks for console and rotating file output.
"""

import sys
from pathlib import Path
from typing import Any, Dict

from loguru import logger

from ..config.models import LoggingConfig
from ...core.interfaces.lifecycle import IComponent

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} - {message}"
)


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup application logging with the given configuration.

    Args:
        config: Logging configuration
    """
    logger.remove()

    if config.console_enabled:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=config.level.upper(),
            colorize=True,
            backtrace=True,
            diagnose=False
        )

    if config.file_enabled:
        log_dir = Path(config.log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "app.log",
            format=FILE_FORMAT,
            level=config.level.upper(),
            rotation=config.max_file_size,
            retention=config.backup_count,
            compression="zip",
            backtrace=True,
            diagnose=False
        )

        logger.add(
            log_dir / "error.log",
            format=FILE_FORMAT,
            level="ERROR",
            rotation=config.max_file_size,
            retention=config.backup_count,
            compression="zip"
        )


class LoggingManager(IComponent):
    """
    Logging manager for runtime logging configuration.
    """

    def __init__(self, config: LoggingConfig) -> None:
        self._config = config
        self._started = False

    @property
    def name(self) -> str:
        return "LoggingManager"

    @property
    def config(self) -> LoggingConfig:
        return self._config

    async def start(self) -> None:
        if self._started:
            return

        setup_logging(self._config)
        self._started = True

        logger.info(f"Logging manager started (level {self._config.level})")

    async def stop(self) -> None:
        if not self._started:
            return

        logger.info("Logging manager stopped")
        await logger.complete()
        self._started = False

    async def check_health(self) -> Dict[str, Any]:
        log_dir = Path(self._config.log_directory)

        return {
            'healthy': True,
            'status': 'running' if self._started else 'stopped',
            'details': {
                'log_level': self._config.level,
                'log_directory': str(log_dir),
                'log_directory_exists': log_dir.exists(),
                'console_enabled': self._config.console_enabled,
                'file_enabled': self._config.file_enabled,
            }
        }
