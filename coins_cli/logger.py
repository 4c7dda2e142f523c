"""
Loguru logger configuration with runtime level control
"""
import sys
from pathlib import Path

from loguru import logger

from coins_cli.config.settings import settings


VALID_LEVELS = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class LoggerManager:
    """Manages application logging with runtime level control.

    The console sink only shows ERROR and above by default so command output
    stays readable; ``--verbose`` and ``--debug`` lower it. The file sink
    records at ``LOGGER.default_level`` (DEBUG unless overridden).
    """

    def __init__(self):
        self.console_level = settings.LOGGER.console_level.upper()
        self.file_level = settings.LOGGER.default_level.upper()
        self.log_file_path = Path(settings.log_file)
        self.log_rotation = settings.LOGGER.rotation
        self.log_retention = settings.LOGGER.retention
        self.file_sink_enabled = True

        self.setup_logger()

    def setup_logger(self):
        """Configure logger with console and file handlers"""
        logger.remove()

        logger.add(
            sys.stderr,
            level=self.console_level,
            format=(
                "<green>{time:HH:mm:ss.SSS}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                "<level>{message}</level>"
            ),
            colorize=True,
            backtrace=False,
            diagnose=False,
        )

        if not self.file_sink_enabled:
            return

        try:
            self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            # Read-only home: keep console logging only
            self.file_sink_enabled = False
            logger.warning(f"File logging disabled, cannot create {self.log_file_path.parent}: {e}")
            return

        logger.add(
            str(self.log_file_path),
            level=self.file_level,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{name}:{function}:{line} - "
                "{message}"
            ),
            rotation=self.log_rotation,
            retention=self.log_retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    def set_level(self, level: str) -> str:
        """
        Change the console log level at runtime

        Args:
            level: New log level (TRACE, DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL)

        Returns:
            The new log level

        Raises:
            ValueError: If level is invalid
        """
        level_upper = level.upper()
        if level_upper not in VALID_LEVELS:
            raise ValueError(f"Invalid level '{level}'. Choose from: {', '.join(VALID_LEVELS)}")

        old_level = self.console_level
        self.console_level = level_upper
        self.setup_logger()

        logger.debug(f"Console log level changed from {old_level} to {level_upper}")
        return self.console_level

    def get_level(self) -> str:
        """Get current console log level"""
        return self.console_level


# Global logger manager instance
logger_manager = LoggerManager()

__all__ = ["logger", "logger_manager"]
