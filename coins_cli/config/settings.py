"""
Application configuration using pydantic-settings with nested structure
"""
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


# Optional .env in the working directory (development overrides)
_ENV_FILE = Path.cwd() / ".env"


class LoggerConfig(BaseSettings):
    """Logger configuration settings."""
    default_level: str = "DEBUG"
    console_level: str = "ERROR"
    file_name: str = "coins-cli.log"
    rotation: str = "5 MB"
    retention: str = "14 days"
    model_config = SettingsConfigDict(env_prefix="COINS_CLI_LOGGER__", extra="ignore")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Use double underscore (__) in env vars to access nested configs.

    Example:
        COINS_CLI_HOME=/tmp/coins
        COINS_CLI_LOGGER__CONSOLE_LEVEL=INFO
    """

    # Application metadata
    APP_NAME: str = "Coins CLI"
    APP_VERSION: str = "1.0.0"

    # Where the persisted config store and the log files live
    HOME: Path = Path.home() / ".coins-cli"

    # Seeds for the persisted store on first run
    DEFAULT_API_BASE_URL: str = "https://jdwd40.com/api-2"
    DEFAULT_API_TIMEOUT_MS: int = 10000
    DEFAULT_CURRENCY: str = "GBP"
    USER_AGENT: str = "coins-cli/1.0.0"

    LOGGER: Optional[LoggerConfig] = None

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Nested section is built after the environment is loaded
        self.LOGGER = LoggerConfig()

    @property
    def config_file(self) -> Path:
        return self.HOME / "config.json"

    @property
    def log_file(self) -> Path:
        return self.HOME / "logs" / self.LOGGER.file_name

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        env_nested_delimiter="__",
        env_prefix="COINS_CLI_",
    )


if _ENV_FILE.exists():
    load_dotenv(str(_ENV_FILE), override=False)

settings = Settings()
