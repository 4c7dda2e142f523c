"""
Configuration module

The persisted key-value store lives in ``coins_cli.config.store``.
"""
from coins_cli.config.settings import settings

__all__ = ["settings"]
