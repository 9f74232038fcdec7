"""Configuration settings for envsecrets."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..vault.config import VaultConfig

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Settings:
    """Main settings container."""

    vault: VaultConfig = field(default_factory=VaultConfig)

    # Cache resolved passphrases in the OS credential store
    use_keyring: bool = True

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        settings = cls(vault=VaultConfig.from_env())

        if os.getenv("ENVSECRETS_NO_KEYRING", "").lower() in ("1", "true", "yes"):
            settings.use_keyring = False

        if log_level := os.getenv("LOG_LEVEL"):
            settings.log_level = log_level.upper()

        if log_file := os.getenv("ENVSECRETS_LOG_FILE"):
            settings.log_file = Path(log_file)

        return settings


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings
