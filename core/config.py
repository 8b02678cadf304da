"""Application settings loaded from environment variables.

Values may also come from a local `.env` file. The storage handle, logger
and batch entry points all read their configuration from `Settings`.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from core.exceptions import ConfigurationError

load_dotenv()


def _optional_int(value: Optional[str]) -> Optional[int]:
    return int(value) if value not in (None, "") else None


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the LevelUp backend."""

    DATABASE_URL: str
    READ_DATABASE_URL: str
    DB_TIMEOUT: float = 30.0
    DB_ECHO: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    ANALYZER_SEED: Optional[int] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        write_url = os.getenv("DATABASE_URL", "sqlite:///levelup.db")
        return cls(
            DATABASE_URL=write_url,
            # In production point READ_DATABASE_URL at a replica.
            READ_DATABASE_URL=os.getenv("READ_DATABASE_URL", write_url),
            DB_TIMEOUT=float(os.getenv("DB_TIMEOUT", "30")),
            DB_ECHO=os.getenv("DB_ECHO", "false").lower() in ("1", "true", "yes"),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
            LOG_DIR=os.getenv("LOG_DIR", "logs"),
            ANALYZER_SEED=_optional_int(os.getenv("ANALYZER_SEED")),
        )

    def validate(self) -> None:
        """Check required settings.

        Raises:
            ConfigurationError: If the database URL is empty or the timeout
                is not positive.
        """
        if not self.DATABASE_URL:
            raise ConfigurationError("DATABASE_URL is not set", config_key="DATABASE_URL")
        if self.DB_TIMEOUT <= 0:
            raise ConfigurationError("DB_TIMEOUT must be positive", config_key="DB_TIMEOUT")


settings = Settings.from_env()
