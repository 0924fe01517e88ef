"""Application configuration using Pydantic settings."""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.services.errors import ConfigurationError

# Upper bound on the lookback window, about a century
MAX_LOOKBACK_DAYS = 36500

NDAYS_PATTERN = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class StockConfig:
    """Validated settings for a single stock lookup."""

    url: str
    symbol: str
    n_days: int
    api_key: str
    timeout: float = 30.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Application
    APP_NAME: str = "Stock Picker"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Alpha Vantage
    # Left optional so a missing value is reported per request, not at startup.
    ALPHA_VANTAGE_URL: Optional[str] = None
    API_KEY: Optional[str] = None
    UPSTREAM_TIMEOUT: float = 30.0

    # Lookup
    SYMBOL: Optional[str] = None
    NDAYS: Optional[str] = None

    # Server
    PORT: int = 8080

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    def resolve_stock_config(
        self,
        symbol: Optional[str] = None,
        n_days: Optional[int] = None,
    ) -> StockConfig:
        """
        Build the configuration for one lookup.

        Args:
            symbol: Overrides SYMBOL when given
            n_days: Overrides NDAYS when given

        Raises:
            ConfigurationError: if a required value is absent or malformed
        """
        if not self.ALPHA_VANTAGE_URL:
            raise ConfigurationError("ALPHA_VANTAGE_URL environment variable is not set")

        symbol = symbol or self.SYMBOL
        if not symbol:
            raise ConfigurationError("SYMBOL environment variable is not set")

        if n_days is None:
            if not self.NDAYS:
                raise ConfigurationError("NDAYS environment variable is not set")
            # int() would also take " 7 " and "1_0"
            if not NDAYS_PATTERN.fullmatch(self.NDAYS):
                raise ConfigurationError(f"Failed to convert NDAYS to int: invalid value {self.NDAYS!r}")
            try:
                n_days = int(self.NDAYS)
            except ValueError as e:
                # more digits than int() accepts
                raise ConfigurationError(f"Failed to convert NDAYS to int: {e}") from e

        if n_days < 0:
            raise ConfigurationError(f"NDAYS must not be negative, got {n_days}")
        if n_days > MAX_LOOKBACK_DAYS:
            raise ConfigurationError(f"NDAYS must be at most {MAX_LOOKBACK_DAYS}, got {n_days}")

        if not self.API_KEY:
            raise ConfigurationError("API_KEY environment variable is not set")

        return StockConfig(
            url=self.ALPHA_VANTAGE_URL,
            symbol=symbol,
            n_days=n_days,
            api_key=self.API_KEY,
            timeout=self.UPSTREAM_TIMEOUT,
        )


@lru_cache
def get_settings() -> Settings:
    """Settings built once per process."""
    return Settings()
