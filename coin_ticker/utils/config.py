"""Configuration management for the price widget."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from coin_ticker.models.price import Asset

# Load environment variables from .env file
load_dotenv()

# The selectable assets, in dropdown order. The first one is the default.
ASSETS: tuple[Asset, ...] = (
    Asset(id="bitcoin", label="Bitcoin (BTC)"),
    Asset(id="ethereum", label="Ethereum (ETH)"),
)

# Quote currencies requested from the price feed.
CURRENCIES: tuple[str, ...] = ("eur", "usd")


@dataclass
class CoinGeckoConfig:
    """Price feed configuration."""

    base_url: str = "https://api.coingecko.com/api/v3"
    timeout: float = 10.0  # Request timeout in seconds
    currencies: tuple[str, ...] = CURRENCIES


@dataclass
class RefreshConfig:
    """Auto-refresh configuration."""

    interval_seconds: int = 30


@dataclass
class HistoryConfig:
    """Rolling history configuration."""

    max_points: int = 20


@dataclass
class LoggingConfig:
    """Structured logging configuration."""

    file_path: str | None = None


@dataclass
class WidgetConfig:
    """Widget-level settings: the selectable assets and their default."""

    assets: tuple[Asset, ...] = field(default_factory=lambda: ASSETS)

    @property
    def default_asset(self) -> Asset:
        return self.assets[0]

    def get_asset(self, asset_id: str) -> Asset | None:
        """Look up an asset by id, or None if it is not selectable."""
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None


class Config:
    """Main application configuration."""

    def __init__(self):
        self.coingecko = CoinGeckoConfig(
            base_url=os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3").rstrip("/"),
            timeout=float(os.getenv("COINGECKO_TIMEOUT", "10")),
        )

        self.refresh = RefreshConfig(
            interval_seconds=int(os.getenv("AUTO_REFRESH_INTERVAL", "30")),
        )

        self.history = HistoryConfig(
            max_points=int(os.getenv("HISTORY_MAX_POINTS", "20")),
        )

        self.logging = LoggingConfig(
            file_path=os.getenv("LOG_FILE") or None,
        )

        self.widget = WidgetConfig()

    def validate(self) -> bool:
        """
        Validate configuration.

        Returns:
            True if configuration is valid

        Raises:
            ValueError if configuration is invalid
        """
        if not self.coingecko.base_url.startswith(("http://", "https://")):
            raise ValueError("COINGECKO_BASE_URL must be an http(s) URL")
        if self.coingecko.timeout <= 0:
            raise ValueError("COINGECKO_TIMEOUT must be positive")
        if self.refresh.interval_seconds <= 0:
            raise ValueError("AUTO_REFRESH_INTERVAL must be a positive number of seconds")
        if self.history.max_points <= 0:
            raise ValueError("HISTORY_MAX_POINTS must be positive")
        if not self.widget.assets:
            raise ValueError("At least one selectable asset is required")

        return True


# Global config instance
config = Config()
