"""CoinGecko client for current prices and 24h change."""

import math
from urllib.parse import urlencode

import requests

from coin_ticker.models.price import PriceQuote
from coin_ticker.utils.config import CoinGeckoConfig, config
from coin_ticker.utils.logger import get_logger


class PriceFetchError(Exception):
    """A price could not be loaded. All subclasses are shown to the user the same way."""


class TransportError(PriceFetchError):
    """The request never produced a response (DNS, connection, timeout)."""


class BadStatusError(PriceFetchError):
    """The feed answered with a non-success HTTP status."""

    def __init__(self, status_code: int):
        super().__init__(f"Network response was not ok (status: {status_code})")
        self.status_code = status_code


class MalformedPayloadError(PriceFetchError):
    """The response body did not have the expected shape."""


class CoinGeckoClient:
    """Fetches prices from the CoinGecko simple/price endpoint."""

    def __init__(self, settings: CoinGeckoConfig | None = None, session: requests.Session | None = None):
        """
        Initialize the client.

        Args:
            settings: Feed configuration (defaults to the global config)
            session: Optional requests session; plain requests.get is used otherwise
        """
        self.settings = settings or config.coingecko
        self.session = session
        self.logger = get_logger("CoinGeckoClient")

    @property
    def price_url(self) -> str:
        return f"{self.settings.base_url}/simple/price"

    def build_params(self, asset_id: str) -> dict[str, str]:
        """Query parameters requesting price and 24h change in every quote currency."""
        return {
            "ids": asset_id,
            "vs_currencies": ",".join(self.settings.currencies),
            "include_24hr_change": "true",
        }

    def build_url(self, asset_id: str) -> str:
        """Full request URL for *asset_id*, mainly for logging."""
        return f"{self.price_url}?{urlencode(self.build_params(asset_id))}"

    def fetch_quote(self, asset_id: str, trace_id: str | None = None) -> PriceQuote:
        """
        Fetch the current quote for one asset.

        Args:
            asset_id: CoinGecko coin id (e.g. "bitcoin")
            trace_id: Trace ID of the fetch cycle, for log correlation

        Returns:
            PriceQuote with EUR/USD price and 24h change

        Raises:
            TransportError: If no response was received
            BadStatusError: If the response status is not a success
            MalformedPayloadError: If the body is not the expected JSON shape
        """
        self.logger.info(
            "Requesting price",
            context={"trace_id": trace_id, "source": "CoinGecko", "url": self.build_url(asset_id)},
        )

        get = self.session.get if self.session is not None else requests.get
        try:
            response = get(self.price_url, params=self.build_params(asset_id), timeout=self.settings.timeout)
        except requests.RequestException as e:
            raise TransportError(str(e)) from e

        if not response.ok:
            raise BadStatusError(response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedPayloadError("Response body is not valid JSON") from e

        quote = self.parse_quote(asset_id, data)
        self.logger.debug(
            "Price response parsed",
            context={
                "trace_id": trace_id,
                "source": "CoinGecko",
                "symbol": asset_id,
                "price_eur": quote.price_eur,
                "price_usd": quote.price_usd,
            },
        )
        return quote

    @staticmethod
    def parse_quote(asset_id: str, data) -> PriceQuote:
        """
        Extract the four numeric fields for *asset_id* from a simple/price payload.

        Expected shape::

            {"bitcoin": {"eur": 1.0, "usd": 1.0, "eur_24h_change": 0.1, "usd_24h_change": 0.1}}

        Raises:
            MalformedPayloadError: If the asset key or any field is missing or not numeric
        """
        if not isinstance(data, dict) or not isinstance(data.get(asset_id), dict):
            raise MalformedPayloadError(f"Asset '{asset_id}' not found in response")

        entry = data[asset_id]
        values = {}
        for key in ("eur", "usd", "eur_24h_change", "usd_24h_change"):
            value = entry.get(key)
            # bool is an int subclass but never a price
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise MalformedPayloadError(f"Field '{key}' for '{asset_id}' is missing or not a number")
            values[key] = float(value)

        return PriceQuote(
            asset_id=asset_id,
            price_eur=values["eur"],
            price_usd=values["usd"],
            change_eur=values["eur_24h_change"],
            change_usd=values["usd_24h_change"],
        )
