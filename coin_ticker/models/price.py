"""Price models for the widget: assets, quotes, samples and fetch options."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

Currency = Literal["eur", "usd"]
FetchStatus = Literal["success", "failed", "stale"]


@dataclass(frozen=True)
class Asset:
    """A selectable cryptocurrency."""

    id: str
    label: str


@dataclass(frozen=True)
class PriceQuote:
    """Current price and 24h change in both quote currencies, as parsed from the feed."""

    asset_id: str
    price_eur: float
    price_usd: float
    change_eur: float
    change_usd: float


@dataclass(frozen=True)
class PriceSample:
    """One fetched snapshot, kept in the rolling history."""

    asset_id: str
    asset_label: str
    fetched_at: datetime
    price_eur: float
    price_usd: float
    change_eur: float
    change_usd: float

    @property
    def time_label(self) -> str:
        """Wall-clock time of the fetch as HH:MM (24h)."""
        return self.fetched_at.strftime("%H:%M")

    def price(self, currency: Currency) -> float:
        if currency == "eur":
            return self.price_eur
        if currency == "usd":
            return self.price_usd
        raise ValueError(f"Unsupported currency: {currency}")

    @classmethod
    def from_quote(cls, quote: PriceQuote, asset_label: str, fetched_at: datetime) -> "PriceSample":
        return cls(
            asset_id=quote.asset_id,
            asset_label=asset_label,
            fetched_at=fetched_at,
            price_eur=quote.price_eur,
            price_usd=quote.price_usd,
            change_eur=quote.change_eur,
            change_usd=quote.change_usd,
        )


@dataclass(frozen=True)
class FetchOptions:
    """How a fetch cycle should touch the view while the request is outstanding."""

    disable_interaction: bool = True
    show_loading_placeholder: bool = True


# Options used by each entry point into the fetch cycle
MANUAL_LOAD = FetchOptions(disable_interaction=True, show_loading_placeholder=True)
ASSET_CHANGE = FetchOptions(disable_interaction=False, show_loading_placeholder=True)
AUTO_REFRESH_TICK = FetchOptions(disable_interaction=False, show_loading_placeholder=False)
INITIAL_LOAD = FetchOptions(disable_interaction=False, show_loading_placeholder=True)


@dataclass(frozen=True)
class RequestContext:
    """Everything a fetch cycle needs, captured when the request is issued."""

    sequence: int
    asset: Asset
    options: FetchOptions
    trace_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(frozen=True)
class FetchOutcome:
    """What happened to one fetch cycle."""

    status: FetchStatus
    context: RequestContext
    sample: PriceSample | None = None
    error: str | None = None
