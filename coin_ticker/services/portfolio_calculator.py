"""Portfolio value calculator."""

import math
from dataclasses import dataclass

LOAD_PRICE_FIRST = "Load the price first, then enter an amount."
ENTER_VALID_AMOUNT = "Enter amount to calculate value."


@dataclass(frozen=True)
class PortfolioResult:
    """Text shown in the portfolio result region, plus the computed values if any."""

    text: str
    value_eur: float | None = None
    value_usd: float | None = None

    @property
    def has_value(self) -> bool:
        return self.value_eur is not None and self.value_usd is not None


def parse_amount(amount) -> float | None:
    """Return the held amount as a float, or None if it is not a finite positive number."""
    if amount is None or isinstance(amount, bool):
        return None
    if isinstance(amount, str):
        amount = amount.strip()
        if not amount:
            return None
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def recalculate(amount, price_eur: float | None, price_usd: float | None) -> PortfolioResult:
    """
    Value a held amount at the last known prices.

    Args:
        amount: Raw amount input (string from the form or a number)
        price_eur: Last known EUR price, None before the first successful fetch
        price_usd: Last known USD price, None before the first successful fetch

    Returns:
        PortfolioResult with the display text
    """
    if price_eur is None or price_usd is None:
        return PortfolioResult(text=LOAD_PRICE_FIRST)

    value = parse_amount(amount)
    if value is None:
        return PortfolioResult(text=ENTER_VALID_AMOUNT)

    total_eur = round(value * price_eur, 2)
    total_usd = round(value * price_usd, 2)
    return PortfolioResult(
        text=f"Value: {total_eur:.2f} € / {total_usd:.2f} $",
        value_eur=total_eur,
        value_usd=total_usd,
    )
