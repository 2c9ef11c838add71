"""HTML fragments for the widget's display region."""

from html import escape

from coin_ticker.models.price import PriceSample

LOAD_BUTTON_LABEL = "Load latest price"
LOAD_BUTTON_BUSY_LABEL = "Loading…"

FAILURE_HTML = (
    "<p><strong>Could not load price.</strong></p>\n"
    '<p class="muted">Please try again in a moment.</p>'
)


def change_css_class(change: float) -> str:
    """Zero counts as positive."""
    return "change-positive" if change >= 0 else "change-negative"


def format_price(price: float) -> str:
    return f"{price:.2f}"


def format_change(change: float) -> str:
    return f"{change:.2f}"


def render_loading(asset_label: str) -> str:
    return f'<p class="muted">Loading {escape(asset_label)} price…</p>'


def render_failure() -> str:
    return FAILURE_HTML


def _currency_line(code: str, symbol: str, price: float, change: float) -> str:
    return (
        "<p>\n"
        f"  {code}: {format_price(price)} {symbol}\n"
        f'  <span class="{change_css_class(change)}">({format_change(change)}% in 24h)</span>\n'
        "</p>"
    )


def render_price_block(sample: PriceSample) -> str:
    """Render the price block for a freshly fetched sample."""
    return "\n".join(
        [
            f"<p><strong>{escape(sample.asset_label)} price (24h):</strong></p>",
            _currency_line("EUR", "€", sample.price_eur, sample.change_eur),
            _currency_line("USD", "$", sample.price_usd, sample.change_usd),
            '<p class="muted">Source: CoinGecko (EUR &amp; USD price feed)</p>',
            f'<p class="muted">Last updated at {sample.time_label}</p>',
        ]
    )


def chart_title(asset_label: str) -> str:
    return f"{asset_label} – session prices (EUR & USD)"
