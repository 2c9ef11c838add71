"""In-memory model of the widget's controls and display regions."""

from dataclasses import dataclass, field
from typing import Any

from coin_ticker.models.price import Asset
from coin_ticker.ui.render import LOAD_BUTTON_BUSY_LABEL, LOAD_BUTTON_LABEL


@dataclass
class TriggerControl:
    """The "Load latest price" button."""

    enabled: bool = True
    label: str = LOAD_BUTTON_LABEL

    def set_busy(self) -> None:
        self.enabled = False
        self.label = LOAD_BUTTON_BUSY_LABEL

    def set_idle(self) -> None:
        self.enabled = True
        self.label = LOAD_BUTTON_LABEL


@dataclass
class ChartView:
    """
    Input of the charting collaborator: HH:MM labels and parallel EUR/USD series.

    Every update replaces the series wholesale and bumps render_count, which
    stands in for re-rendering the chart in place.
    """

    title: str = ""
    labels: list[str] = field(default_factory=list)
    eur: list[float] = field(default_factory=list)
    usd: list[float] = field(default_factory=list)
    render_count: int = 0

    def update(self, title: str, labels: list[str], eur: list[float], usd: list[float]) -> None:
        self.title = title
        self.labels = list(labels)
        self.eur = list(eur)
        self.usd = list(usd)
        self.render_count += 1

    def clear(self) -> None:
        self.title = ""
        self.labels = []
        self.eur = []
        self.usd = []

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "labels": list(self.labels),
            "datasets": [
                {"label": "EUR", "data": list(self.eur)},
                {"label": "USD", "data": list(self.usd)},
            ],
            "render_count": self.render_count,
        }


@dataclass
class WidgetView:
    """Readable and writable slots of the page the widget lives on."""

    selected_asset: Asset
    trigger: TriggerControl = field(default_factory=TriggerControl)
    display_html: str = ""
    auto_refresh_checked: bool = False
    amount_input: str = ""
    portfolio_text: str = ""
    chart: ChartView = field(default_factory=ChartView)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger": {"enabled": self.trigger.enabled, "label": self.trigger.label},
            "display_html": self.display_html,
            "asset": {"id": self.selected_asset.id, "label": self.selected_asset.label},
            "auto_refresh": self.auto_refresh_checked,
            "amount": self.amount_input,
            "portfolio": self.portfolio_text,
            "chart": self.chart.to_dict(),
        }
