"""Widget session state and the fetch/render cycle."""

import threading
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

from coin_ticker.models.price import (
    ASSET_CHANGE,
    AUTO_REFRESH_TICK,
    INITIAL_LOAD,
    MANUAL_LOAD,
    FetchOptions,
    FetchOutcome,
    PriceQuote,
    PriceSample,
    RequestContext,
)
from coin_ticker.services.auto_refresh import AutoRefreshScheduler
from coin_ticker.services.coingecko_client import CoinGeckoClient, PriceFetchError
from coin_ticker.services.portfolio_calculator import PortfolioResult, recalculate
from coin_ticker.services.price_history import RollingHistoryBuffer
from coin_ticker.ui.render import chart_title, render_failure, render_loading, render_price_block
from coin_ticker.ui.widget_view import WidgetView
from coin_ticker.utils.config import WidgetConfig, config
from coin_ticker.utils.event_store import FETCH_COMPLETE, FETCH_START, EventStore
from coin_ticker.utils.logger import get_logger

structured_logger = get_logger("PriceWidget")


class UnknownAssetError(ValueError):
    """The requested asset is not one of the selectable assets."""

    def __init__(self, asset_id: str):
        super().__init__(f"Unknown asset: {asset_id}")
        self.asset_id = asset_id


class TriggerBusyError(RuntimeError):
    """The trigger control was clicked while its own fetch is still outstanding."""


class PriceFetchOrchestrator:
    """Runs one request/render cycle against the session it belongs to."""

    def __init__(
        self,
        session: "WidgetSession",
        client: CoinGeckoClient,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session = session
        self.client = client
        self.clock = clock

    def fetch_and_render(self, options: FetchOptions = MANUAL_LOAD) -> FetchOutcome:
        """
        Fetch the price of the currently selected asset and update the view.

        Never raises: every failure ends up as the generic failure block. Only
        the response to the most recently issued request is applied; older
        responses that resolve late are discarded as stale.

        Args:
            options: Whether to disable the trigger control and whether to show
                the loading placeholder while the request is outstanding

        Returns:
            FetchOutcome describing what was applied
        """
        session = self.session
        context = session.issue_request(options)
        start_time = time.time()

        log_context = {
            "trace_id": context.trace_id,
            "sequence": context.sequence,
            "symbol": context.asset.id,
            "source": "CoinGecko",
        }
        structured_logger.info("Starting price fetch", context=log_context)
        session.event_store.add_event(
            trace_id=context.trace_id,
            event_type=FETCH_START,
            component="PriceFetchOrchestrator",
            message=f"Fetching {context.asset.id} price",
            context={"symbol": context.asset.id, "sequence": context.sequence},
        )

        with session.lock:
            if options.disable_interaction:
                session.view.trigger.set_busy()
            if options.show_loading_placeholder:
                session.view.display_html = render_loading(context.asset.label)

        try:
            try:
                quote = self.client.fetch_quote(context.asset.id, trace_id=context.trace_id)
            except PriceFetchError as e:
                structured_logger.error(
                    f"Error fetching price for {context.asset.id}",
                    context={**log_context, "result": "failed"},
                    exception=e,
                )
                outcome = self._apply_failure(context, e)
            except Exception as e:
                structured_logger.error(
                    f"Unexpected error fetching price for {context.asset.id}",
                    context={**log_context, "result": "failed"},
                    exception=e,
                )
                outcome = self._apply_failure(context, e)
            else:
                outcome = self._apply_success(context, quote)
        finally:
            if options.disable_interaction:
                with session.lock:
                    session.view.trigger.set_idle()

        duration_ms = (time.time() - start_time) * 1000
        session.event_store.add_event(
            trace_id=context.trace_id,
            event_type=FETCH_COMPLETE,
            component="PriceFetchOrchestrator",
            message=f"Price fetch {outcome.status}",
            context={"symbol": context.asset.id, "sequence": context.sequence, "status": outcome.status},
            duration_ms=duration_ms,
        )
        if outcome.status == "stale":
            structured_logger.warning(
                "Discarding stale price response",
                context={**log_context, "result": "stale", "latest_sequence": session.latest_sequence},
            )
        elif outcome.status == "success":
            structured_logger.info(
                "Successfully fetched price",
                context={
                    **log_context,
                    "result": "success",
                    "price_eur": outcome.sample.price_eur,
                    "price_usd": outcome.sample.price_usd,
                    "duration_ms": duration_ms,
                },
            )
        return outcome

    def _apply_success(self, context: RequestContext, quote: PriceQuote) -> FetchOutcome:
        session = self.session
        with session.lock:
            if not session.is_latest(context):
                return FetchOutcome(status="stale", context=context)

            sample = PriceSample.from_quote(quote, context.asset.label, self.clock())
            session.last_price_eur = quote.price_eur
            session.last_price_usd = quote.price_usd
            session.history.append(sample)
            session.view.display_html = render_price_block(sample)
            session.view.chart.update(
                title=chart_title(context.asset.label),
                labels=session.history.labels(),
                eur=[price for _, price in session.history.as_ordered_series("eur")],
                usd=[price for _, price in session.history.as_ordered_series("usd")],
            )
            session.recalculate_portfolio()
            return FetchOutcome(status="success", context=context, sample=sample)

    def _apply_failure(self, context: RequestContext, error: Exception) -> FetchOutcome:
        session = self.session
        with session.lock:
            if not session.is_latest(context):
                return FetchOutcome(status="stale", context=context, error=str(error))
            session.view.display_html = render_failure()
            return FetchOutcome(status="failed", context=context, error=str(error))


class WidgetSession:
    """
    All state of one widget session: view slots, last known prices, the
    rolling history and the auto-refresh job.

    Built once at startup and torn down with teardown(). Every mutation of
    shared state happens under self.lock; the network call does not.
    """

    def __init__(
        self,
        client: CoinGeckoClient | None = None,
        widget_config: WidgetConfig | None = None,
        history_max_points: int | None = None,
        refresh_interval_seconds: int | None = None,
        event_store: EventStore | None = None,
        clock: Callable[[], datetime] = datetime.now,
        scheduler=None,
    ):
        """
        Initialize the session.

        Args:
            client: Price feed client (a CoinGeckoClient on global config if None)
            widget_config: Selectable assets (global config if None)
            history_max_points: Rolling history capacity (config value if None)
            refresh_interval_seconds: Auto-refresh interval (config value if None)
            event_store: EventStore for fetch events (a new one if None)
            clock: Wall-clock source used to timestamp samples
            scheduler: Optional APScheduler instance for auto-refresh
        """
        self.widget_config = widget_config or config.widget
        self.lock = threading.RLock()
        self.event_store = event_store if event_store is not None else EventStore()
        self.view = WidgetView(selected_asset=self.widget_config.default_asset)
        self.history = RollingHistoryBuffer(history_max_points or config.history.max_points)
        self.last_price_eur: float | None = None
        self.last_price_usd: float | None = None
        self._sequence = 0
        self._closed = False

        self.orchestrator = PriceFetchOrchestrator(self, client or CoinGeckoClient(), clock=clock)
        self.auto_refresh = AutoRefreshScheduler(
            on_tick=self.refresh_quietly,
            interval_seconds=refresh_interval_seconds,
            scheduler=scheduler,
            event_store=self.event_store,
        )

    @property
    def last_prices(self) -> tuple[float | None, float | None]:
        with self.lock:
            return self.last_price_eur, self.last_price_usd

    @property
    def latest_sequence(self) -> int:
        with self.lock:
            return self._sequence

    def issue_request(self, options: FetchOptions) -> RequestContext:
        """Capture the selected asset and hand out the next sequence number."""
        with self.lock:
            self._sequence += 1
            return RequestContext(
                sequence=self._sequence,
                asset=self.view.selected_asset,
                options=options,
            )

    def is_latest(self, context: RequestContext) -> bool:
        with self.lock:
            return not self._closed and context.sequence == self._sequence

    def recalculate_portfolio(self) -> PortfolioResult:
        with self.lock:
            result = recalculate(self.view.amount_input, self.last_price_eur, self.last_price_usd)
            self.view.portfolio_text = result.text
            return result

    # User events

    def start(self) -> FetchOutcome:
        """Initial load so the widget is not empty at start."""
        return self.orchestrator.fetch_and_render(INITIAL_LOAD)

    def load(self) -> FetchOutcome:
        """
        The trigger control was clicked.

        Raises:
            TriggerBusyError: If the trigger is disabled by a manual fetch in progress
        """
        with self.lock:
            if not self.view.trigger.enabled:
                raise TriggerBusyError("A manual price load is already in progress")
            self.view.trigger.set_busy()
        return self.orchestrator.fetch_and_render(MANUAL_LOAD)

    def select_asset(self, asset_id: str) -> FetchOutcome:
        """
        The asset dropdown changed.

        Raises:
            UnknownAssetError: If asset_id is not selectable
        """
        asset = self.widget_config.get_asset(asset_id)
        if asset is None:
            raise UnknownAssetError(asset_id)
        with self.lock:
            self.view.selected_asset = asset
        return self.orchestrator.fetch_and_render(ASSET_CHANGE)

    def refresh_quietly(self) -> FetchOutcome:
        """Auto-refresh tick: no busy trigger, no loading placeholder."""
        return self.orchestrator.fetch_and_render(AUTO_REFRESH_TICK)

    def set_auto_refresh(self, enabled: bool) -> None:
        """The auto-refresh checkbox was toggled."""
        if enabled:
            self.auto_refresh.enable()
        else:
            self.auto_refresh.disable()
        with self.lock:
            self.view.auto_refresh_checked = self.auto_refresh.is_enabled

    def set_amount(self, amount: Any) -> PortfolioResult:
        """A keystroke in the amount field."""
        with self.lock:
            self.view.amount_input = "" if amount is None else str(amount)
            return self.recalculate_portfolio()

    def snapshot(self) -> dict[str, Any]:
        with self.lock:
            state = self.view.to_dict()
            state["last_prices"] = {"eur": self.last_price_eur, "usd": self.last_price_usd}
            state["history_size"] = len(self.history)
            latest = self.history.latest()
            state["last_updated"] = latest.fetched_at.isoformat() if latest else None
            return state

    def teardown(self) -> None:
        """Stop auto-refresh and drop the buffers. Responses still in flight are discarded."""
        with self.lock:
            self._closed = True
        self.auto_refresh.shutdown()
        with self.lock:
            self.view.auto_refresh_checked = False
            self.history.clear()
            self.view.chart.clear()
        structured_logger.info("Widget session torn down")
