"""Auto-refresh scheduler that quietly re-fetches the price at a fixed interval."""

import threading
import uuid
from collections.abc import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from coin_ticker.utils.config import config
from coin_ticker.utils.event_store import AUTO_REFRESH, EventStore
from coin_ticker.utils.logger import get_logger

JOB_ID = "auto_refresh"

structured_logger = get_logger("AutoRefreshScheduler")


class AutoRefreshScheduler:
    """
    Owns the single repeating refresh job.

    enable() and disable() are the only mutators. There is at most one job at
    any time: enable() removes the previous job before adding a new one, and
    the job is registered under a fixed id with replace_existing.
    """

    def __init__(
        self,
        on_tick: Callable[[], object],
        interval_seconds: int | None = None,
        scheduler: BackgroundScheduler | None = None,
        event_store: EventStore | None = None,
    ):
        """
        Initialize the auto-refresh scheduler.

        Args:
            on_tick: Called on every tick; runs one quiet fetch cycle
            interval_seconds: Default interval (config value if None)
            scheduler: APScheduler instance (a BackgroundScheduler if None)
            event_store: Optional EventStore to record ticks in
        """
        self.on_tick = on_tick
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else config.refresh.interval_seconds
        )
        self.scheduler = scheduler or BackgroundScheduler()
        self.event_store = event_store
        self.is_running = False
        self._enabled = False
        self._lock = threading.RLock()

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self, interval_seconds: int | None = None) -> None:
        """
        Start refreshing every interval_seconds. Calling it again restarts the timer.

        Raises:
            ValueError: If the interval is not positive
        """
        interval = interval_seconds if interval_seconds is not None else self.interval_seconds
        if interval <= 0:
            raise ValueError(f"Invalid refresh interval: {interval}")

        with self._lock:
            self._remove_job()
            self.scheduler.add_job(
                self._tick,
                IntervalTrigger(seconds=interval),
                id=JOB_ID,
                name="Price auto-refresh",
                replace_existing=True,
                coalesce=True,
                max_instances=1,
            )
            self._enabled = True

            if not self.is_running:
                self.scheduler.start()
                self.is_running = True

        structured_logger.info(
            "Auto-refresh enabled", context={"interval_seconds": interval}
        )

    def disable(self) -> None:
        """Stop refreshing. No-op when already disabled."""
        with self._lock:
            if not self._enabled:
                return
            self._remove_job()
            self._enabled = False

        structured_logger.info("Auto-refresh disabled")

    def shutdown(self) -> None:
        """Disable and stop the underlying scheduler."""
        self.disable()
        with self._lock:
            if self.is_running:
                self.scheduler.shutdown(wait=False)
                self.is_running = False
                structured_logger.info("Auto-refresh scheduler stopped")

    def _remove_job(self) -> None:
        try:
            self.scheduler.remove_job(JOB_ID)
        except JobLookupError:
            pass

    def _tick(self) -> None:
        trace_id = str(uuid.uuid4())
        structured_logger.debug("Auto-refresh tick", context={"trace_id": trace_id})
        if self.event_store:
            self.event_store.add_event(
                trace_id=trace_id,
                event_type=AUTO_REFRESH,
                component="AutoRefreshScheduler",
                message="Auto-refresh tick",
            )
        try:
            self.on_tick()
        except Exception as e:
            structured_logger.error(
                f"Auto-refresh tick failed: {e}",
                context={"trace_id": trace_id},
                exception=e,
            )
