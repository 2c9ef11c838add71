"""Fetch metrics aggregated from the event store."""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from coin_ticker.utils.event_store import AUTO_REFRESH, FETCH_COMPLETE, EventStore


@dataclass
class Metrics:
    """Aggregated widget metrics."""

    total_fetches: int
    successful_fetches: int
    failed_fetches: int
    stale_fetches: int
    success_rate: float
    average_fetch_duration_ms: float
    auto_refresh_ticks: int
    uptime_seconds: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class MetricsCalculator:
    """Calculates metrics from event store data."""

    def __init__(self, event_store: EventStore, start_time: Optional[datetime] = None):
        """
        Initialize the metrics calculator.

        Args:
            event_store: The event store to calculate metrics from
            start_time: Optional start time for uptime calculation (defaults to now)
        """
        self.event_store = event_store
        self.start_time = start_time or datetime.now(timezone.utc)

    def calculate(self) -> Metrics:
        """
        Calculate metrics from the event store.

        Stale fetches (responses discarded because a newer request was issued)
        count towards the total but not towards the success rate denominator.
        """
        completes = self.event_store.get_events_by_type(FETCH_COMPLETE)

        successful = len([e for e in completes if e.context.get("status") == "success"])
        failed = len([e for e in completes if e.context.get("status") == "failed"])
        stale = len([e for e in completes if e.context.get("status") == "stale"])

        applied = successful + failed
        success_rate = (successful / applied * 100) if applied > 0 else 0.0

        durations = [e.duration_ms for e in completes if e.duration_ms is not None]
        average_duration = sum(durations) / len(durations) if durations else 0.0

        ticks = len(self.event_store.get_events_by_type(AUTO_REFRESH))

        uptime_seconds = int((datetime.now(timezone.utc) - self.start_time).total_seconds())

        return Metrics(
            total_fetches=len(completes),
            successful_fetches=successful,
            failed_fetches=failed,
            stale_fetches=stale,
            success_rate=success_rate,
            average_fetch_duration_ms=average_duration,
            auto_refresh_ticks=ticks,
            uptime_seconds=uptime_seconds,
        )
