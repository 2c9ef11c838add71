"""Rolling price history feeding the session chart."""

import threading
from collections import deque
from typing import get_args

from coin_ticker.models.price import Currency, PriceSample


class RollingHistoryBuffer:
    """
    Fixed-capacity FIFO of price samples.

    Samples are appended at the tail in fetch order; once the buffer is full
    each append drops the oldest sample from the head. Samples are frozen, so
    nothing is mutated or reordered after insertion.
    """

    def __init__(self, max_points: int = 20):
        if max_points <= 0:
            raise ValueError("max_points must be positive")
        self.max_points = max_points
        self._samples: deque[PriceSample] = deque(maxlen=max_points)
        self._lock = threading.RLock()

    def append(self, sample: PriceSample) -> None:
        with self._lock:
            self._samples.append(sample)

    def as_ordered_series(self, currency: Currency) -> list[tuple[str, float]]:
        """
        Return (HH:MM label, price) pairs for one currency, oldest first.

        Raises:
            ValueError: If currency is not "eur" or "usd"
        """
        if currency not in get_args(Currency):
            raise ValueError(f"Unknown currency: {currency}")
        with self._lock:
            return [(sample.time_label, sample.price(currency)) for sample in self._samples]

    def labels(self) -> list[str]:
        with self._lock:
            return [sample.time_label for sample in self._samples]

    def samples(self) -> list[PriceSample]:
        with self._lock:
            return list(self._samples)

    def latest(self) -> PriceSample | None:
        with self._lock:
            return self._samples[-1] if self._samples else None

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
