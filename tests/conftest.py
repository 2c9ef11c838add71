"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from coin_ticker.services.coingecko_client import CoinGeckoClient
from coin_ticker.services.price_widget import WidgetSession

BITCOIN_PAYLOAD = {
    "bitcoin": {
        "eur": 61234.56,
        "usd": 65432.10,
        "eur_24h_change": 1.25,
        "usd_24h_change": -0.80,
    }
}

ETHEREUM_PAYLOAD = {
    "ethereum": {
        "eur": 2950.5,
        "usd": 3150.25,
        "eur_24h_change": -2.5,
        "usd_24h_change": 0.0,
    }
}


def make_response(payload=None, status_code: int = 200) -> Mock:
    """Build a stand-in for requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = payload
    return response


def payload_for(asset_id: str, eur: float, usd: float, eur_change: float = 0.5, usd_change: float = 0.5) -> dict:
    return {
        asset_id: {
            "eur": eur,
            "usd": usd,
            "eur_24h_change": eur_change,
            "usd_24h_change": usd_change,
        }
    }


class FakeClock:
    """Wall clock that advances one minute per call."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 5, 1, 9, 5)

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + timedelta(minutes=1)
        return now


class ScriptedClient(CoinGeckoClient):
    """
    CoinGeckoClient whose HTTP layer is a list of canned results.

    Each entry is either a response Mock or an exception instance to raise.
    An optional hook runs before the result is returned, which lets a test
    issue another request while this one is still outstanding.
    """

    def __init__(self, results=None):
        super().__init__()
        self.results = list(results or [])
        self.requested: list[str] = []
        self.hooks: dict[int, object] = {}

    def queue(self, result) -> None:
        self.results.append(result)

    def fetch_quote(self, asset_id, trace_id=None):
        self.requested.append(asset_id)
        call_index = len(self.requested)
        result = self.results.pop(0)
        hook = self.hooks.pop(call_index, None)
        if hook is not None:
            hook()

        def _get(url, params=None, timeout=None):
            if isinstance(result, Exception):
                raise result
            return result

        self.session = Mock(get=Mock(side_effect=_get))
        return super().fetch_quote(asset_id, trace_id=trace_id)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scripted_client():
    return ScriptedClient()


@pytest.fixture
def scheduler():
    sched = BackgroundScheduler()
    yield sched
    if sched.running:
        sched.shutdown(wait=False)


@pytest.fixture
def widget_session(scripted_client, clock, scheduler):
    """A widget session wired to a scripted client and a fake clock."""
    session = WidgetSession(client=scripted_client, clock=clock, scheduler=scheduler)
    yield session
    session.teardown()
