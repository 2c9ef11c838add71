"""Tests for the widget API endpoints."""

import pytest
from fastapi.testclient import TestClient

from coin_ticker.ui.render import FAILURE_HTML
from main import create_app
from tests.conftest import BITCOIN_PAYLOAD, ETHEREUM_PAYLOAD, make_response


@pytest.fixture
def api_client(widget_session, scripted_client):
    """Test client around a session whose initial load returns the bitcoin payload."""
    scripted_client.queue(make_response(BITCOIN_PAYLOAD))
    app = create_app(session=widget_session)
    with TestClient(app) as client:
        yield client


class TestStartup:
    def test_initial_load_on_startup(self, api_client, scripted_client):
        response = api_client.get("/api/widget")

        assert response.status_code == 200
        data = response.json()
        assert scripted_client.requested == ["bitcoin"]
        assert data["last_prices"] == {"eur": 61234.56, "usd": 65432.10}
        assert "EUR: 61234.56 €" in data["display_html"]

    def test_health(self, api_client):
        response = api_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_list_assets(self, api_client):
        response = api_client.get("/api/assets")

        assert response.status_code == 200
        assert response.json() == {
            "assets": [
                {"id": "bitcoin", "label": "Bitcoin (BTC)"},
                {"id": "ethereum", "label": "Ethereum (ETH)"},
            ],
            "default": "bitcoin",
        }

    def test_shutdown_tears_session_down(self, widget_session, scripted_client):
        scripted_client.queue(make_response(BITCOIN_PAYLOAD))
        app = create_app(session=widget_session)

        with TestClient(app) as client:
            client.put("/api/widget/auto-refresh", json={"enabled": True})
            assert widget_session.auto_refresh.is_enabled is True

        assert widget_session.auto_refresh.is_enabled is False
        assert len(widget_session.history) == 0

    def test_requests_before_startup_are_rejected(self):
        app = create_app(initial_load=False)
        client = TestClient(app)

        response = client.get("/api/widget")

        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "SESSION_UNAVAILABLE"


class TestLoadEndpoint:
    def test_load_success(self, api_client, scripted_client):
        scripted_client.queue(make_response(BITCOIN_PAYLOAD))

        response = api_client.post("/api/widget/load")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["widget"]["trigger"] == {"enabled": True, "label": "Load latest price"}
        assert data["widget"]["history_size"] == 2

    def test_load_while_trigger_busy_is_conflict(self, api_client, widget_session, scripted_client):
        widget_session.view.trigger.set_busy()

        response = api_client.post("/api/widget/load")

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "TRIGGER_BUSY"
        assert scripted_client.requested == ["bitcoin"]

    def test_load_failure_returns_generic_message(self, api_client, scripted_client):
        scripted_client.queue(make_response({}, status_code=500))

        response = api_client.post("/api/widget/load")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "failed"
        assert data["widget"]["display_html"] == FAILURE_HTML
        assert data["widget"]["trigger"]["enabled"] is True
        assert data["widget"]["last_prices"] == {"eur": 61234.56, "usd": 65432.10}


class TestAssetEndpoint:
    def test_switch_asset(self, api_client, scripted_client):
        scripted_client.queue(make_response(ETHEREUM_PAYLOAD))

        response = api_client.put("/api/widget/asset", json={"asset": "ethereum"})

        assert response.status_code == 200
        data = response.json()
        assert data["asset"] == "ethereum"
        assert data["widget"]["asset"] == {"id": "ethereum", "label": "Ethereum (ETH)"}
        assert scripted_client.requested[-1] == "ethereum"

    def test_unknown_asset(self, api_client):
        response = api_client.put("/api/widget/asset", json={"asset": "dogecoin"})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "UNKNOWN_ASSET"
        assert detail["details"]["available"] == ["bitcoin", "ethereum"]

    def test_missing_field_is_validation_error(self, api_client):
        response = api_client.put("/api/widget/asset", json={})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "VALIDATION_ERROR"
        assert "body.asset" in data["details"]


class TestAutoRefreshEndpoint:
    def test_enable_and_disable(self, api_client, widget_session, scheduler):
        response = api_client.put("/api/widget/auto-refresh", json={"enabled": True})
        assert response.json() == {"enabled": True, "interval_seconds": 30}

        api_client.put("/api/widget/auto-refresh", json={"enabled": True})
        assert len(scheduler.get_jobs()) == 1

        response = api_client.put("/api/widget/auto-refresh", json={"enabled": False})
        assert response.json()["enabled"] is False
        assert api_client.get("/api/widget").json()["auto_refresh"] is False


class TestPortfolioEndpoint:
    def test_valid_amount(self, api_client):
        response = api_client.put("/api/widget/portfolio", json={"amount": "0.5"})

        assert response.status_code == 200
        assert response.json() == {
            "text": "Value: 30617.28 € / 32716.05 $",
            "value_eur": 30617.28,
            "value_usd": 32716.05,
        }

    def test_numeric_amount(self, api_client):
        response = api_client.put("/api/widget/portfolio", json={"amount": 1})
        assert response.json()["value_eur"] == 61234.56

    @pytest.mark.parametrize("amount", [True, False, [1], {"value": 1}])
    def test_non_text_non_number_amount_is_validation_error(self, api_client, amount):
        response = api_client.put("/api/widget/portfolio", json={"amount": amount})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert api_client.get("/api/widget").json()["portfolio"] == "Enter amount to calculate value."

    @pytest.mark.parametrize("amount", ["0", "abc", "", None])
    def test_invalid_amount(self, api_client, amount):
        response = api_client.put("/api/widget/portfolio", json={"amount": amount})

        assert response.json() == {
            "text": "Enter amount to calculate value.",
            "value_eur": None,
            "value_usd": None,
        }


class TestObservabilityEndpoints:
    def test_metrics(self, api_client, scripted_client):
        scripted_client.queue(make_response({}, status_code=500))
        api_client.post("/api/widget/load")

        metrics = api_client.get("/api/metrics").json()

        assert metrics["total_fetches"] == 2
        assert metrics["successful_fetches"] == 1
        assert metrics["failed_fetches"] == 1
        assert metrics["success_rate"] == 50.0

    def test_events(self, api_client):
        response = api_client.get("/api/events", params={"limit": 10})

        data = response.json()
        assert [e["event_type"] for e in data["events"]] == ["fetch_start", "fetch_complete"]
        assert data["events"][0]["trace_id"] == data["events"][1]["trace_id"]

    def test_events_filtered_by_trace(self, api_client, scripted_client):
        scripted_client.queue(make_response(BITCOIN_PAYLOAD))
        api_client.post("/api/widget/load")
        trace_id = api_client.get("/api/events").json()["events"][-1]["trace_id"]

        data = api_client.get("/api/events", params={"trace_id": trace_id}).json()

        assert data["total"] == 2
        assert {e["trace_id"] for e in data["events"]} == {trace_id}
        assert [e["context"]["sequence"] for e in data["events"]] == [2, 2]

    def test_unexpected_error_returns_internal_error(self, widget_session, scripted_client, monkeypatch):
        scripted_client.queue(make_response(BITCOIN_PAYLOAD))
        app = create_app(session=widget_session)

        def broken_snapshot():
            raise RuntimeError("boom")

        with TestClient(app, raise_server_exceptions=False) as client:
            monkeypatch.setattr(widget_session, "snapshot", broken_snapshot)
            response = client.get("/api/widget")

        assert response.status_code == 500
        assert response.json() == {"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"}

    def test_chart(self, api_client):
        chart = api_client.get("/api/widget/chart").json()

        assert chart["labels"] == ["09:05"]
        assert chart["datasets"][1] == {"label": "USD", "data": [65432.10]}
