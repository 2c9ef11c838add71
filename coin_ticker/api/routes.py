"""API routes standing in for the widget's user events."""

from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr

from coin_ticker.api.error_handlers import (
    create_session_unavailable_error,
    create_trigger_busy_error,
    create_unknown_asset_error,
)
from coin_ticker.models.price import FetchOutcome
from coin_ticker.services.price_widget import TriggerBusyError, UnknownAssetError, WidgetSession
from coin_ticker.utils.metrics import MetricsCalculator

router = APIRouter()


class AssetSelection(BaseModel):
    """Request model for changing the selected asset."""
    asset: str


class AutoRefreshToggle(BaseModel):
    """Request model for the auto-refresh checkbox."""
    enabled: bool


class PortfolioAmount(BaseModel):
    """Request model for the amount field: raw input text, or a number."""
    amount: Optional[Union[StrictStr, StrictInt, StrictFloat]] = None


def get_session(request: Request) -> WidgetSession:
    """FastAPI dependency returning the widget session owned by the app."""
    session = getattr(request.app.state, "widget_session", None)
    if session is None:
        raise create_session_unavailable_error().to_http_exception()
    return session


def get_metrics_calculator(request: Request) -> MetricsCalculator:
    calculator = getattr(request.app.state, "metrics_calculator", None)
    if calculator is None:
        raise create_session_unavailable_error().to_http_exception()
    return calculator


def _outcome_response(outcome: FetchOutcome, session: WidgetSession) -> dict[str, Any]:
    return {
        "status": outcome.status,
        "asset": outcome.context.asset.id,
        "sequence": outcome.context.sequence,
        "widget": session.snapshot(),
    }


@router.get("/assets")
def list_assets(session: WidgetSession = Depends(get_session)):
    """List the selectable assets in dropdown order."""
    return {
        "assets": [{"id": a.id, "label": a.label} for a in session.widget_config.assets],
        "default": session.widget_config.default_asset.id,
    }


@router.get("/widget")
def get_widget(session: WidgetSession = Depends(get_session)):
    """Current state of every widget slot."""
    return session.snapshot()


@router.post("/widget/load")
def load_price(session: WidgetSession = Depends(get_session)):
    """Trigger control clicked: fetch with busy trigger and loading placeholder."""
    try:
        outcome = session.load()
    except TriggerBusyError:
        raise create_trigger_busy_error().to_http_exception()
    return _outcome_response(outcome, session)


@router.put("/widget/asset")
def select_asset(selection: AssetSelection, session: WidgetSession = Depends(get_session)):
    """Asset dropdown changed: fetch the new asset without disabling the trigger."""
    try:
        outcome = session.select_asset(selection.asset)
    except UnknownAssetError as e:
        available = [a.id for a in session.widget_config.assets]
        raise create_unknown_asset_error(e.asset_id, available).to_http_exception()
    return _outcome_response(outcome, session)


@router.put("/widget/auto-refresh")
def toggle_auto_refresh(toggle: AutoRefreshToggle, session: WidgetSession = Depends(get_session)):
    session.set_auto_refresh(toggle.enabled)
    return {
        "enabled": session.auto_refresh.is_enabled,
        "interval_seconds": session.auto_refresh.interval_seconds,
    }


@router.put("/widget/portfolio")
def update_portfolio(body: PortfolioAmount, session: WidgetSession = Depends(get_session)):
    """Amount field changed: recalculate the portfolio value."""
    result = session.set_amount(body.amount)
    return {
        "text": result.text,
        "value_eur": result.value_eur,
        "value_usd": result.value_usd,
    }


@router.get("/widget/chart")
def get_chart(session: WidgetSession = Depends(get_session)):
    return session.snapshot()["chart"]


@router.get("/metrics")
def get_metrics(calculator: MetricsCalculator = Depends(get_metrics_calculator)):
    return calculator.calculate().to_dict()


@router.get("/events")
def get_events(
    limit: int = Query(50, ge=1, le=500),
    trace_id: Optional[str] = Query(None, description="Only events of this fetch cycle"),
    session: WidgetSession = Depends(get_session),
):
    """Most recent fetch events, oldest first."""
    if trace_id:
        events = session.event_store.get_events_by_trace(trace_id)[-limit:]
    else:
        events = session.event_store.get_recent_events(limit)
    return {"events": [e.to_dict() for e in events], "total": len(events)}
