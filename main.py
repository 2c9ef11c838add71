"""Main application entry point."""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from coin_ticker.api.error_handlers import unhandled_exception_handler, validation_exception_handler
from coin_ticker.api.routes import router
from coin_ticker.services.price_widget import WidgetSession
from coin_ticker.utils.config import config
from coin_ticker.utils.logger import get_logger
from coin_ticker.utils.metrics import MetricsCalculator

structured_logger = get_logger("App")


def create_app(session: WidgetSession | None = None, initial_load: bool = True) -> FastAPI:
    """
    Build the FastAPI app around one widget session.

    Args:
        session: Session to serve (a fresh WidgetSession on startup if None)
        initial_load: Fetch once on startup so the widget is not empty
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan events."""
        # Startup
        try:
            config.validate()
        except ValueError as e:
            structured_logger.critical(f"Configuration error: {e}", exception=e)
            raise

        widget_session = session or WidgetSession()
        app.state.widget_session = widget_session
        app.state.metrics_calculator = MetricsCalculator(widget_session.event_store)
        if initial_load:
            await asyncio.to_thread(widget_session.start)
        yield
        # Shutdown
        widget_session.teardown()
        app.state.widget_session = None

    app = FastAPI(
        title="Coin Ticker",
        description="Live crypto price widget with rolling chart and portfolio value",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(router, prefix="/api", tags=["widget"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    # Serve the widget page from the frontend dist directory
    frontend_dist = Path(__file__).parent / "frontend" / "dist"
    if frontend_dist.exists():
        app.mount("/", StaticFiles(directory=str(frontend_dist), html=True), name="static")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
