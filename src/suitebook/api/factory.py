"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI, Request, Response

from suitebook.backend.client import BackendClient
from suitebook.observability.correlation import (
    CORRELATION_ID_HEADER,
    accept_correlation_id,
    request_context,
)
from suitebook.services.sessions import SessionStore
from suitebook.settings import Settings, get_settings

from .routers import public
from .routes import booking


def create_app(
    settings: Settings | None = None,
    client: BackendClient | None = None,
    store: SessionStore | None = None,
) -> FastAPI:
    """Create the app.

    Args:
        settings: Override for environment settings.
        client: Hotel API client. Built from settings when None.
        store: Session store. Built from client and settings when None.
    """
    settings = settings or get_settings()
    if client is None:
        client = BackendClient(settings.hotel_api_base_url, timeout=settings.hotel_api_timeout)
    if store is None:
        store = SessionStore(client, settings)

    app = FastAPI(title="SuiteBook", docs_url=None, redoc_url=None)
    app.state.settings = settings
    app.state.backend_client = client
    app.state.session_store = store

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = accept_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        with request_context(cid):
            response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response

    app.include_router(public.router)
    app.include_router(booking.router)

    return app
