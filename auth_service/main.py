"""FastAPI application wiring for the auth service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.errors import register_exception_handlers
from .api.routes import router as auth_router
from .config import Settings, get_settings
from .domain.contracts import AccountStore
from .domain.service import AuthService
from .logging_config import configure_logging
from .repository import AccountRepository
from .security.tokens import TokenService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, store: AccountStore | None = None) -> FastAPI:
    """Build the application; a ``store`` given here replaces the Postgres pool."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
        configure_logging(settings)
        tokens = TokenService(settings.token_settings())
        app.state.token_service = tokens

        if store is not None:
            app.state.auth_service = AuthService(store, tokens)
            yield
            return

        pool = ConnectionPool(settings.database_url, open=False)
        pool.open()
        repository = AccountRepository(pool, bcrypt_rounds=settings.bcrypt_rounds)
        repository.ensure_schema()
        app.state.pool = pool
        app.state.auth_service = AuthService(repository, tokens)
        logger.info("%s %s started (%s)", settings.app_name, settings.version, settings.environment)
        try:
            yield
        finally:
            pool.close()

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    register_exception_handlers(app, include_stack=not settings.is_production)

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": "ok"}

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(auth_router)
    return app


app = create_app()
