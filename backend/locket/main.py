from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from locket.api import auth as auth_api
from locket.api import geocode as geocode_api
from locket.api import health as health_api
from locket.api import lockets as lockets_api
from locket.api import memories as memories_api
from locket.core.config import get_settings
from locket.core.errors import InfrastructureError, LocketError
from locket.core.logging import setup_logging
from locket.db.base import create_engine, create_sessionmaker, init_db
from locket.providers.geocoding import GoogleGeocoder
from locket.providers.identity_provider import HTTPIdentityProvider
from locket.schemas.common import ErrorResponse
from locket.services.access_gate import AccessGate
from locket.services.geocode_service import GeocodeService
from locket.services.identity import BearerHeaderResolver, SessionCookieResolver
from locket.services.join_service import JoinService
from locket.services.locket_service import LocketService
from locket.services.spotlight_service import SpotlightService
from locket.utils.crypto import TokenSealer

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    setup_logging(settings.log_level)

    engine = create_engine(settings.db_url)
    sessionmaker = create_sessionmaker(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db(engine)
        yield
        await engine.dispose()

    app = FastAPI(lifespan=lifespan)
    app.state.engine = engine
    app.state.sessionmaker = sessionmaker

    identity_provider = HTTPIdentityProvider(
        base_url=settings.identity_provider_url,
        api_key=settings.identity_provider_api_key,
        timeout_sec=settings.identity_timeout_sec,
    )
    app.state.access_gate = AccessGate(
        sessionmaker,
        resolvers=[
            BearerHeaderResolver(identity_provider, timeout_sec=settings.identity_timeout_sec),
            SessionCookieResolver(
                _session_sealer(settings.app_secret_key),
                cookie_name=settings.session_cookie_name,
                ttl_sec=settings.session_ttl_sec,
            ),
        ],
        store_timeout_sec=settings.store_timeout_sec,
    )
    app.state.join_service = JoinService(sessionmaker, settings.store_timeout_sec)
    app.state.locket_service = LocketService(sessionmaker, settings.store_timeout_sec)
    app.state.spotlight_service = SpotlightService(sessionmaker, settings.store_timeout_sec)
    app.state.geocode_service = GeocodeService(
        GoogleGeocoder(
            api_key=settings.google_maps_api_key,
            base_url=settings.geocode_base_url,
            timeout_sec=settings.geocode_timeout_sec,
        )
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)

    app.include_router(auth_api.router)
    app.include_router(lockets_api.router)
    app.include_router(memories_api.router)
    app.include_router(geocode_api.router)
    app.include_router(health_api.router)

    return app


def _session_sealer(secret: str) -> Optional[TokenSealer]:
    if not secret:
        logger.warning("APP_SECRET_KEY not set; session cookies are disabled")
        return None
    return TokenSealer(secret)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(LocketError)
    async def handle_locket_error(request: Request, exc: LocketError) -> JSONResponse:
        if isinstance(exc, InfrastructureError):
            logger.error(
                "Infrastructure failure: path=%s operation=%s locket_id=%s code=%s",
                request.url.path,
                exc.operation,
                exc.locket_id,
                exc.code,
            )
        return _error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            location = _error_location(errors[0].get("loc", ()))
            detail = errors[0].get("msg", "invalid value")
            message = f"{location}: {detail}" if location else detail
        return _error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal server error"
        )


def _error_location(loc) -> str:
    """Dotted field path of a validation error, without the body marker or list indexes."""

    return ".".join(str(part) for part in loc if part != "body" and not isinstance(part, int))


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(error=message, code=code).model_dump(by_alias=True)
    return JSONResponse(status_code=status_code, content=payload)


def run() -> None:
    """Serve the application with uvicorn."""

    import uvicorn

    settings = get_settings()
    uvicorn.run("locket.main:create_app", factory=True, host=settings.app_host, port=settings.app_port)
