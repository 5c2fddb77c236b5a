from __future__ import annotations

import asyncio
import logging
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from locket.core.config import get_settings
from locket.schemas.common import HealthResponse
from locket.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health(request: Request, response: Response) -> HealthResponse:
    """Report service and database connectivity."""

    database = "ok"
    try:
        await asyncio.wait_for(
            _ping_database(request), timeout=get_settings().store_timeout_sec
        )
    except (SQLAlchemyError, asyncio.TimeoutError) as exc:
        logger.error("Health check failed: %s", exc.__class__.__name__)
        database = "unavailable"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if database == "ok" else "unhealthy",
        timestamp=utc_now().isoformat(),
        database=database,
        version=_package_version(),
    )


async def _ping_database(request: Request) -> None:
    async with request.app.state.sessionmaker() as db:
        await db.execute(text("SELECT 1"))


def _package_version() -> str:
    try:
        return version("locket-core")
    except PackageNotFoundError:
        return "0.0.0"
