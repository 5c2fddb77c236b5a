from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from locket.core.errors import InfrastructureError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def guarded_store_call(
    operation: str,
    awaitable: Awaitable[T],
    *,
    timeout_sec: float,
    locket_id: Optional[str] = None,
) -> T:
    """Await a store operation under a timeout, mapping storage faults to InfrastructureError.

    Domain errors raised inside ``awaitable`` propagate unchanged.
    """

    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_sec)
    except asyncio.TimeoutError as exc:
        logger.error(
            "Store call timed out: operation=%s locket_id=%s timeout=%.1fs",
            operation,
            locket_id,
            timeout_sec,
        )
        raise InfrastructureError(
            operation,
            "Storage did not respond in time.",
            code="STORE_TIMEOUT",
            locket_id=locket_id,
        ) from exc
    except SQLAlchemyError as exc:
        logger.error(
            "Store call failed: operation=%s locket_id=%s error=%s",
            operation,
            locket_id,
            exc.__class__.__name__,
        )
        raise InfrastructureError(
            operation,
            "Storage is unavailable.",
            code="STORE_UNAVAILABLE",
            locket_id=locket_id,
        ) from exc
