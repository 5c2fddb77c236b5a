from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from locket.core.errors import AlreadyMember, InfrastructureError
from locket.services.store_guard import guarded_store_call


@pytest.mark.anyio
async def test_timeout_becomes_infrastructure_error():
    with pytest.raises(InfrastructureError) as excinfo:
        await guarded_store_call(
            "membership.check", asyncio.sleep(1), timeout_sec=0.01, locket_id="locket-1"
        )

    assert excinfo.value.code == "STORE_TIMEOUT"
    assert excinfo.value.operation == "membership.check"
    assert excinfo.value.locket_id == "locket-1"
    assert excinfo.value.retryable is True


@pytest.mark.anyio
async def test_storage_failure_becomes_infrastructure_error():
    async def broken():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    with pytest.raises(InfrastructureError) as excinfo:
        await guarded_store_call("locket.join", broken(), timeout_sec=1)

    assert excinfo.value.code == "STORE_UNAVAILABLE"
    assert excinfo.value.status_code == 503


@pytest.mark.anyio
async def test_domain_errors_pass_through():
    async def duplicate():
        raise AlreadyMember()

    with pytest.raises(AlreadyMember):
        await guarded_store_call("locket.join", duplicate(), timeout_sec=1)


@pytest.mark.anyio
async def test_result_is_returned():
    async def value():
        return 42

    assert await guarded_store_call("noop", value(), timeout_sec=1) == 42
