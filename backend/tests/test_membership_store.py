from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from locket.repos.invite_repo import InviteRepo
from locket.repos.membership_repo import MembershipRepo
from locket.utils.time_utils import utc_now


async def create_in_own_session(sessionmaker, locket_id: str, user_id: str):
    async with sessionmaker() as db:
        async with db.begin():
            return await MembershipRepo(db).create_membership(
                locket_id, user_id, "bob@example.com", "Bob"
            )


@pytest.mark.anyio
async def test_concurrent_create_membership_stores_one_row(sessionmaker, seed):
    locket_id = await seed.locket()

    results = await asyncio.gather(
        create_in_own_session(sessionmaker, locket_id, "user-bob"),
        create_in_own_session(sessionmaker, locket_id, "user-bob"),
    )

    assert sorted(result.created for result in results) == [False, True]
    async with sessionmaker() as db:
        repo = MembershipRepo(db)
        members = await repo.list_members(locket_id)
    assert [member.user_id for member in members].count("user-bob") == 1


@pytest.mark.anyio
async def test_create_membership_reports_existing_row(sessionmaker, seed):
    locket_id = await seed.locket()

    first = await create_in_own_session(sessionmaker, locket_id, "user-bob")
    second = await create_in_own_session(sessionmaker, locket_id, "user-bob")

    assert first.created is True
    assert first.joined_at is not None
    assert second.created is False
    assert second.joined_at is None


@pytest.mark.anyio
async def test_has_membership_reads_own_writes(sessionmaker, seed):
    locket_id = await seed.locket()

    async with sessionmaker() as db:
        repo = MembershipRepo(db)
        assert await repo.has_membership(locket_id, "user-bob") is False

    await create_in_own_session(sessionmaker, locket_id, "user-bob")

    async with sessionmaker() as db:
        repo = MembershipRepo(db)
        assert await repo.has_membership(locket_id, "user-bob") is True
        assert await repo.has_membership(locket_id, "user-carol") is False
        assert len(await repo.list_members(locket_id)) == 2


@pytest.mark.anyio
async def test_membership_is_scoped_to_locket(sessionmaker, seed):
    locket_a = await seed.locket()
    locket_b = await seed.locket(owner_id="user-carol")

    async with sessionmaker() as db:
        repo = MembershipRepo(db)
        assert await repo.has_membership(locket_a, "user-alice") is True
        assert await repo.has_membership(locket_b, "user-alice") is False


@pytest.mark.anyio
async def test_resolve_invite_code_checks_validity_at_call_time(sessionmaker, seed):
    locket_id = await seed.locket()
    now = utc_now()
    valid = await seed.invite(locket_id, code="valid-code")
    expired = await seed.invite(locket_id, code="old-code", expires_at=now - timedelta(days=1))
    expiring = await seed.invite(locket_id, code="soon-code", expires_at=now + timedelta(hours=1))
    used_up = await seed.invite(locket_id, code="once-code", max_uses=1)

    async with sessionmaker() as db:
        repo = InviteRepo(db)
        assert await repo.resolve_invite_code(valid, now) == locket_id
        assert await repo.resolve_invite_code("no-such-code", now) is None
        assert await repo.resolve_invite_code(expired, now) is None
        assert await repo.resolve_invite_code(expiring, now) == locket_id
        assert await repo.resolve_invite_code(expiring, now + timedelta(hours=2)) is None
        assert await repo.resolve_invite_code(used_up, now) == locket_id

    async with sessionmaker() as db:
        async with db.begin():
            assert await InviteRepo(db).consume_invite_code(used_up, now) is True

    async with sessionmaker() as db:
        repo = InviteRepo(db)
        assert await repo.resolve_invite_code(used_up, now) == locket_id
        assert await repo.find_active_invite(used_up, now) is None

    async with sessionmaker() as db:
        async with db.begin():
            assert await InviteRepo(db).consume_invite_code(used_up, now) is False


@pytest.mark.anyio
async def test_revoked_invite_no_longer_resolves(sessionmaker, seed):
    locket_id = await seed.locket()
    code = await seed.invite(locket_id, revoked=True)

    async with sessionmaker() as db:
        repo = InviteRepo(db)
        assert await repo.resolve_invite_code(code, utc_now()) is None
        assert await repo.find_active_invite(code, utc_now()) is None
