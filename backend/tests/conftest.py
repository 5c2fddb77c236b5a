import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import httpx
import pytest

from locket.core.config import get_settings
from locket.db.base import init_db
from locket.db.models import ROLE_MEMBER, ROLE_OWNER
from locket.main import create_app
from locket.providers.geocoding import GeocodeResult
from locket.providers.identity_provider import Identity
from locket.repos.invite_repo import InviteRepo
from locket.repos.locket_repo import LocketRepo
from locket.repos.memory_repo import MemoryRepo
from locket.repos.membership_repo import MembershipRepo

IDENTITIES = {
    "token-alice": Identity(id="user-alice", email="alice@example.com", display_name="Alice"),
    "token-bob": Identity(id="user-bob", email="bob@example.com", display_name="Bob"),
    "token-carol": Identity(id="user-carol", email="", display_name=""),
}


@pytest.fixture
def identity_provider():
    return StubIdentityProvider(IDENTITIES)


@pytest.fixture
def geocoder():
    return StubGeocoder()


@pytest.fixture
def app(tmp_path, monkeypatch, identity_provider, geocoder):
    db_path = tmp_path / "test_locket.db"
    monkeypatch.setenv("DB_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("APP_SECRET_KEY", "test-secret")
    monkeypatch.setenv("APP_ENV", "test")
    get_settings.cache_clear()
    app = create_app()
    app.state.access_gate.resolver("bearer").set_provider(identity_provider)
    app.state.geocode_service.set_geocoder(geocoder)
    return app


@pytest.fixture
async def sessionmaker(app):
    await init_db(app.state.engine)
    yield app.state.sessionmaker
    await app.state.engine.dispose()


@pytest.fixture
async def client(app, sessionmaker):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def seed(sessionmaker):
    return Seeder(sessionmaker)


@pytest.fixture
def anyio_backend():
    return "asyncio"


class StubIdentityProvider:
    """Identity provider stub keyed by bearer token."""

    def __init__(self, identities: dict[str, Identity]) -> None:
        self._identities = dict(identities)
        self.calls: list[str] = []

    async def resolve_token(self, token: str) -> Optional[Identity]:
        self.calls.append(token)
        return self._identities.get(token)


class StubGeocoder:
    """Geocoder stub returning a fixed result (None simulates a provider miss)."""

    def __init__(self, result: Optional[GeocodeResult] = None) -> None:
        self.result = result
        self.calls: list[tuple[float, float]] = []

    async def reverse(self, latitude: float, longitude: float) -> Optional[GeocodeResult]:
        self.calls.append((latitude, longitude))
        return self.result


class Seeder:
    """Writes fixture rows straight through the repositories."""

    def __init__(self, sessionmaker) -> None:
        self._sessionmaker = sessionmaker

    async def locket(
        self,
        owner_id: str = "user-alice",
        name: str = "Our Locket",
        description: Optional[str] = None,
    ) -> str:
        locket_id = uuid.uuid4().hex
        async with self._sessionmaker() as db:
            async with db.begin():
                await LocketRepo(db).create_locket(
                    locket_id, name, admin_user_id=owner_id, description=description
                )
                await MembershipRepo(db).create_membership(
                    locket_id, owner_id, f"{owner_id}@example.com", owner_id, role=ROLE_OWNER
                )
        return locket_id

    async def member(self, locket_id: str, user_id: str) -> None:
        async with self._sessionmaker() as db:
            async with db.begin():
                await MembershipRepo(db).create_membership(
                    locket_id, user_id, "", "", role=ROLE_MEMBER
                )

    async def invite(
        self,
        locket_id: str,
        code: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        max_uses: Optional[int] = None,
        revoked: bool = False,
    ) -> str:
        code = code or uuid.uuid4().hex[:12]
        async with self._sessionmaker() as db:
            async with db.begin():
                invite = await InviteRepo(db).create_invite(
                    code, locket_id, expires_at=expires_at, max_uses=max_uses
                )
                invite.revoked = revoked
        return code

    async def memory(
        self,
        locket_id: str,
        captured_at: datetime,
        memory_id: Optional[str] = None,
        title: Optional[str] = None,
    ) -> str:
        memory_id = memory_id or uuid.uuid4().hex
        async with self._sessionmaker() as db:
            async with db.begin():
                await MemoryRepo(db).create_memory(
                    memory_id, locket_id, captured_at, title=title, content_ref=f"s3://{memory_id}"
                )
        return memory_id
