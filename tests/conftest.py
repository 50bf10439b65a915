import os
import tempfile
import uuid

_DB_DIR = tempfile.mkdtemp(prefix="reoutfit-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.pop("STORAGE_BUCKET", None)

import httpx  # noqa: E402
import pytest  # noqa: E402
from asgi_lifespan import LifespanManager  # noqa: E402

from app.auth.jwt import mint_access  # noqa: E402
from app.core.db import Base, engine  # noqa: E402
from app.core.http import get_http  # noqa: E402
from app.main import app  # noqa: E402
from app.models import models  # noqa: E402,F401

API_BASE = "http://test"

ALICE = str(uuid.UUID("00000000-0000-0000-0000-00000000a11c"))
BOB = str(uuid.UUID("00000000-0000-0000-0000-000000000b0b"))


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {mint_access(user_id)}"}


@pytest.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db):
    async with LifespanManager(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url=API_BASE) as ac:
            yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def alice_id() -> str:
    return ALICE


@pytest.fixture
def bob_id() -> str:
    return BOB


@pytest.fixture
def alice() -> dict:
    return auth_headers(ALICE)


@pytest.fixture
def bob() -> dict:
    return auth_headers(BOB)


@pytest.fixture
def outbound():
    """Route the shared outbound client through a handler: ``outbound(handler)``."""
    def install(handler):
        mocked = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_http] = lambda: mocked
        return mocked

    yield install
    app.dependency_overrides.pop(get_http, None)
