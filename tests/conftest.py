"""Shared fixtures: in-memory database, test key, temp export dir, API client."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import securevault.models  # noqa: F401
from securevault.database import Base, get_db
from securevault.main import app
from securevault.schemas.activity import Actor, RequestContext
from securevault.services.export_staging import ExportStaging
from securevault.utils.crypto import CryptoBox
from securevault.utils.secret_field import SecretField

TEST_KEY = "test-suite-encryption-key-0123456789"
ACTOR_HEADERS = {"X-Actor-Id": "tester", "X-Actor-Name": "Test User"}


@pytest.fixture
def crypto() -> CryptoBox:
    return CryptoBox(TEST_KEY)


@pytest.fixture
def secret_field(crypto) -> SecretField:
    return SecretField(crypto)


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(
        actor=Actor(id="tester", display_name="Test User"), ip="127.0.0.1", user_agent="pytest"
    )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def staging(tmp_path):
    staging = ExportStaging(tmp_path / "exports", retention_seconds=60)
    yield staging
    await staging.shutdown()


@pytest_asyncio.fixture
async def client(session_factory, crypto, staging):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.state.crypto = crypto
    app.state.staging = staging
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=ACTOR_HEADERS) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def seeded(client: AsyncClient) -> dict:
    """Two clients, two platforms. Returns their ids by name."""
    ids: dict[str, int] = {}
    for payload in (
        {"name": "Acme Corp", "contact_person": "Ada", "email": "ada@acme.test", "phone": "555-0100"},
        {"name": "Beta/Labs: R&D", "contact_person": "Bob", "email": "bob@beta.test"},
    ):
        resp = await client.post("/api/clients/", json=payload)
        assert resp.status_code == 201
        ids[payload["name"]] = resp.json()["id"]

    resp = await client.post("/api/platforms/categories", json={"name": "Social"})
    assert resp.status_code == 201
    ids["Social"] = resp.json()["id"]

    for payload in (
        {"name": "Twitter", "category_id": ids["Social"]},
        {"name": "AWS"},
    ):
        resp = await client.post("/api/platforms/", json=payload)
        assert resp.status_code == 201
        ids[payload["name"]] = resp.json()["id"]
    return ids
