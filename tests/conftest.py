import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from splitledger.db.session import Base, get_db
from splitledger.main import app

PASSWORD = "Sup3r$ecret"


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def signup(client, first_name, last_name, email, mobile_no):
    res = await client.post("/api/v1/users/signup", json={
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "mobile_no": mobile_no,
        "password": PASSWORD,
    })
    assert res.status_code == 201, res.text
    return res.json()


async def login(client, email, password=PASSWORD):
    res = await client.post("/api/v1/users/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    # auth goes through explicit headers so several users can share one client
    client.cookies.clear()
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


@pytest.fixture
async def people(client):
    """Three signed-up users: {"alice": {"id", "headers"}, ...}."""
    rows = [
        ("alice", "Alice", "Arora", "alice@splitledger.io", "9000000001"),
        ("bob", "Bob", "Bose", "bob@splitledger.io", "9000000002"),
        ("carol", "Carol", "Chandra", "carol@splitledger.io", "9000000003"),
    ]
    out = {}
    for key, first, last, email, mobile in rows:
        user = await signup(client, first, last, email, mobile)
        out[key] = {"id": user["id"], "headers": await login(client, email)}
    return out


@pytest.fixture
async def trip(client, people):
    """A group holding alice, bob and carol, created by alice."""
    res = await client.post(
        "/api/v1/groups/",
        json={"name": "Goa trip", "members": [people["bob"]["id"], people["carol"]["id"]]},
        headers=people["alice"]["headers"],
    )
    assert res.status_code == 201, res.text
    return res.json()
