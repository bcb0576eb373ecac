import os

# Settings are read at import time, so configure them before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-at-least-32-bytes")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tokenauth.api import app
from tokenauth.auth import get_db
from tokenauth.database import Base
from tokenauth.store import AccountStore


@pytest.fixture
def session_local():
    """Provide an isolated in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def store(session_local):
    session = session_local()
    try:
        yield AccountStore(session)
    finally:
        session.close()


@pytest.fixture
def client(session_local):
    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.limiter.enabled = True


@pytest.fixture
def alice(client):
    resp = client.post(
        "/api/register",
        json={"username": "alice", "email": "alice@example.com", "password": "secret1"},
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def alice_token(client, alice):
    resp = client.post("/api/login", json={"username": "alice", "password": "secret1"})
    assert resp.status_code == 200
    return resp.json()["token"]
