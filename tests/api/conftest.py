"""Fixtures for API tests."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from api.auth import SignedTokenIdentityService, get_identity_service
from api.main import app
from api.routes.blackjack import get_random_source
from api.store import InMemoryGameStore, get_game_store


@pytest.fixture
def store():
    """A fresh in-memory game store."""
    return InMemoryGameStore()


@pytest.fixture
def identity():
    """Token service with a fixed secret."""
    return SignedTokenIdentityService(secret_key="test-secret", max_age=3600)


@pytest.fixture
def auth_headers(identity):
    """Authorization headers for an owner id."""

    def _headers(owner: str = "player-1") -> dict[str, str]:
        return {"Authorization": f"Bearer {identity.issue(owner)}"}

    return _headers


@pytest_asyncio.fixture
async def client(store, identity, rng):
    """Create test client wired to the in-memory store."""
    app.dependency_overrides[get_game_store] = lambda: store
    app.dependency_overrides[get_identity_service] = lambda: identity
    app.dependency_overrides[get_random_source] = lambda: rng

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
