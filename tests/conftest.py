import pytest
from fastapi.testclient import TestClient

from taskmarket.core.session import Session
from taskmarket.db.firebase_ops import get_store
from taskmarket.main import app
from taskmarket.routers.deps import get_session

from helpers import InMemoryStore


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Make every following request run as the given user."""
    def _login(user):
        app.dependency_overrides[get_session] = lambda: Session(user=user, token="fake-token")
        return user
    return _login
