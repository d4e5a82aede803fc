# backend/tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from climate_api.core.rate_limit import login_limiter
from climate_api.core.security import create_access_token
from climate_api.main import app
from climate_api.repositories.memory import get_memory_store
from climate_api.services.demo_seed import seed_demo_data


@pytest.fixture(autouse=True)
def store():
    """Every test starts from the demo data with a fresh login limiter."""
    memory = get_memory_store()
    memory.reset()
    seed_demo_data(memory, only_if_empty=False)
    login_limiter.reset()
    yield memory
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def bearer(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def admin_headers(store):
    return bearer(store.users.get("user-1"))


@pytest.fixture
def operator_headers(store):
    return bearer(store.users.get("user-2"))
