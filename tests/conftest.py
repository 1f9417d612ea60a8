import bcrypt
import pytest
from starlette.testclient import TestClient

from portfolio_api.content.service import ResourceService
from portfolio_api.core.config import Settings
from portfolio_api.main import create_app
from tests.fakes import InMemoryContentStore, InMemoryUserRepository

TEST_SECRET = "test-secret-key-for-testing-only-0123456789"
USERNAME = "John Shepard"
PASSWORD = "normandy-sr2"


@pytest.fixture(scope="session")
def password_hash() -> str:
    # Low cost factor keeps the suite fast; verification does not care.
    return bcrypt.hashpw(PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture
def settings(password_hash):
    return Settings(
        jwt_secret=TEST_SECRET,
        access_token_expire_minutes=5,
        admin_username=USERNAME,
        admin_password_hash=password_hash,
        log_level="WARNING",
    )


@pytest.fixture
def store():
    return InMemoryContentStore()


@pytest.fixture
def users():
    return InMemoryUserRepository()


@pytest.fixture
def service(store):
    return ResourceService(store)


@pytest.fixture
def client(settings, store, users):
    app = create_app(settings, store=store, users=users)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_header(client):
    """Login and return Authorization header."""
    resp = client.post("/login", json={"username": USERNAME, "password": PASSWORD})
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
