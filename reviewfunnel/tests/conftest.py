import sys
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from reviewfunnel.config import Settings
from reviewfunnel.db import SqliteGateway
from reviewfunnel.services import setup_svc

TEST_SECRET = "test-secret-for-sessions-0123456789abcdef"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct-horse-battery"


@pytest.fixture()
def settings():
    return Settings(
        app_env="test",
        storage_backend="memory",
        jwt_secret=TEST_SECRET,
        public_base_url="https://reviews.example.com",
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture()
def gateway():
    # fresh in-memory store per test
    gw = SqliteGateway(":memory:")
    setup_svc.ensure_schema(gw)
    yield gw
    gw.close()


@pytest.fixture()
def client(settings, gateway):
    # Import app factory lazily so each test gets its own app + store
    from reviewfunnel.api import create_app
    from fastapi.testclient import TestClient
    app = create_app(settings=settings, gateway=gateway)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def admin_client(client):
    r = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return client
