"""
Server test fixtures: in-memory Firestore (see firestore_fake.py) + TestClient.
"""
import pytest
from unittest.mock import patch

from firestore_fake import FakeFirestoreClient, FirestoreSeeder

# ═══════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════

ADMIN_USER = {"user_id": "admin-001", "email": "admin@bgo.test", "name": "Admin", "role": "admin"}
SUPERADMIN_USER = {"user_id": "super-001", "email": "super@bgo.test", "name": "Super", "role": "superadmin"}


@pytest.fixture
def fake_db():
    """Create a fresh FakeFirestoreClient for each test and route get_db() to it."""
    import bgo.database as db_mod

    db = FakeFirestoreClient()
    with patch.object(db_mod, "get_db", return_value=db), patch.object(db_mod, "_db", db):
        yield db


@pytest.fixture
def seed(fake_db):
    return FirestoreSeeder(fake_db)


@pytest.fixture(autouse=True)
def reset_caches():
    """Module-level services keep their caches between tests; start each test cold."""
    from bgo.services.conductors import conductor_service
    from bgo.services.dashboard import summary_cache
    from bgo.services.remittance import remittance_service
    from bgo.services.revenue import revenue_cache, routes_cache

    def clear():
        remittance_service.remove_all_listeners()
        remittance_service.invalidate_all()
        revenue_cache.clear()
        routes_cache.clear()
        conductor_service.list_cache.clear()
        summary_cache.clear()

    clear()
    yield
    clear()


@pytest.fixture
def auth_user():
    """The caller returned by get_current_user; tests may change its role."""
    return dict(ADMIN_USER)


@pytest.fixture
def patched_app(fake_db, auth_user):
    from bgo.dependencies import get_current_user
    from bgo.main import app as fastapi_app
    from bgo.rate_limit import limiter

    limiter.reset()
    fastapi_app.dependency_overrides[get_current_user] = lambda: auth_user
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(patched_app):
    """TestClient bound to the patched FastAPI app, authenticated as an admin."""
    from starlette.testclient import TestClient
    return TestClient(patched_app)


@pytest.fixture
def superadmin_client(patched_app, auth_user):
    from starlette.testclient import TestClient
    auth_user.update(SUPERADMIN_USER)
    return TestClient(patched_app)


@pytest.fixture
def auth_accounts():
    """Replace Firebase Auth account creation; returns the mock."""
    with patch("bgo.services.conductors.create_auth_user") as mock_create:
        mock_create.side_effect = lambda email, password, name: f"uid-{email.split('@')[0]}"
        yield mock_create
