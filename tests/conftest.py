# pricebook Test Suite - Shared Configuration and Fixtures
#
# This module provides:
# - Environment for the app under test (no realtime, relaxed rate limits)
# - In-memory Supabase clients (data and auth) wired in through dependency overrides
# - Signed-in users with different capability sets

import os
from types import SimpleNamespace

import pytest

os.environ.setdefault("REALTIME_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT", "10000/minute")
os.environ.setdefault("AUTH_RATE_LIMIT", "10000/minute")
os.environ.setdefault("ENVIRONMENT", "test")

from fastapi.testclient import TestClient  # noqa: E402

from fake_supabase import FakeSupabase  # noqa: E402
from pricebook.config.capabilities import get_role_grants  # noqa: E402
from pricebook.database.supabase_client import get_supabase, get_auth_supabase, get_admin_supabase  # noqa: E402
from pricebook.main import app  # noqa: E402
from pricebook.modules.products.store import CatalogStore, get_catalog_store  # noqa: E402

API = "/api/v1"


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def fake() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def store() -> CatalogStore:
    return CatalogStore()


@pytest.fixture
def auth_client(fake) -> FakeSupabase:
    return fake.auth_client()


@pytest.fixture
def client(fake, auth_client, store):
    app.dependency_overrides[get_supabase] = lambda: fake
    app.dependency_overrides[get_auth_supabase] = lambda: auth_client
    app.dependency_overrides[get_admin_supabase] = lambda: fake
    app.dependency_overrides[get_catalog_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(fake: FakeSupabase, email: str, full_name: str, token: str, **flags):
    """Auth user plus a linked permissions row with the given flags"""
    user = fake.auth.add_user(email, full_name, token=token)
    record = fake.seed_permissions(full_name, user_id=user.id, **flags)
    return SimpleNamespace(user=user, record=record, name=full_name, headers=auth_headers(token))


@pytest.fixture
def admin(fake):
    return make_user(fake, "ada@example.com", "Ada Admin", "admin-token", **get_role_grants("ADMIN"))


@pytest.fixture
def editor(fake):
    """Can add and edit products and prices, cannot delete or administer"""
    return make_user(
        fake, "eli@example.com", "Eli Editor", "editor-token",
        add_product=True, edit_product=True,
        add_price_history=True, edit_price_history=True,
    )


@pytest.fixture
def viewer(fake):
    """Signed in, never seen before: gets default (empty) permissions on first request"""
    user = fake.auth.add_user("vic@example.com", "Vic Viewer", token="viewer-token")
    return SimpleNamespace(user=user, name="Vic Viewer", headers=auth_headers("viewer-token"))
