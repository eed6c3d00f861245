"""Shared pytest fixtures: in-memory services, sessions and an app client."""

import os

# Settings are read when storefront.main is imported; pin the mode first.
os.environ["ENV_MODE"] = "development"
os.environ.setdefault("DEBUG", "false")

import pytest
from fastapi.testclient import TestClient

from storefront.core.config import get_settings
from storefront.services.auth import MockAuthProvider, reset_auth_provider
from storefront.services.platform import MockDataPlatform, reset_data_platform
from storefront.state import (
    CartStore,
    MemorySlotBackend,
    OrderSelectionStore,
    SessionRegistry,
    reset_slot_backend,
)
from storefront.state.slots import CART_SLOT, SELECTION_SLOT


@pytest.fixture(autouse=True)
def _fresh_factories():
    """Every test starts from fresh settings and service instances."""
    get_settings.cache_clear()
    reset_data_platform()
    reset_auth_provider()
    reset_slot_backend()
    yield
    get_settings.cache_clear()
    reset_data_platform()
    reset_auth_provider()
    reset_slot_backend()


@pytest.fixture()
def backend() -> MemorySlotBackend:
    return MemorySlotBackend()


@pytest.fixture()
def cart(backend) -> CartStore:
    return CartStore(backend.slot("test-session", CART_SLOT))


@pytest.fixture()
def selection_store(backend) -> OrderSelectionStore:
    return OrderSelectionStore(backend.slot("test-session", SELECTION_SLOT))


@pytest.fixture()
def registry(backend) -> SessionRegistry:
    return SessionRegistry(backend)


@pytest.fixture()
def session(registry):
    return registry.get("a" * 32)


@pytest.fixture()
def platform() -> MockDataPlatform:
    return MockDataPlatform()


@pytest.fixture()
def auth() -> MockAuthProvider:
    return MockAuthProvider()


@pytest.fixture()
def client(platform, auth, registry):
    """TestClient wired to the in-memory platform, auth provider and registry."""
    from storefront.dependencies import get_auth, get_platform, get_registry
    from storefront.main import app

    app.dependency_overrides[get_platform] = lambda: platform
    app.dependency_overrides[get_auth] = lambda: auth
    app.dependency_overrides[get_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

