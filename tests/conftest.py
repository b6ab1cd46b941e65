# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from contacts_bridge.dependencies import get_contacts_service
from contacts_bridge.main import app
from contacts_bridge.services.contact_cache import CacheConfig, ContactCache
from contacts_bridge.services.contacts_service import ContactsService
from tests.fakes import FakeDirectory, ManualClock


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def cache(clock):
    """A fresh cache on a manual clock; the sweeper is never started unless a test asks."""
    c = ContactCache(CacheConfig(), clock=clock)
    try:
        yield c
    finally:
        c.destroy()


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def service(cache, directory):
    return ContactsService(cache, directory)


@pytest.fixture(scope="function")
def client(service):
    """A FastAPI TestClient whose routes use the fake-directory service."""
    app.dependency_overrides[get_contacts_service] = lambda: service
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
