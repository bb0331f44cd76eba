import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_lurnex.db")

import pytest
from fastapi.testclient import TestClient

from lurnex.app.db.base import Base
from lurnex.app.db.session import SessionLocal, engine
from lurnex.app.integrations.notifications import get_notification_dispatcher
from lurnex.app.integrations.zoom import get_meeting_provider
from lurnex.app.main import app
from tests.factories import FakeDispatcher, FakeMeetingProvider


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def provider():
    return FakeMeetingProvider()


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def client(provider, dispatcher):
    app.dependency_overrides[get_meeting_provider] = lambda: provider
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
