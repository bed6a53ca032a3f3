from datetime import datetime, timedelta

import pytest

from config import TestConfig
from flagcore import create_app, db
from flagcore.repository import InMemoryFlagStore, SqlAlchemyFlagStore
from flagcore.services import FlagLifecycleManager


class FakeClock:
    """Advances one second per call so timestamps are ordered and comparable."""

    def __init__(self, start=datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture(params=["sql", "memory"])
def store_kind(request):
    return request.param


@pytest.fixture
def app(store_kind):
    store = InMemoryFlagStore() if store_kind == "memory" else None
    app = create_app(TestConfig, store=store)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(app, store_kind, clock):
    if store_kind == "memory":
        return InMemoryFlagStore(clock=clock)
    return SqlAlchemyFlagStore(db, clock=clock)


@pytest.fixture
def manager(store, clock):
    return FlagLifecycleManager(store, clock=clock)
