"""Shared test fixtures."""

from collections.abc import Iterable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lootcase.core.event_bus import EventBus
from lootcase.db.database import build_engine, get_db
from lootcase.db.ledger import LedgerStore
from lootcase.db.models import Base
from lootcase.main import app
from lootcase.services.case_service import CaseService
from lootcase.services.catalog_service import CatalogService

TEST_ENGINE = build_engine("sqlite:///:memory:", poolclass=StaticPool)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


class FixedDraws:
    """Uniform source replaying fixed values in [0, 1)."""

    def __init__(self, values: Iterable[float]):
        self._values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self._values[self.calls % len(self._values)]
        self.calls += 1
        return value


@pytest.fixture()
def fixed_draws():
    return FixedDraws


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database."""
    return TestClient(app)


@pytest.fixture()
def db_engine() -> Engine:
    """Fresh in-memory database with all tables."""
    engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite so separate connections really are separate."""
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def store(db_engine) -> LedgerStore:
    return LedgerStore(sessionmaker(bind=db_engine), max_retries=3)


@pytest.fixture()
def db_session(db_engine) -> Session:
    """Raw database session for direct DB assertions."""
    session = sessionmaker(bind=db_engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def catalog(store) -> CatalogService:
    return CatalogService(store)


@pytest.fixture()
def make_service(store, bus):
    """CaseService factory with a fixed draw sequence."""

    def _make(draws: Iterable[float] = (0.0,), starting_balance: int = 10000):
        return CaseService(
            store, bus, rng=FixedDraws(draws), starting_balance=starting_balance
        )

    return _make


@pytest.fixture()
def bronze_case(catalog):
    """Case priced 100 with three items weighted 1 : 1 : 2."""
    sticker = catalog.create_item("Sticker | Sand Dune", 10, "common")
    pistol = catalog.create_item("Glock-18 | Water Elemental", 300, "rare")
    knife = catalog.create_item("Karambit | Fade", 50000, "legendary")
    case = catalog.create_case("Bronze Case", 100, description="Cheap and reliable")
    catalog.add_entry(case.id, sticker.id, 1)
    catalog.add_entry(case.id, pistol.id, 1)
    case = catalog.add_entry(case.id, knife.id, 2)
    return case, (sticker, pistol, knife)
