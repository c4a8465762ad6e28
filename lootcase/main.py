"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from lootcase.api.cases import router as cases_router
from lootcase.api.health import router as health_router
from lootcase.api.inventory import router as inventory_router
from lootcase.api.profile import router as profile_router
from lootcase.config import settings
from lootcase.core.event_bus import EventBus, LedgerEvent
from lootcase.core.event_types import EventTypes
from lootcase.core.logging import get_logger, setup_logging
from lootcase.db.database import SessionLocal, engine as db_engine
from lootcase.db.ledger import LedgerStore
from lootcase.db.models import Base
from lootcase.services.case_service import CaseService
from lootcase.services.catalog_service import CatalogService

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

audit_logger = get_logger("lootcase.audit")


def _audit(event: LedgerEvent) -> None:
    audit_logger.info("%s %s", event.event_type, event.data)


def register_audit_log(event_bus: EventBus) -> None:
    """Log every committed ledger change and every rejected drop table."""
    for event_type in (
        EventTypes.CASE_OPENED,
        EventTypes.ITEM_SOLD,
        EventTypes.INVENTORY_SOLD,
        EventTypes.DROP_TABLE_REJECTED,
    ):
        event_bus.subscribe(event_type, _audit)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    event_bus = EventBus()
    register_audit_log(event_bus)

    store = LedgerStore(SessionLocal, max_retries=settings.MAX_CONFLICT_RETRIES)
    catalog_service = CatalogService(store)
    if settings.CATALOG_PATH:
        logger.info("Importing catalog from %s...", settings.CATALOG_PATH)
        catalog_service.load_from_json(settings.CATALOG_PATH)

    app.state.event_bus = event_bus
    app.state.catalog_service = catalog_service
    app.state.case_service = CaseService(
        store, event_bus, starting_balance=settings.STARTING_BALANCE
    )
    logger.info("Services initialized.")

    yield

    logger.info("Shutting down...")
    db_engine.dispose()


app = FastAPI(title="lootcase", lifespan=lifespan)

app.include_router(health_router)
app.include_router(cases_router)
app.include_router(inventory_router)
app.include_router(profile_router)
