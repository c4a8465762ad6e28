"""Request-scoped dependencies and error mapping for the API layer."""

from fastapi import HTTPException, Request

from lootcase.config import settings
from lootcase.core.errors import (
    BusinessError,
    CatalogError,
    InsufficientFunds,
    InvalidDropTable,
    LootcaseError,
    NotFound,
)
from lootcase.core.logging import get_logger
from lootcase.services.case_service import CaseService
from lootcase.services.catalog_service import CatalogService

logger = get_logger(__name__)

# Ordered: first matching class wins
_STATUS_BY_ERROR: list[tuple[type[BusinessError], int]] = [
    (NotFound, 404),
    (InsufficientFunds, 400),
    (InvalidDropTable, 409),
    (CatalogError, 422),
]


def get_case_service(request: Request) -> CaseService:
    """CaseService instance (dependency injection)"""
    service: CaseService = request.app.state.case_service
    return service


def get_catalog_service(request: Request) -> CatalogService:
    """CatalogService instance (dependency injection)"""
    service: CatalogService = request.app.state.catalog_service
    return service


def get_user_id(request: Request) -> str:
    """Identity resolved upstream by the auth layer."""
    user_id = (request.headers.get(settings.USER_ID_HEADER) or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=401,
            detail={
                "error": "unauthorized",
                "message": f"{settings.USER_ID_HEADER} header required",
            },
        )
    return user_id


def to_http_error(error: LootcaseError) -> HTTPException:
    """Business errors map to distinct client outcomes; anything else is a 500."""
    if isinstance(error, BusinessError):
        for error_type, status in _STATUS_BY_ERROR:
            if isinstance(error, error_type):
                return HTTPException(
                    status_code=status,
                    detail={"error": error.code, "message": str(error)},
                )

    logger.error("Request failed: %s", error)
    return HTTPException(
        status_code=500,
        detail={"error": error.code, "message": "Internal server error"},
    )
