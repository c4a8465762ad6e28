"""Case catalog and case-opening endpoints."""

from fastapi import APIRouter, Depends

from lootcase.api.deps import (
    get_case_service,
    get_catalog_service,
    get_user_id,
    to_http_error,
)
from lootcase.api.schemas import (
    CaseInfo,
    ErrorResponse,
    InventoryRecordInfo,
    ItemInfo,
    OpenCaseResponse,
    ProfileInfo,
)
from lootcase.core.errors import LootcaseError
from lootcase.services.case_service import CaseService
from lootcase.services.catalog_service import CatalogService

router = APIRouter(prefix="/api/cases", tags=["cases"])


@router.get("", response_model=list[CaseInfo])
def list_cases(
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[CaseInfo]:
    """All cases with their drop tables."""
    try:
        return [CaseInfo.from_core(c) for c in catalog.list_cases()]
    except LootcaseError as e:
        raise to_http_error(e)


@router.get(
    "/{case_id}",
    response_model=CaseInfo,
    responses={404: {"model": ErrorResponse}},
)
def get_case(
    case_id: int,
    catalog: CatalogService = Depends(get_catalog_service),
) -> CaseInfo:
    try:
        return CaseInfo.from_core(catalog.get_case(case_id))
    except LootcaseError as e:
        raise to_http_error(e)


@router.post(
    "/{case_id}/open",
    response_model=OpenCaseResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
def open_case(
    case_id: int,
    user_id: str = Depends(get_user_id),
    service: CaseService = Depends(get_case_service),
) -> OpenCaseResponse:
    """
    Open a case

    Debits the case price and delivers one weighted-random item.
    400: insufficient funds, 404: unknown case, 409: misconfigured case.
    """
    try:
        result = service.open_case(user_id, case_id)
    except LootcaseError as e:
        raise to_http_error(e)

    return OpenCaseResponse(
        item=ItemInfo.from_core(result.item),
        user_item=InventoryRecordInfo.from_core(result.record),
        balance=result.balance,
        profile=ProfileInfo.from_core(result.profile),
    )
