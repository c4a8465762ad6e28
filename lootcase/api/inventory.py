"""Inventory and selling endpoints."""

from fastapi import APIRouter, Depends

from lootcase.api.deps import get_case_service, get_user_id, to_http_error
from lootcase.api.schemas import (
    ErrorResponse,
    InventoryItemInfo,
    SellAllResponse,
    SellResponse,
)
from lootcase.core.errors import LootcaseError
from lootcase.services.case_service import CaseService

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get("", response_model=list[InventoryItemInfo])
def list_inventory(
    user_id: str = Depends(get_user_id),
    service: CaseService = Depends(get_case_service),
) -> list[InventoryItemInfo]:
    """Unsold items of the caller."""
    try:
        entries = service.get_inventory(user_id)
    except LootcaseError as e:
        raise to_http_error(e)
    return [InventoryItemInfo.from_entry(e) for e in entries]


@router.post("/sell-all", response_model=SellAllResponse)
def sell_all(
    user_id: str = Depends(get_user_id),
    service: CaseService = Depends(get_case_service),
) -> SellAllResponse:
    try:
        result = service.sell_all_items(user_id)
    except LootcaseError as e:
        raise to_http_error(e)
    return SellAllResponse(
        balance=result.balance,
        sold_count=result.sold_count,
        total_amount=result.total_amount,
    )


@router.post(
    "/{record_id}/sell",
    response_model=SellResponse,
    responses={404: {"model": ErrorResponse}},
)
def sell_item(
    record_id: int,
    user_id: str = Depends(get_user_id),
    service: CaseService = Depends(get_case_service),
) -> SellResponse:
    try:
        result = service.sell_item(user_id, record_id)
    except LootcaseError as e:
        raise to_http_error(e)
    return SellResponse(balance=result.balance, sold_amount=result.sold_amount)
