"""Profile endpoint."""

from fastapi import APIRouter, Depends

from lootcase.api.deps import get_case_service, get_user_id, to_http_error
from lootcase.api.schemas import ProfileInfo
from lootcase.core.errors import LootcaseError
from lootcase.services.case_service import CaseService

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=ProfileInfo)
def get_profile(
    user_id: str = Depends(get_user_id),
    service: CaseService = Depends(get_case_service),
) -> ProfileInfo:
    """Caller's balance and lifetime stats; created on first access."""
    try:
        return ProfileInfo.from_core(service.get_profile(user_id))
    except LootcaseError as e:
        raise to_http_error(e)
