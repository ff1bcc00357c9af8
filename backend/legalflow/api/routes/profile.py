"""Profile routes: current plan and self-service plan switch."""

from fastapi import APIRouter, Depends

from legalflow.core.auth import TenantUser, require_auth
from legalflow.db.store import TenantStore, get_store
from legalflow.schemas.records import PlanChangeRequest, ProfileResponse
from legalflow.services import profile_service

router = APIRouter()


@router.get("", response_model=ProfileResponse)
async def read_profile(
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    profile = await profile_service.get_profile(store, user.user_id)
    return ProfileResponse.model_validate(profile)


@router.put("/plan", response_model=ProfileResponse)
async def switch_plan(
    body: PlanChangeRequest,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    """Switch plan directly (no payment step)."""
    profile = await profile_service.change_plan(store, user.user_id, body.plan)
    return ProfileResponse.model_validate(profile)
