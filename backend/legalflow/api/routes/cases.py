"""Case registry API routes: tenant-scoped, plan-limited."""

import uuid

from fastapi import APIRouter, Depends

from legalflow.billing.plans import ResourceKind
from legalflow.core.auth import TenantUser, require_auth
from legalflow.db.store import TenantStore, get_store
from legalflow.schemas.records import CaseCreate, CaseResponse, CaseUpdate
from legalflow.services import record_service

router = APIRouter()


@router.post("", response_model=CaseResponse)
async def create_case(
    request: CaseCreate,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    """Create a new case, respecting plan limits. ``client_id`` must be one of the tenant's clients."""
    case = await record_service.create_record(store, user.user_id, ResourceKind.CASES, request.model_dump())
    return CaseResponse.model_validate(case)


@router.get("", response_model=list[CaseResponse])
async def list_cases(
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    cases = await store.list_records(user.user_id, ResourceKind.CASES)
    return [CaseResponse.model_validate(c) for c in cases]


@router.get("/{case_id}", response_model=CaseResponse)
async def get_case(
    case_id: uuid.UUID,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    case = await record_service.get_record(store, user.user_id, ResourceKind.CASES, case_id)
    return CaseResponse.model_validate(case)


@router.patch("/{case_id}", response_model=CaseResponse)
async def update_case(
    case_id: uuid.UUID,
    request: CaseUpdate,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    case = await record_service.update_record(
        store, user.user_id, ResourceKind.CASES, case_id, request.model_dump(exclude_unset=True)
    )
    return CaseResponse.model_validate(case)


@router.delete("/{case_id}")
async def delete_case(
    case_id: uuid.UUID,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    await record_service.delete_record(store, user.user_id, ResourceKind.CASES, case_id)
    return {"status": "deleted"}
