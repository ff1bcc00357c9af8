"""Client registry API routes: tenant-scoped, plan-limited."""

import uuid

from fastapi import APIRouter, Depends

from legalflow.billing.plans import ResourceKind
from legalflow.core.auth import TenantUser, require_auth
from legalflow.db.store import TenantStore, get_store
from legalflow.schemas.records import ClientCreate, ClientResponse, ClientUpdate
from legalflow.services import record_service

router = APIRouter()


@router.post("", response_model=ClientResponse)
async def create_client(
    request: ClientCreate,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    """Create a new client, respecting plan limits."""
    client = await record_service.create_record(store, user.user_id, ResourceKind.CLIENTS, request.model_dump())
    return ClientResponse.model_validate(client)


@router.get("", response_model=list[ClientResponse])
async def list_clients(
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    clients = await store.list_records(user.user_id, ResourceKind.CLIENTS)
    return [ClientResponse.model_validate(c) for c in clients]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: uuid.UUID,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    client = await record_service.get_record(store, user.user_id, ResourceKind.CLIENTS, client_id)
    return ClientResponse.model_validate(client)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: uuid.UUID,
    request: ClientUpdate,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    client = await record_service.update_record(
        store, user.user_id, ResourceKind.CLIENTS, client_id, request.model_dump(exclude_unset=True)
    )
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}")
async def delete_client(
    client_id: uuid.UUID,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    await record_service.delete_record(store, user.user_id, ResourceKind.CLIENTS, client_id)
    return {"status": "deleted"}
