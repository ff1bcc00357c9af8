"""Invoice registry API routes: tenant-scoped, plan-limited."""

import uuid

from fastapi import APIRouter, Depends

from legalflow.billing.plans import ResourceKind
from legalflow.core.auth import TenantUser, require_auth
from legalflow.db.store import TenantStore, get_store
from legalflow.schemas.records import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from legalflow.services import record_service

router = APIRouter()


@router.post("", response_model=InvoiceResponse)
async def create_invoice(
    request: InvoiceCreate,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    """Create a new invoice, respecting plan limits."""
    invoice = await record_service.create_record(store, user.user_id, ResourceKind.INVOICES, request.model_dump())
    return InvoiceResponse.model_validate(invoice)


@router.get("", response_model=list[InvoiceResponse])
async def list_invoices(
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    invoices = await store.list_records(user.user_id, ResourceKind.INVOICES)
    return [InvoiceResponse.model_validate(i) for i in invoices]


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: uuid.UUID,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    invoice = await record_service.get_record(store, user.user_id, ResourceKind.INVOICES, invoice_id)
    return InvoiceResponse.model_validate(invoice)


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: uuid.UUID,
    request: InvoiceUpdate,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    """Partial update, e.g. marking an invoice sent or paid."""
    invoice = await record_service.update_record(
        store, user.user_id, ResourceKind.INVOICES, invoice_id, request.model_dump(exclude_unset=True)
    )
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: uuid.UUID,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    await record_service.delete_record(store, user.user_id, ResourceKind.INVOICES, invoice_id)
    return {"status": "deleted"}
