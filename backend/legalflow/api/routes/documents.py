"""Document registry API routes.

Files are uploaded to object storage by the client; these routes only keep
their metadata. Stored paths live under the tenant's own prefix.
"""

import uuid

from fastapi import APIRouter, Depends

from legalflow.billing.plans import ResourceKind
from legalflow.core.auth import TenantUser, require_auth
from legalflow.core.exceptions import InvalidRequestError
from legalflow.db.store import TenantStore, get_store
from legalflow.schemas.records import DocumentCreate, DocumentResponse
from legalflow.services import record_service

router = APIRouter()


@router.post("", response_model=DocumentResponse)
async def create_document(
    request: DocumentCreate,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    """Register an uploaded file, respecting plan limits."""
    if not request.file_path.startswith(f"{user.user_id}/"):
        raise InvalidRequestError("File path must be inside your storage folder")
    document = await record_service.create_record(store, user.user_id, ResourceKind.DOCUMENTS, request.model_dump())
    return DocumentResponse.model_validate(document)


@router.get("", response_model=list[DocumentResponse])
async def list_documents(
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    documents = await store.list_records(user.user_id, ResourceKind.DOCUMENTS)
    return [DocumentResponse.model_validate(d) for d in documents]


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: uuid.UUID,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    document = await record_service.get_record(store, user.user_id, ResourceKind.DOCUMENTS, document_id)
    return DocumentResponse.model_validate(document)


@router.delete("/{document_id}")
async def delete_document(
    document_id: uuid.UUID,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    await record_service.delete_record(store, user.user_id, ResourceKind.DOCUMENTS, document_id)
    return {"status": "deleted"}
