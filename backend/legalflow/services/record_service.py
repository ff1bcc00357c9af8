"""Registry writes shared by the client, case, document and invoice routes.

Creation always passes the usage gate first; references to other records
must point at rows the same tenant owns.
"""

import uuid
from typing import Any

import structlog

from legalflow.billing.plans import ResourceKind
from legalflow.billing.usage import UsageGate
from legalflow.core.exceptions import InvalidRequestError, RecordNotFoundError
from legalflow.db.store import RECORD_MODELS, TenantStore

logger = structlog.get_logger(__name__)

# Foreign-key fields and the registry they must resolve in
REFERENCES: dict[str, tuple[ResourceKind, str]] = {
    "client_id": (ResourceKind.CLIENTS, "Unknown client"),
    "case_id": (ResourceKind.CASES, "Unknown case"),
}

NOT_FOUND = {
    ResourceKind.CLIENTS: "Client not found",
    ResourceKind.CASES: "Case not found",
    ResourceKind.DOCUMENTS: "Document not found",
    ResourceKind.INVOICES: "Invoice not found",
}


async def ensure_references_owned(store: TenantStore, tenant_id: str, values: dict[str, Any]) -> None:
    """Raise InvalidRequestError if a referenced client or case is not the tenant's."""
    for field, (kind, message) in REFERENCES.items():
        ref = values.get(field)
        if ref is None:
            continue
        if await store.get_record(tenant_id, kind, ref) is None:
            raise InvalidRequestError(message)


async def create_record(store: TenantStore, tenant_id: str, kind: ResourceKind, values: dict[str, Any]) -> Any:
    """Gate, validate references, then insert.

    Raises:
        PlanLimitReachedError: The tenant's plan allows no more records of ``kind``
        ProfileNotFoundError: The tenant has no profile
        InvalidRequestError: A referenced client or case is not the tenant's
    """
    await UsageGate(store).ensure_can_create(kind, tenant_id)
    await ensure_references_owned(store, tenant_id, values)
    record = await store.add_record(tenant_id, kind, values)
    logger.info("record_created", user_id=tenant_id, kind=kind.value, record_id=str(record.id))
    return record


async def get_record(store: TenantStore, tenant_id: str, kind: ResourceKind, record_id: uuid.UUID) -> Any:
    record = await store.get_record(tenant_id, kind, record_id)
    if record is None:
        raise RecordNotFoundError(NOT_FOUND[kind])
    return record


async def update_record(
    store: TenantStore, tenant_id: str, kind: ResourceKind, record_id: uuid.UUID, changes: dict[str, Any]
) -> Any:
    """Apply a partial update. Updates are not gated: they never add a record."""
    if not changes:
        raise InvalidRequestError("No fields to update")
    columns = RECORD_MODELS[kind].__table__.columns
    for field, value in changes.items():
        if value is None and not columns[field].nullable:
            raise InvalidRequestError(f"{field} cannot be empty")
    await ensure_references_owned(store, tenant_id, changes)
    record = await store.update_record(tenant_id, kind, record_id, changes)
    if record is None:
        raise RecordNotFoundError(NOT_FOUND[kind])
    logger.info("record_updated", user_id=tenant_id, kind=kind.value, record_id=str(record_id), fields=sorted(changes))
    return record


async def delete_record(store: TenantStore, tenant_id: str, kind: ResourceKind, record_id: uuid.UUID) -> None:
    if not await store.delete_record(tenant_id, kind, record_id):
        raise RecordNotFoundError(NOT_FOUND[kind])
    logger.info("record_deleted", user_id=tenant_id, kind=kind.value, record_id=str(record_id))
