"""TenantStore: tenant-scoped access to the relational store.

Every method takes the tenant id explicitly and every query filters on it.
``SqlTenantStore`` is the production implementation; tests swap in an
in-memory implementation through the ``get_store`` dependency.
"""

from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from legalflow.billing.plans import ResourceKind
from legalflow.core.exceptions import StoreError
from legalflow.db.base import get_session_factory
from legalflow.db.models.case import Case
from legalflow.db.models.checkout_claim import CheckoutClaim
from legalflow.db.models.client import Client
from legalflow.db.models.document import Document
from legalflow.db.models.invoice import Invoice
from legalflow.db.models.profile import Profile

logger = structlog.get_logger(__name__)

RECORD_MODELS: dict[ResourceKind, type] = {
    ResourceKind.CASES: Case,
    ResourceKind.CLIENTS: Client,
    ResourceKind.DOCUMENTS: Document,
    ResourceKind.INVOICES: Invoice,
}


@runtime_checkable
class TenantStore(Protocol):
    """Store operations used by billing, profile and registry code.

    Implementations raise ``StoreError`` when the backing store fails.
    """

    async def get_profile(self, tenant_id: str) -> Profile | None:
        """Return the tenant's profile, or None if it does not exist."""
        ...

    async def update_profile(self, tenant_id: str, **changes: Any) -> Profile | None:
        """Assign ``changes`` to the tenant's profile.

        Returns the updated profile, or None when no profile matched.
        """
        ...

    async def count_records(self, tenant_id: str, kind: ResourceKind) -> int:
        ...

    async def list_records(self, tenant_id: str, kind: ResourceKind) -> list[Any]:
        """Newest first."""
        ...

    async def get_record(self, tenant_id: str, kind: ResourceKind, record_id: Any) -> Any | None:
        ...

    async def add_record(self, tenant_id: str, kind: ResourceKind, values: dict[str, Any]) -> Any:
        ...

    async def update_record(
        self, tenant_id: str, kind: ResourceKind, record_id: Any, changes: dict[str, Any]
    ) -> Any | None:
        """Returns None when nothing owned by the tenant matched."""
        ...

    async def delete_record(self, tenant_id: str, kind: ResourceKind, record_id: Any) -> bool:
        """Returns False when nothing owned by the tenant matched."""
        ...

    async def claim_checkout_session(self, tenant_id: str, session_id: str) -> str:
        """Attach ``session_id`` to the tenant unless someone already holds it.

        Returns the tenant id that owns the claim after the call. Callers
        compare it to their own id; a claim is never transferred.
        """
        ...


class SqlTenantStore:
    """TenantStore backed by the SQLAlchemy async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory

    def _session(self) -> AsyncSession:
        """Open a session; the global factory is resolved per call so startup order does not matter."""
        factory = self._session_factory
        if factory is None:
            try:
                factory = get_session_factory()
            except RuntimeError as exc:
                raise StoreError("Database not initialized") from exc
        return factory()

    async def get_profile(self, tenant_id: str) -> Profile | None:
        try:
            async with self._session() as session:
                result = await session.execute(select(Profile).where(Profile.id == tenant_id))
                return result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            logger.error("store_profile_read_failed", tenant_id=tenant_id, error=str(exc))
            raise StoreError("Error loading profile") from exc

    async def update_profile(self, tenant_id: str, **changes: Any) -> Profile | None:
        changes["updated_at"] = datetime.now(timezone.utc)
        try:
            async with self._session() as session:
                result = await session.execute(
                    update(Profile)
                    .where(Profile.id == tenant_id)
                    .values(**changes)
                    .returning(Profile)
                )
                profile = result.scalar_one_or_none()
                await session.commit()
                return profile
        except (SQLAlchemyError, OSError) as exc:
            logger.error("store_profile_update_failed", tenant_id=tenant_id, error=str(exc))
            raise StoreError("Error updating profile") from exc

    async def count_records(self, tenant_id: str, kind: ResourceKind) -> int:
        model = RECORD_MODELS[kind]
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(func.count(model.id)).where(model.user_id == tenant_id)
                )
                return result.scalar() or 0
        except (SQLAlchemyError, OSError) as exc:
            logger.error("store_count_failed", tenant_id=tenant_id, kind=kind.value, error=str(exc))
            raise StoreError(f"Error counting {kind.value}") from exc

    async def list_records(self, tenant_id: str, kind: ResourceKind) -> list[Any]:
        model = RECORD_MODELS[kind]
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(model)
                    .where(model.user_id == tenant_id)
                    .order_by(model.created_at.desc())
                )
                return list(result.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            logger.error("store_list_failed", tenant_id=tenant_id, kind=kind.value, error=str(exc))
            raise StoreError(f"Error loading {kind.value}") from exc

    async def get_record(self, tenant_id: str, kind: ResourceKind, record_id: Any) -> Any | None:
        model = RECORD_MODELS[kind]
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(model).where(model.id == record_id, model.user_id == tenant_id)
                )
                return result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            logger.error("store_get_failed", tenant_id=tenant_id, kind=kind.value, error=str(exc))
            raise StoreError(f"Error loading {kind.value}") from exc

    async def add_record(self, tenant_id: str, kind: ResourceKind, values: dict[str, Any]) -> Any:
        model = RECORD_MODELS[kind]
        record = model(**{**values, "user_id": tenant_id})
        try:
            async with self._session() as session:
                session.add(record)
                await session.commit()
                await session.refresh(record)
                return record
        except (SQLAlchemyError, OSError) as exc:
            logger.error("store_insert_failed", tenant_id=tenant_id, kind=kind.value, error=str(exc))
            raise StoreError(f"Error saving {kind.value}") from exc

    async def update_record(
        self, tenant_id: str, kind: ResourceKind, record_id: Any, changes: dict[str, Any]
    ) -> Any | None:
        model = RECORD_MODELS[kind]
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(model).where(model.id == record_id, model.user_id == tenant_id)
                )
                record = result.scalar_one_or_none()
                if record is None:
                    return None
                for key, value in changes.items():
                    setattr(record, key, value)
                await session.commit()
                await session.refresh(record)
                return record
        except (SQLAlchemyError, OSError) as exc:
            logger.error("store_update_failed", tenant_id=tenant_id, kind=kind.value, error=str(exc))
            raise StoreError(f"Error updating {kind.value}") from exc

    async def claim_checkout_session(self, tenant_id: str, session_id: str) -> str:
        # Race-safe: concurrent claimants both insert, exactly one row survives
        stmt = (
            insert(CheckoutClaim)
            .values(session_id=session_id, user_id=tenant_id)
            .on_conflict_do_nothing(index_elements=["session_id"])
        )
        try:
            async with self._session() as session:
                await session.execute(stmt)
                await session.commit()
                result = await session.execute(
                    select(CheckoutClaim.user_id).where(CheckoutClaim.session_id == session_id)
                )
                return result.scalar_one()
        except (SQLAlchemyError, OSError) as exc:
            logger.error("store_checkout_claim_failed", tenant_id=tenant_id, session_id=session_id, error=str(exc))
            raise StoreError("Error recording checkout claim") from exc

    async def delete_record(self, tenant_id: str, kind: ResourceKind, record_id: Any) -> bool:
        model = RECORD_MODELS[kind]
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(model).where(model.id == record_id, model.user_id == tenant_id)
                )
                record = result.scalar_one_or_none()
                if record is None:
                    return False
                await session.delete(record)
                await session.commit()
                return True
        except (SQLAlchemyError, OSError) as exc:
            logger.error("store_delete_failed", tenant_id=tenant_id, kind=kind.value, error=str(exc))
            raise StoreError(f"Error deleting {kind.value}") from exc


def get_store() -> TenantStore:
    """FastAPI dependency returning the production store."""
    return SqlTenantStore()
