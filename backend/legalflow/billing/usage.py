"""Usage gate: plan-limit checks before creating tenant-owned records.

The check reads the profile, then counts, then the caller inserts. None of
that runs in one transaction, so concurrent creations can each pass the gate
and briefly overshoot the limit by the number of requests in flight. The gate
is advisory; a hard quota would need a locked check-and-insert in the store.
"""

import structlog
from pydantic import BaseModel

from legalflow.billing.plans import ResourceKind, entitlement_for, is_unlimited, render_limit
from legalflow.core.exceptions import PlanLimitReachedError, ProfileNotFoundError, StoreError
from legalflow.db.store import TenantStore

logger = structlog.get_logger(__name__)


class ResourceUsage(BaseModel):
    resource: ResourceKind
    used: int
    limit: int | None  # None = unlimited
    can_create: bool


class UsageSummary(BaseModel):
    plan: str
    plan_name: str
    resources: list[ResourceUsage]


class UsageGate:
    """Decides whether a tenant may create one more record of a given kind."""

    def __init__(self, store: TenantStore):
        self.store = store

    async def ensure_can_create(self, kind: ResourceKind, tenant_id: str) -> None:
        """Raise unless the tenant's live count is strictly below its plan limit.

        Raises:
            ProfileNotFoundError: The tenant has no profile
            PlanLimitReachedError: The count has reached the limit
            StoreError: The profile or the count could not be read
        """
        profile = await self.store.get_profile(tenant_id)
        if profile is None:
            raise ProfileNotFoundError("Profile not found")

        entitlement = entitlement_for(profile.plan)
        limit = entitlement.limit_for(kind)
        if is_unlimited(limit):
            return

        count = await self.store.count_records(tenant_id, kind)
        if count < limit:
            return

        logger.info(
            "usage_gate_denied",
            tenant_id=tenant_id,
            resource=kind.value,
            plan=entitlement.tier.value,
            used=count,
            limit=int(limit),
        )
        raise PlanLimitReachedError(kind.value, entitlement.name, limit)

    async def can_create(self, kind: ResourceKind, tenant_id: str) -> bool:
        """Boolean form of ``ensure_can_create``.

        Fails closed: a missing profile or any store failure denies creation.
        """
        try:
            await self.ensure_can_create(kind, tenant_id)
        except PlanLimitReachedError:
            return False
        except ProfileNotFoundError:
            logger.warning("usage_gate_profile_missing", tenant_id=tenant_id, resource=kind.value)
            return False
        except StoreError:
            logger.warning("usage_gate_store_unavailable", tenant_id=tenant_id, resource=kind.value)
            return False
        return True

    async def summarize(self, tenant_id: str) -> UsageSummary:
        """Per-kind usage vs limits for the tenant's current plan.

        Raises ProfileNotFoundError / StoreError; a summary has no safe
        default to fall back to.
        """
        profile = await self.store.get_profile(tenant_id)
        if profile is None:
            raise ProfileNotFoundError("Profile not found")

        entitlement = entitlement_for(profile.plan)
        resources = []
        for kind in ResourceKind:
            limit = entitlement.limit_for(kind)
            used = await self.store.count_records(tenant_id, kind)
            resources.append(
                ResourceUsage(
                    resource=kind,
                    used=used,
                    limit=render_limit(limit),
                    can_create=used < limit,
                )
            )

        return UsageSummary(plan=entitlement.tier.value, plan_name=entitlement.name, resources=resources)
