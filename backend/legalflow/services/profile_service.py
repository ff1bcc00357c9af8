"""Profile reads and self-service plan switches."""

import structlog

from legalflow.billing.plans import PlanTier
from legalflow.core.exceptions import InvalidRequestError, ProfileNotFoundError
from legalflow.db.models.profile import Profile
from legalflow.db.store import TenantStore

logger = structlog.get_logger(__name__)


async def get_profile(store: TenantStore, tenant_id: str) -> Profile:
    profile = await store.get_profile(tenant_id)
    if profile is None:
        raise ProfileNotFoundError("Profile not found")
    return profile


async def change_plan(store: TenantStore, tenant_id: str, plan: str | None) -> Profile:
    """Switch the tenant directly to ``plan`` without going through checkout.

    Raises:
        InvalidRequestError: ``plan`` names no tier
        ProfileNotFoundError: The tenant has no profile
    """
    tier = PlanTier.parse(plan)
    if tier is None:
        raise InvalidRequestError(f"Invalid plan: {plan}")

    profile = await store.update_profile(tenant_id, plan=tier.value)
    if profile is None:
        raise ProfileNotFoundError("Profile not found")

    logger.info("profile_plan_updated", user_id=tenant_id, plan=tier.value, source="self_service")
    return profile
