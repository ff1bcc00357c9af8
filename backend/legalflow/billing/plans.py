"""Plan catalog: tiers, entitlements and subscription enums.

Every ``PlanTier`` member has exactly one entry in ``PLAN_ENTITLEMENTS``.
Anything that is not a known tier (unknown strings, None, stale values from
the store) resolves to the free entitlement.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Final

# Compares greater than every count, so "count < limit" always permits.
UNLIMITED: Final[float] = math.inf


class PlanTier(str, Enum):
    FREE = "free"
    STARTER = "starter"
    GROWTH = "growth"
    PRO_FIRM = "pro_firm"

    @classmethod
    def parse(cls, value: object) -> "PlanTier | None":
        """Return the tier named by ``value``, or None if it names no tier."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class BillingInterval(str, Enum):
    MONTH = "month"
    YEAR = "year"

    @classmethod
    def parse(cls, value: object) -> "BillingInterval | None":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"


class ResourceKind(str, Enum):
    """Tenant-owned record types that plans put a cap on."""

    CASES = "cases"
    CLIENTS = "clients"
    DOCUMENTS = "documents"
    INVOICES = "invoices"


@dataclass(frozen=True)
class PlanEntitlement:
    tier: PlanTier
    name: str
    max_cases: float
    max_clients: float
    max_documents: float
    max_invoices: float
    features: tuple[str, ...]

    def limit_for(self, kind: ResourceKind) -> float:
        if kind is ResourceKind.CASES:
            return self.max_cases
        if kind is ResourceKind.CLIENTS:
            return self.max_clients
        if kind is ResourceKind.DOCUMENTS:
            return self.max_documents
        if kind is ResourceKind.INVOICES:
            return self.max_invoices
        raise ValueError(f"Unknown resource kind: {kind!r}")

    @property
    def limits(self) -> dict[ResourceKind, float]:
        return {kind: self.limit_for(kind) for kind in ResourceKind}


PLAN_ENTITLEMENTS: Final[dict[PlanTier, PlanEntitlement]] = {
    PlanTier.FREE: PlanEntitlement(
        tier=PlanTier.FREE,
        name="Free",
        max_cases=3,
        max_clients=5,
        max_documents=20,
        max_invoices=5,
        features=(
            "Basic Client Mgmt",
            "Basic Case Mgmt",
            "Email Support",
        ),
    ),
    PlanTier.STARTER: PlanEntitlement(
        tier=PlanTier.STARTER,
        name="Starter",
        max_cases=10,
        max_clients=10,
        max_documents=1000,
        max_invoices=50,
        features=(
            "Client & Case Management",
            "Document Management",
            "Invoicing",
            "Email Support",
        ),
    ),
    PlanTier.GROWTH: PlanEntitlement(
        tier=PlanTier.GROWTH,
        name="Growth",
        max_cases=100,
        max_clients=50,
        max_documents=UNLIMITED,
        max_invoices=UNLIMITED,
        features=(
            "Unlimited Documents",
            "Unlimited Invoices",
            "Advanced Billing",
            "Priority Support",
        ),
    ),
    PlanTier.PRO_FIRM: PlanEntitlement(
        tier=PlanTier.PRO_FIRM,
        name="Pro Firm",
        max_cases=UNLIMITED,
        max_clients=UNLIMITED,
        max_documents=UNLIMITED,
        max_invoices=UNLIMITED,
        features=(
            "Unlimited Everything",
            "Custom Branding",
            "Dedicated Account Manager",
        ),
    ),
}

_missing = set(PlanTier) - set(PLAN_ENTITLEMENTS)
if _missing:
    raise RuntimeError(f"Plan tiers without an entitlement: {sorted(t.value for t in _missing)}")


def entitlement_for(tier: object) -> PlanEntitlement:
    """Return the entitlement for ``tier``; unknown or missing tiers get the free plan."""
    parsed = PlanTier.parse(tier)
    if parsed is None:
        return PLAN_ENTITLEMENTS[PlanTier.FREE]
    return PLAN_ENTITLEMENTS[parsed]


def is_unlimited(limit: float) -> bool:
    return math.isinf(limit)


def render_limit(limit: float) -> int | None:
    """JSON-safe limit: None means unlimited."""
    return None if is_unlimited(limit) else int(limit)
