"""Purchasable plans and their prices.

Only paid tiers appear here; the free tier is never sold through checkout.
Prices are in minor currency units (sen for MYR).
"""

from typing import Final

from legalflow.billing.plans import BillingInterval, PlanTier

MONTHLY_PRICES: Final[dict[PlanTier, int]] = {
    PlanTier.STARTER: 19900,  # RM 199.00
    PlanTier.GROWTH: 59900,  # RM 599.00
    PlanTier.PRO_FIRM: 149900,  # RM 1,499.00
}

# Annual billing gives two months free
ANNUAL_MONTHS_CHARGED: Final[int] = 10

TRIAL_PERIOD_DAYS: Final[int] = 14


def purchasable_plan(value: object) -> PlanTier | None:
    """Return the tier if it can be bought through checkout, else None."""
    tier = PlanTier.parse(value)
    if tier is None or tier not in MONTHLY_PRICES:
        return None
    return tier


def unit_amount(plan: PlanTier, interval: BillingInterval) -> int:
    """Amount charged per billing period, in minor units.

    Raises KeyError for tiers that are not for sale.
    """
    monthly = MONTHLY_PRICES[plan]
    if interval is BillingInterval.YEAR:
        return monthly * ANNUAL_MONTHS_CHARGED
    return monthly
