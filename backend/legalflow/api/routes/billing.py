"""Billing routes: Stripe Checkout, session lookup, webhooks, plans and usage."""

import structlog
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from legalflow.billing.checkout import create_checkout, get_checkout_customer, reconcile_checkout
from legalflow.billing.plans import PLAN_ENTITLEMENTS, BillingInterval, ResourceKind, render_limit
from legalflow.billing.pricing import MONTHLY_PRICES, unit_amount
from legalflow.billing.usage import UsageGate, UsageSummary
from legalflow.billing.webhooks import WebhookOutcome, process_webhook
from legalflow.core.auth import TenantUser, optional_auth, require_auth
from legalflow.core.config import get_settings
from legalflow.db.store import TenantStore, get_store

logger = structlog.get_logger(__name__)

router = APIRouter()


# ── Request / Response schemas ──────────────────────────────────────


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan: str | None = None
    user_id: str | None = Field(default=None, alias="userId")
    user_email: str | None = Field(default=None, alias="userEmail")
    interval: str | None = None  # "month" | "year"


class CheckoutResponse(BaseModel):
    url: str


class CheckoutCustomerResponse(BaseModel):
    email: str | None
    name: str | None
    phone: str | None


class WebhookAck(BaseModel):
    received: bool = True


class ReconcileRequest(BaseModel):
    session_id: str | None = None


class ReconcileResponse(BaseModel):
    outcome: WebhookOutcome


class PlanResponse(BaseModel):
    id: str
    name: str
    limits: dict[ResourceKind, int | None]  # None = unlimited
    features: list[str]
    price_monthly: int | None  # minor units; None = not purchasable
    price_yearly: int | None


# ── Endpoints ───────────────────────────────────────────────────────


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout_session(
    body: CheckoutRequest,
    request: Request,
    user: TenantUser | None = Depends(optional_auth),
):
    """Create a Stripe Checkout session and return its hosted URL.

    A signed-in caller always buys for their own tenant; the body's userId is
    only used for anonymous (pre-signup) purchases, where it is normally absent.
    """
    tenant_id = user.user_id if user else body.user_id
    tenant_email = body.user_email or (user.email if user else None)
    origin = request.headers.get("origin") or get_settings().frontend_url

    url = await create_checkout(
        body.plan,
        origin,
        tenant_id=tenant_id,
        tenant_email=tenant_email,
        interval=body.interval,
    )
    return CheckoutResponse(url=url)


@router.get("/checkout/session", response_model=CheckoutCustomerResponse)
async def get_checkout_session(session_id: str | None = None):
    """Return the customer details Stripe recorded, for pre-filling registration."""
    customer = await get_checkout_customer(session_id)
    return CheckoutCustomerResponse(email=customer.email, name=customer.name, phone=customer.phone)


@router.post("/webhooks/stripe", response_model=WebhookAck)
async def stripe_webhook(request: Request, store: TenantStore = Depends(get_store)):
    """Handle Stripe webhook events with signature verification."""
    body = await request.body()
    sig_header = request.headers.get("stripe-signature")

    outcome = await process_webhook(body, sig_header, store)
    logger.info("stripe_webhook_acknowledged", outcome=outcome.value)
    return WebhookAck()


@router.post("/billing/reconcile", response_model=ReconcileResponse)
async def reconcile_checkout_session(
    body: ReconcileRequest,
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    """Attach a checkout completed before registration to the caller's profile."""
    outcome = await reconcile_checkout(store, user.user_id, body.session_id)
    return ReconcileResponse(outcome=outcome)


@router.get("/billing/plans", response_model=list[PlanResponse])
async def list_plans():
    """Public plan catalog."""
    plans = []
    for tier, entitlement in PLAN_ENTITLEMENTS.items():
        purchasable = tier in MONTHLY_PRICES
        plans.append(
            PlanResponse(
                id=tier.value,
                name=entitlement.name,
                limits={kind: render_limit(limit) for kind, limit in entitlement.limits.items()},
                features=list(entitlement.features),
                price_monthly=unit_amount(tier, BillingInterval.MONTH) if purchasable else None,
                price_yearly=unit_amount(tier, BillingInterval.YEAR) if purchasable else None,
            )
        )
    return plans


@router.get("/billing/usage", response_model=UsageSummary)
async def get_billing_usage(
    user: TenantUser = Depends(require_auth),
    store: TenantStore = Depends(get_store),
):
    """Live record counts vs the caller's plan limits."""
    return await UsageGate(store).summarize(user.user_id)
