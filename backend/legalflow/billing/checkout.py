"""Stripe Checkout: session creation, customer lookup and post-signup reconciliation."""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import stripe
import structlog

from legalflow.billing.plans import BillingInterval, PlanTier
from legalflow.billing.pricing import TRIAL_PERIOD_DAYS, purchasable_plan, unit_amount
from legalflow.billing.webhooks import CheckoutCompletion, WebhookOutcome, apply_checkout_completion
from legalflow.core.config import get_settings
from legalflow.core.exceptions import (
    CheckoutAlreadyClaimedError,
    InvalidRequestError,
    PaymentProcessorError,
    ServiceNotConfiguredError,
)
from legalflow.db.store import TenantStore

logger = structlog.get_logger(__name__)

# Stripe substitutes the real id into this placeholder on redirect
SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


@dataclass(frozen=True)
class CheckoutCustomer:
    email: str | None
    name: str | None
    phone: str | None


def _get_stripe() -> None:
    """Configure the stripe module with the secret key.

    Checkout calls are never retried here; a failure goes straight back to the caller.
    """
    settings = get_settings()
    if not settings.stripe_secret_key:
        logger.error("stripe_secret_key_missing")
        raise ServiceNotConfiguredError("Payment processor is not configured")
    stripe.api_key = settings.stripe_secret_key
    stripe.max_network_retries = 0


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    return getattr(obj, name, None)


def parse_interval(value: str | None) -> BillingInterval:
    """Checkout interval; missing means monthly, anything unrecognised is an input error."""
    if value is None or value == "":
        return BillingInterval.MONTH
    interval = BillingInterval.parse(value)
    if interval is None:
        raise InvalidRequestError(f"Invalid billing interval: {value}")
    return interval


def build_checkout_params(
    plan: PlanTier,
    interval: BillingInterval,
    origin: str,
    tenant_id: str | None = None,
    tenant_email: str | None = None,
    currency: str = "myr",
) -> dict[str, Any]:
    """Keyword arguments for ``stripe.checkout.Session.create_async``."""
    origin = origin.rstrip("/")
    if tenant_id:
        success_url = f"{origin}/dashboard?session_id={SESSION_ID_PLACEHOLDER}"
    else:
        # Pre-signup purchase: registration reconciles identity with payment later
        query = urlencode({"plan": plan.value, "interval": interval.value})
        success_url = f"{origin}/register?session_id={SESSION_ID_PLACEHOLDER}&{query}"

    metadata = {"plan": plan.value, "interval": interval.value}
    if tenant_id:
        metadata["userId"] = tenant_id

    params: dict[str, Any] = {
        "mode": "subscription",
        "payment_method_types": ["card"],
        "line_items": [
            {
                "price_data": {
                    "currency": currency,
                    "product_data": {
                        "name": f"{plan.value.upper()} Plan Subscription",
                        "description": (
                            f"Professional legal suite access for {plan.value} tier. "
                            f"{TRIAL_PERIOD_DAYS}-day free trial included."
                        ),
                    },
                    "unit_amount": unit_amount(plan, interval),
                    "recurring": {"interval": interval.value},
                },
                "quantity": 1,
            }
        ],
        "subscription_data": {"trial_period_days": TRIAL_PERIOD_DAYS},
        "phone_number_collection": {"enabled": True},
        "billing_address_collection": "required",
        "success_url": success_url,
        "cancel_url": f"{origin}/pricing",
        "metadata": metadata,
    }
    if tenant_email:
        params["customer_email"] = tenant_email
    return params


async def create_checkout(
    plan: str | None,
    origin: str,
    tenant_id: str | None = None,
    tenant_email: str | None = None,
    interval: str | None = None,
) -> str:
    """Create a hosted checkout session and return its URL.

    Input is validated before Stripe is contacted.

    Raises:
        InvalidRequestError: Missing or unpurchasable plan, or unknown interval
        ServiceNotConfiguredError: No Stripe secret key
        PaymentProcessorError: Stripe rejected or failed the request
    """
    if not plan:
        raise InvalidRequestError("Missing required fields")

    tier = purchasable_plan(plan)
    if tier is None:
        raise InvalidRequestError("Invalid plan")

    billing_interval = parse_interval(interval)

    settings = get_settings()
    _get_stripe()

    params = build_checkout_params(
        tier,
        billing_interval,
        origin,
        tenant_id=tenant_id,
        tenant_email=tenant_email,
        currency=settings.stripe_currency,
    )

    try:
        session = await stripe.checkout.Session.create_async(**params)
    except stripe.StripeError as exc:
        logger.error(
            "checkout_session_failed",
            plan=tier.value,
            interval=billing_interval.value,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        raise PaymentProcessorError(exc.user_message or str(exc)) from exc

    url = _field(session, "url")
    if not url:
        raise PaymentProcessorError("Checkout session has no URL")

    logger.info(
        "checkout_session_created",
        session_id=_field(session, "id"),
        plan=tier.value,
        interval=billing_interval.value,
        tenant_id=tenant_id,
    )
    return url


async def _retrieve_session(session_id: str | None) -> Any:
    if not session_id:
        raise InvalidRequestError("Missing session ID")

    _get_stripe()
    try:
        return await stripe.checkout.Session.retrieve_async(session_id)
    except stripe.StripeError as exc:
        logger.error("checkout_session_lookup_failed", session_id=session_id, error=str(exc))
        raise PaymentProcessorError(exc.user_message or str(exc)) from exc


async def get_checkout_customer(session_id: str | None) -> CheckoutCustomer:
    """Customer details Stripe recorded for a session, used to pre-fill registration."""
    session = await _retrieve_session(session_id)
    details = _field(session, "customer_details")
    return CheckoutCustomer(
        email=_field(details, "email"),
        name=_field(details, "name"),
        phone=_field(details, "phone"),
    )


async def reconcile_checkout(store: TenantStore, tenant_id: str, session_id: str | None) -> WebhookOutcome:
    """Apply a checkout completed before the tenant registered.

    The session carried no tenant id, so the webhook could not attribute it;
    the now-authenticated caller claims it here. A session is claimed once:
    the first tenant to reconcile it keeps it, and repeating the call as that
    tenant re-applies the same plan.

    Raises:
        InvalidRequestError: Missing, incomplete or foreign session
        CheckoutAlreadyClaimedError: Another tenant already claimed the session
        PaymentProcessorError: Stripe lookup failed
        StoreError: Claim or profile update failed
    """
    session = await _retrieve_session(session_id)

    if _field(session, "status") != "complete":
        raise InvalidRequestError("Checkout session is not complete")

    metadata = _field(session, "metadata")
    owner = _field(metadata, "userId")
    if owner and owner != tenant_id:
        logger.warning("checkout_reconcile_owner_mismatch", session_id=session_id, tenant_id=tenant_id)
        raise InvalidRequestError("Checkout session belongs to another account")

    claimed_id = _field(session, "id") or session_id
    holder = await store.claim_checkout_session(tenant_id, claimed_id)
    if holder != tenant_id:
        logger.warning("checkout_reconcile_already_claimed", session_id=claimed_id, tenant_id=tenant_id)
        raise CheckoutAlreadyClaimedError("Checkout session has already been claimed")

    completion = CheckoutCompletion(
        session_id=claimed_id,
        user_id=tenant_id,
        plan=_field(metadata, "plan"),
        interval=_field(metadata, "interval"),
    )
    return await apply_checkout_completion(store, completion)
