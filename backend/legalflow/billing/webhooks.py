"""Stripe webhook processing.

Pipeline for one delivery:

1. Verify the Stripe-Signature header against the raw body (nothing is parsed first)
2. Decode the body into either a ``CheckoutCompletion`` or an ``IgnoredEvent``
3. Apply a completion to the tenant's profile by plain assignment

Re-delivering the same event assigns the same values again, so the final
profile state does not depend on how many times Stripe sends it. Store
failures propagate so the endpoint answers non-2xx and Stripe redelivers.
"""

from enum import Enum

import stripe
import structlog
from pydantic import BaseModel, Field, ValidationError

from legalflow.billing.plans import BillingInterval, PlanTier
from legalflow.core.config import get_settings
from legalflow.core.exceptions import ServiceNotConfiguredError, WebhookPayloadError, WebhookSignatureError
from legalflow.db.store import TenantStore

logger = structlog.get_logger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


class WebhookOutcome(str, Enum):
    """How an accepted delivery was handled. Every outcome is acknowledged with 200."""

    APPLIED = "applied"
    IGNORED = "ignored"  # event type with no side effect here
    MISSING_METADATA = "missing_metadata"  # anonymous checkout, reconciled at registration
    UNKNOWN_PLAN = "unknown_plan"
    PROFILE_NOT_FOUND = "profile_not_found"


class _EventData(BaseModel):
    object: dict = Field(default_factory=dict)


class _EventEnvelope(BaseModel):
    id: str | None = None
    type: str
    data: _EventData = Field(default_factory=_EventData)


class CheckoutCompletion(BaseModel):
    """The parts of a completed checkout session that drive a plan change."""

    session_id: str | None = None
    user_id: str | None = None
    plan: str | None = None
    interval: str | None = None


class IgnoredEvent(BaseModel):
    event_id: str | None = None
    type: str


def verify_signature(payload: bytes, sig_header: str | None, secret: str) -> None:
    """Raise ``WebhookSignatureError`` unless ``sig_header`` signs ``payload`` with ``secret``."""
    if not sig_header:
        raise WebhookSignatureError("Missing stripe-signature header")
    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"),
            sig_header,
            secret,
            tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
        )
    except UnicodeDecodeError as exc:
        raise WebhookSignatureError("Invalid payload encoding") from exc
    except stripe.SignatureVerificationError as exc:
        logger.warning("stripe_webhook_invalid_signature", error=str(exc))
        raise WebhookSignatureError(f"Webhook Error: {exc}") from exc


def decode_event(payload: bytes | str | dict) -> CheckoutCompletion | IgnoredEvent:
    """Decode a verified event body.

    Raises ``WebhookPayloadError`` for bodies that are not a Stripe event at
    all. A completed checkout with incomplete metadata still decodes; it is
    the application step that declines to act on it.
    """
    try:
        if isinstance(payload, dict):
            envelope = _EventEnvelope.model_validate(payload)
        else:
            envelope = _EventEnvelope.model_validate_json(payload)
    except ValidationError as exc:
        raise WebhookPayloadError("Invalid payload") from exc

    if envelope.type != CHECKOUT_SESSION_COMPLETED:
        return IgnoredEvent(event_id=envelope.id, type=envelope.type)

    session = envelope.data.object
    if not session:
        raise WebhookPayloadError("Missing data.object")

    metadata = session.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise WebhookPayloadError("Invalid session metadata")

    try:
        return CheckoutCompletion(
            session_id=session.get("id"),
            user_id=metadata.get("userId") or None,
            plan=metadata.get("plan") or None,
            interval=metadata.get("interval") or None,
        )
    except ValidationError as exc:
        raise WebhookPayloadError("Invalid session metadata") from exc


async def apply_checkout_completion(store: TenantStore, completion: CheckoutCompletion) -> WebhookOutcome:
    """Assign the purchased plan and interval to the tenant's profile."""
    if not completion.user_id or not completion.plan:
        logger.info("checkout_completed_missing_metadata", session_id=completion.session_id)
        return WebhookOutcome.MISSING_METADATA

    tier = PlanTier.parse(completion.plan)
    if tier is None:
        logger.error("checkout_unknown_plan", plan=completion.plan, session_id=completion.session_id)
        return WebhookOutcome.UNKNOWN_PLAN

    interval = BillingInterval.parse(completion.interval)
    if interval is None:
        if completion.interval:
            logger.warning("checkout_unknown_interval", interval=completion.interval, session_id=completion.session_id)
        interval = BillingInterval.MONTH

    profile = await store.update_profile(
        completion.user_id,
        plan=tier.value,
        billing_interval=interval.value,
    )
    if profile is None:
        logger.warning("checkout_profile_not_found", user_id=completion.user_id, session_id=completion.session_id)
        return WebhookOutcome.PROFILE_NOT_FOUND

    logger.info(
        "profile_plan_updated",
        user_id=completion.user_id,
        plan=tier.value,
        billing_interval=interval.value,
        source="checkout",
    )
    return WebhookOutcome.APPLIED


async def handle_event(event: CheckoutCompletion | IgnoredEvent, store: TenantStore) -> WebhookOutcome:
    if isinstance(event, IgnoredEvent):
        logger.info("stripe_webhook_ignored", event_type=event.type, event_id=event.event_id)
        return WebhookOutcome.IGNORED
    return await apply_checkout_completion(store, event)


async def process_webhook(payload: bytes, sig_header: str | None, store: TenantStore) -> WebhookOutcome:
    """Verify, decode and apply one webhook delivery.

    Raises:
        ServiceNotConfiguredError: No webhook signing secret configured
        WebhookSignatureError: Signature missing or invalid (store untouched)
        WebhookPayloadError: Verified body is not a decodable event
        StoreError: Profile update failed; Stripe should redeliver
    """
    settings = get_settings()
    if not settings.stripe_webhook_secret:
        logger.error("stripe_webhook_secret_missing")
        raise ServiceNotConfiguredError("Stripe webhook endpoint is not configured")

    verify_signature(payload, sig_header, settings.stripe_webhook_secret)

    event = decode_event(payload)
    logger.info(
        "stripe_webhook_received",
        event_type=CHECKOUT_SESSION_COMPLETED if isinstance(event, CheckoutCompletion) else event.type,
    )
    return await handle_event(event, store)
