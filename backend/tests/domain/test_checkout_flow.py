"""Tests for checkout session creation, customer lookup and reconciliation.

Stripe is never contacted: the async SDK methods are patched.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
import stripe

from legalflow.billing.checkout import (
    build_checkout_params,
    create_checkout,
    get_checkout_customer,
    parse_interval,
    reconcile_checkout,
)
from legalflow.billing.plans import BillingInterval, PlanTier
from legalflow.billing.webhooks import WebhookOutcome
from legalflow.core.exceptions import (
    CheckoutAlreadyClaimedError,
    InvalidRequestError,
    PaymentProcessorError,
    ServiceNotConfiguredError,
)

pytestmark = pytest.mark.unit

ORIGIN = "https://app.legalflow.test"


def _session(**fields):
    defaults = {"id": "cs_test_123", "url": "https://checkout.stripe.test/c/pay/cs_test_123"}
    defaults.update(fields)
    return SimpleNamespace(**defaults)


@pytest.fixture
def create_async():
    with patch.object(
        stripe.checkout.Session, "create_async", new_callable=AsyncMock, return_value=_session()
    ) as mock:
        yield mock


@pytest.fixture
def retrieve_async():
    with patch.object(stripe.checkout.Session, "retrieve_async", new_callable=AsyncMock) as mock:
        yield mock


# ============================================================================
# Parameter building
# ============================================================================


def test_params_for_signed_in_tenant():
    params = build_checkout_params(
        PlanTier.GROWTH, BillingInterval.YEAR, ORIGIN, tenant_id="u1", tenant_email="owner@firm.test"
    )

    assert params["mode"] == "subscription"
    assert params["payment_method_types"] == ["card"]
    item = params["line_items"][0]
    assert item["quantity"] == 1
    assert item["price_data"]["currency"] == "myr"
    assert item["price_data"]["unit_amount"] == 599000
    assert item["price_data"]["recurring"] == {"interval": "year"}
    assert item["price_data"]["product_data"]["name"] == "GROWTH Plan Subscription"
    assert params["subscription_data"] == {"trial_period_days": 14}
    assert params["phone_number_collection"] == {"enabled": True}
    assert params["billing_address_collection"] == "required"
    assert params["success_url"] == f"{ORIGIN}/dashboard?session_id={{CHECKOUT_SESSION_ID}}"
    assert params["cancel_url"] == f"{ORIGIN}/pricing"
    assert params["metadata"] == {"plan": "growth", "interval": "year", "userId": "u1"}
    assert params["customer_email"] == "owner@firm.test"


def test_params_for_anonymous_buyer():
    params = build_checkout_params(PlanTier.STARTER, BillingInterval.MONTH, ORIGIN + "/")

    assert params["success_url"] == (
        f"{ORIGIN}/register?session_id={{CHECKOUT_SESSION_ID}}&plan=starter&interval=month"
    )
    assert params["metadata"] == {"plan": "starter", "interval": "month"}
    assert "customer_email" not in params


def test_params_use_configured_currency():
    params = build_checkout_params(PlanTier.PRO_FIRM, BillingInterval.MONTH, ORIGIN, currency="usd")

    assert params["line_items"][0]["price_data"]["currency"] == "usd"
    assert params["line_items"][0]["price_data"]["unit_amount"] == 149900


@pytest.mark.parametrize("value,expected", [(None, BillingInterval.MONTH), ("", BillingInterval.MONTH), ("year", BillingInterval.YEAR)])
def test_parse_interval(value, expected):
    assert parse_interval(value) is expected


def test_parse_interval_rejects_unknown():
    with pytest.raises(InvalidRequestError):
        parse_interval("quarter")


# ============================================================================
# create_checkout
# ============================================================================


async def test_create_checkout_returns_url(create_async):
    url = await create_checkout("growth", ORIGIN, tenant_id="u1", interval="year")

    assert url == "https://checkout.stripe.test/c/pay/cs_test_123"
    create_async.assert_awaited_once()
    kwargs = create_async.await_args.kwargs
    assert kwargs["metadata"]["userId"] == "u1"
    assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 599000


async def test_create_checkout_sets_api_key_without_retries(create_async):
    await create_checkout("starter", ORIGIN)

    assert stripe.api_key == "sk_test_dummy"
    assert stripe.max_network_retries == 0


@pytest.mark.parametrize("plan", [None, ""])
async def test_missing_plan_rejected_before_stripe(create_async, plan):
    with pytest.raises(InvalidRequestError, match="Missing required fields"):
        await create_checkout(plan, ORIGIN)
    create_async.assert_not_called()


@pytest.mark.parametrize("plan", ["free", "platinum"])
async def test_unpurchasable_plan_rejected_before_stripe(create_async, plan):
    with pytest.raises(InvalidRequestError, match="Invalid plan"):
        await create_checkout(plan, ORIGIN)
    create_async.assert_not_called()


async def test_invalid_interval_rejected_before_stripe(create_async):
    with pytest.raises(InvalidRequestError):
        await create_checkout("starter", ORIGIN, interval="weekly")
    create_async.assert_not_called()


async def test_missing_secret_key(create_async, monkeypatch):
    from legalflow.core.config import get_settings

    monkeypatch.setenv("STRIPE_SECRET_KEY", "")
    get_settings.cache_clear()

    with pytest.raises(ServiceNotConfiguredError):
        await create_checkout("starter", ORIGIN)
    create_async.assert_not_called()


async def test_processor_failure_is_wrapped(create_async):
    create_async.side_effect = stripe.APIConnectionError("Network down")

    with pytest.raises(PaymentProcessorError) as exc_info:
        await create_checkout("starter", ORIGIN)

    assert "Network down" in str(exc_info.value)
    assert exc_info.value.status_code == 502
    create_async.assert_awaited_once()


async def test_session_without_url_is_an_error(create_async):
    create_async.return_value = _session(url=None)

    with pytest.raises(PaymentProcessorError):
        await create_checkout("starter", ORIGIN)


# ============================================================================
# Session lookup
# ============================================================================


async def test_get_checkout_customer(retrieve_async):
    retrieve_async.return_value = _session(
        customer_details=SimpleNamespace(email="a@firm.test", name="Aisyah", phone="+60123456789")
    )

    customer = await get_checkout_customer("cs_test_123")

    retrieve_async.assert_awaited_once_with("cs_test_123")
    assert (customer.email, customer.name, customer.phone) == ("a@firm.test", "Aisyah", "+60123456789")


async def test_get_checkout_customer_without_details(retrieve_async):
    retrieve_async.return_value = _session(customer_details=None)

    customer = await get_checkout_customer("cs_test_123")

    assert customer.email is None and customer.name is None and customer.phone is None


async def test_get_checkout_customer_requires_session_id(retrieve_async):
    with pytest.raises(InvalidRequestError, match="Missing session ID"):
        await get_checkout_customer(None)
    retrieve_async.assert_not_called()


async def test_get_checkout_customer_processor_failure(retrieve_async):
    retrieve_async.side_effect = stripe.InvalidRequestError("No such checkout.session", param="id")

    with pytest.raises(PaymentProcessorError):
        await get_checkout_customer("cs_missing")


# ============================================================================
# Reconciliation
# ============================================================================


async def test_reconcile_applies_anonymous_purchase(store, retrieve_async):
    store.add_profile("u1")
    retrieve_async.return_value = _session(
        status="complete", metadata=SimpleNamespace(plan="starter", interval="year")
    )

    outcome = await reconcile_checkout(store, "u1", "cs_test_123")

    assert outcome is WebhookOutcome.APPLIED
    assert store.profiles["u1"].plan == "starter"
    assert store.profiles["u1"].billing_interval == "year"


async def test_reconcile_rejects_incomplete_session(store, retrieve_async):
    store.add_profile("u1")
    retrieve_async.return_value = _session(status="open", metadata=SimpleNamespace(plan="starter"))

    with pytest.raises(InvalidRequestError):
        await reconcile_checkout(store, "u1", "cs_test_123")
    assert store.profile_updates == []


async def test_reconcile_rejects_other_tenants_session(store, retrieve_async):
    store.add_profile("u1")
    retrieve_async.return_value = _session(
        status="complete", metadata=SimpleNamespace(plan="pro_firm", userId="u2")
    )

    with pytest.raises(InvalidRequestError, match="another account"):
        await reconcile_checkout(store, "u1", "cs_test_123")
    assert store.profile_updates == []
    assert store.checkout_claims == {}


async def test_reconcile_records_the_claim(store, retrieve_async):
    store.add_profile("u1")
    retrieve_async.return_value = _session(status="complete", metadata=SimpleNamespace(plan="growth"))

    await reconcile_checkout(store, "u1", "cs_test_123")

    assert store.checkout_claims == {"cs_test_123": "u1"}


async def test_reconcile_session_cannot_be_claimed_twice(store, retrieve_async):
    """One paid session upgrades one tenant, however many accounts present its id."""
    store.add_profile("u1")
    store.add_profile("u2")
    retrieve_async.return_value = _session(
        id="cs_paid_once", status="complete", metadata=SimpleNamespace(plan="pro_firm", interval="month")
    )

    first = await reconcile_checkout(store, "u1", "cs_paid_once")
    with pytest.raises(CheckoutAlreadyClaimedError) as exc_info:
        await reconcile_checkout(store, "u2", "cs_paid_once")

    assert first is WebhookOutcome.APPLIED
    assert exc_info.value.status_code == 409
    assert store.profiles["u1"].plan == "pro_firm"
    assert store.profiles["u2"].plan == "free"
    assert [tenant for tenant, _ in store.profile_updates] == ["u1"]
    assert store.checkout_claims == {"cs_paid_once": "u1"}


async def test_reconcile_repeated_by_same_tenant_is_idempotent(store, retrieve_async):
    store.add_profile("u1")
    retrieve_async.return_value = _session(status="complete", metadata=SimpleNamespace(plan="starter"))

    assert await reconcile_checkout(store, "u1", "cs_test_123") is WebhookOutcome.APPLIED
    assert await reconcile_checkout(store, "u1", "cs_test_123") is WebhookOutcome.APPLIED

    assert store.profiles["u1"].plan == "starter"
    assert store.checkout_claims == {"cs_test_123": "u1"}


async def test_reconcile_claims_the_id_stripe_returns(store, retrieve_async):
    store.add_profile("u1")
    retrieve_async.return_value = _session(id="cs_live_abc", status="complete", metadata=SimpleNamespace(plan="starter"))

    await reconcile_checkout(store, "u1", "cs_live_abc")

    assert "cs_live_abc" in store.checkout_claims
