"""Shared test fixtures for all test groups."""

import hashlib
import hmac
import json
import time
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import jwt as pyjwt
import pytest

from legalflow.billing.plans import ResourceKind
from legalflow.core.config import get_settings
from legalflow.core.exceptions import StoreError
from legalflow.db.models.profile import Profile
from legalflow.db.store import RECORD_MODELS

TEST_JWT_SECRET = "test-jwt-secret-with-enough-bytes-for-hs256"
TEST_WEBHOOK_SECRET = "whsec_test_secret"
TEST_STRIPE_KEY = "sk_test_dummy"


class InMemoryTenantStore:
    """TenantStore kept in dicts, with call recording and failure injection.

    Set ``fail_with`` to a ``StoreError`` to make every call raise it.
    """

    def __init__(self):
        self.profiles: dict[str, Profile] = {}
        self.records: dict[ResourceKind, list[Any]] = {kind: [] for kind in ResourceKind}
        self.profile_reads: list[str] = []
        self.profile_updates: list[tuple[str, dict]] = []
        self.checkout_claims: dict[str, str] = {}
        self.count_calls: list[tuple[str, ResourceKind]] = []
        self.fail_with: StoreError | None = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def add_profile(self, tenant_id: str, plan: str = "free", billing_interval: str = "month") -> Profile:
        now = datetime.now(timezone.utc)
        profile = Profile(
            id=tenant_id,
            full_name=None,
            plan=plan,
            billing_interval=billing_interval,
            subscription_status="active",
            created_at=now,
            updated_at=now,
        )
        self.profiles[tenant_id] = profile
        return profile

    def seed(self, tenant_id: str, kind: ResourceKind, n: int) -> None:
        """Insert ``n`` minimal records of ``kind`` for the tenant."""
        for i in range(n):
            if kind is ResourceKind.CASES:
                values = {"title": f"Case {i}", "status": "open"}
            elif kind is ResourceKind.CLIENTS:
                values = {"name": f"Client {i}"}
            elif kind is ResourceKind.DOCUMENTS:
                values = {"name": f"doc-{i}.pdf", "file_path": f"/docs/doc-{i}.pdf"}
            else:
                values = {
                    "invoice_number": f"INV-{i:04d}",
                    "issue_date": date(2026, 1, 1),
                    "due_date": date(2026, 1, 31),
                    "status": "draft",
                    "subtotal": Decimal("0"),
                    "tax_rate": Decimal("0"),
                    "tax_amount": Decimal("0"),
                    "total": Decimal("0"),
                }
            self._insert(tenant_id, kind, values)

    def _insert(self, tenant_id: str, kind: ResourceKind, values: dict[str, Any]) -> Any:
        model = RECORD_MODELS[kind]
        now = datetime.now(timezone.utc)
        record = model(**{**values, "user_id": tenant_id})
        record.id = uuid.uuid4()
        record.created_at = now
        if hasattr(model, "updated_at"):
            record.updated_at = now
        self.records[kind].append(record)
        return record

    async def get_profile(self, tenant_id: str) -> Profile | None:
        self._check()
        self.profile_reads.append(tenant_id)
        return self.profiles.get(tenant_id)

    async def update_profile(self, tenant_id: str, **changes: Any) -> Profile | None:
        self._check()
        self.profile_updates.append((tenant_id, dict(changes)))
        profile = self.profiles.get(tenant_id)
        if profile is None:
            return None
        for key, value in changes.items():
            setattr(profile, key, value)
        profile.updated_at = datetime.now(timezone.utc)
        return profile

    async def count_records(self, tenant_id: str, kind: ResourceKind) -> int:
        self._check()
        self.count_calls.append((tenant_id, kind))
        return sum(1 for r in self.records[kind] if r.user_id == tenant_id)

    async def list_records(self, tenant_id: str, kind: ResourceKind) -> list[Any]:
        self._check()
        return [r for r in reversed(self.records[kind]) if r.user_id == tenant_id]

    async def get_record(self, tenant_id: str, kind: ResourceKind, record_id: Any) -> Any | None:
        self._check()
        for record in self.records[kind]:
            if record.id == record_id and record.user_id == tenant_id:
                return record
        return None

    async def add_record(self, tenant_id: str, kind: ResourceKind, values: dict[str, Any]) -> Any:
        self._check()
        return self._insert(tenant_id, kind, values)

    async def update_record(
        self, tenant_id: str, kind: ResourceKind, record_id: Any, changes: dict[str, Any]
    ) -> Any | None:
        self._check()
        record = await self.get_record(tenant_id, kind, record_id)
        if record is None:
            return None
        for key, value in changes.items():
            setattr(record, key, value)
        if hasattr(record, "updated_at"):
            record.updated_at = datetime.now(timezone.utc)
        return record

    async def claim_checkout_session(self, tenant_id: str, session_id: str) -> str:
        self._check()
        return self.checkout_claims.setdefault(session_id, tenant_id)

    async def delete_record(self, tenant_id: str, kind: ResourceKind, record_id: Any) -> bool:
        self._check()
        record = await self.get_record(tenant_id, kind, record_id)
        if record is None:
            return False
        self.records[kind].remove(record)
        return True


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    """Deterministic settings for every test; cache cleared on both sides."""
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("DATABASE_URL", "")
    monkeypatch.setenv("FRONTEND_URL", "http://localhost:3000")
    monkeypatch.setenv("AUTH_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("AUTH_JWT_AUDIENCE", "authenticated")
    monkeypatch.setenv("STRIPE_SECRET_KEY", TEST_STRIPE_KEY)
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", TEST_WEBHOOK_SECRET)
    monkeypatch.setenv("STRIPE_CURRENCY", "myr")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    """Fresh in-memory tenant store."""
    return InMemoryTenantStore()


@pytest.fixture
def make_token():
    """Factory for signed tenant access tokens."""

    def _make(
        sub: str = "u1",
        email: str | None = "owner@firm.test",
        audience: str = "authenticated",
        secret: str = TEST_JWT_SECRET,
        expires_in: int = 3600,
    ) -> str:
        claims = {
            "sub": sub,
            "aud": audience,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        }
        if email:
            claims["email"] = email
        return pyjwt.encode(claims, secret, algorithm="HS256")

    return _make


@pytest.fixture
def sign_payload():
    """Build a Stripe-Signature header value for a payload."""

    def _sign(payload: str, secret: str = TEST_WEBHOOK_SECRET, timestamp: int | None = None) -> str:
        ts = int(time.time()) if timestamp is None else timestamp
        digest = hmac.new(secret.encode(), f"{ts}.{payload}".encode(), hashlib.sha256).hexdigest()
        return f"t={ts},v1={digest}"

    return _sign


@pytest.fixture
def checkout_event():
    """Factory for checkout.session.completed event bodies (JSON strings)."""

    def _event(
        metadata: dict | None = None,
        event_id: str = "evt_test_001",
        session_id: str = "cs_test_001",
        event_type: str = "checkout.session.completed",
    ) -> str:
        return json.dumps(
            {
                "id": event_id,
                "type": event_type,
                "data": {"object": {"id": session_id, "object": "checkout.session", "metadata": metadata or {}}},
            }
        )

    return _event
