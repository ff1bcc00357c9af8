"""Profile model: one row per tenant, holding plan and subscription state."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from legalflow.db.base import Base


class Profile(Base):
    __tablename__ = "profiles"

    # Same opaque id as the tenant's auth identity
    id = Column(String(255), primary_key=True)
    full_name = Column(String(255), nullable=True)

    plan = Column(String(50), nullable=False, default="free")
    billing_interval = Column(String(10), nullable=False, default="month")
    subscription_status = Column(String(50), nullable=False, default="active")  # active, past_due, canceled, incomplete

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
