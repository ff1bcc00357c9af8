"""CheckoutClaim model: which tenant a pre-signup checkout session was attached to."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from legalflow.db.base import Base


class CheckoutClaim(Base):
    """One row per reconciled checkout session; the primary key makes a claim exclusive."""

    __tablename__ = "checkout_claims"

    session_id = Column(String(255), primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)
    claimed_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
