"""Re-export all models so Base.metadata sees them."""

from legalflow.db.models.case import Case
from legalflow.db.models.checkout_claim import CheckoutClaim
from legalflow.db.models.client import Client
from legalflow.db.models.document import Document
from legalflow.db.models.invoice import Invoice
from legalflow.db.models.profile import Profile

__all__ = [
    "Case",
    "CheckoutClaim",
    "Client",
    "Document",
    "Invoice",
    "Profile",
]
