class LegalFlowError(Exception):
    """Base exception for LegalFlow. ``status_code`` is the HTTP status it maps to."""

    status_code = 500


class InvalidRequestError(LegalFlowError):
    """Raised when a request fails input validation before any external call."""

    status_code = 400


class AuthenticationError(LegalFlowError):
    """Raised when an operation requires a tenant session and none is valid."""

    status_code = 401


class PlanLimitReachedError(LegalFlowError):
    """Raised when the usage gate denies creating another tenant-owned record."""

    status_code = 403

    def __init__(self, resource: str, plan: str, limit: float):
        self.resource = resource
        self.plan = plan
        self.limit = limit
        super().__init__(f"Your current {plan} plan is limited to {int(limit)} {resource}. Upgrade your plan.")


class ProfileNotFoundError(LegalFlowError):
    """Raised when no profile exists for the tenant."""

    status_code = 404


class RecordNotFoundError(LegalFlowError):
    """Raised when a tenant-owned record does not exist (or belongs to someone else)."""

    status_code = 404


class WebhookSignatureError(LegalFlowError):
    """Raised when a webhook signature is missing or does not verify."""

    status_code = 400


class WebhookPayloadError(LegalFlowError):
    """Raised when a verified webhook body cannot be decoded into an event."""

    status_code = 400


class PaymentProcessorError(LegalFlowError):
    """Raised when a Stripe call fails."""

    status_code = 502


class StoreError(LegalFlowError):
    """Raised when a read or write against the relational store fails."""

    pass


class ServiceNotConfiguredError(LegalFlowError):
    """Raised when a required secret is missing from configuration."""

    status_code = 503


class CheckoutAlreadyClaimedError(LegalFlowError):
    """Raised when a checkout session was already attached to another tenant."""

    status_code = 409
