"""Tenant session authentication for FastAPI.

The hosted auth service issues HS256 access tokens whose ``sub`` claim is the
tenant id. Every dependency here yields that id explicitly; nothing downstream
looks up an ambient session.
"""

from dataclasses import dataclass

import jwt as pyjwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from legalflow.core.config import get_settings
from legalflow.core.exceptions import AuthenticationError, ServiceNotConfiguredError

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TenantUser:
    """Authenticated tenant extracted from a session JWT."""

    user_id: str
    email: str | None
    claims: dict


def decode_access_token(token: str) -> TenantUser:
    """Verify and decode a tenant access token.

    Raises:
        AuthenticationError: The token is expired, malformed or not ours (401)
        ServiceNotConfiguredError: No signing secret is configured (503)
    """
    settings = get_settings()
    if not settings.auth_jwt_secret:
        raise ServiceNotConfiguredError("Authentication is not configured")

    try:
        payload = pyjwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=["HS256"],
            audience=settings.auth_jwt_audience,
            options={
                "verify_exp": True,
                "require": ["sub", "exp"],
            },
        )
    except pyjwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except pyjwt.InvalidAudienceError:
        raise AuthenticationError("Unauthorized audience (aud mismatch)")
    except pyjwt.MissingRequiredClaimError as exc:
        raise AuthenticationError(f"Missing required claim: {exc}")
    except pyjwt.InvalidTokenError as exc:
        raise AuthenticationError(f"Invalid token: {exc}")

    sub = payload.get("sub")
    if not sub:
        raise AuthenticationError("Token missing sub claim")

    return TenantUser(user_id=sub, email=payload.get("email"), claims=payload)


async def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> TenantUser:
    """FastAPI dependency that extracts and validates the tenant session token.

    Usage::

        @router.get("/protected")
        async def protected(user: TenantUser = Depends(require_auth)):
            ...
    """
    if credentials is None:
        raise AuthenticationError("Missing authorization header")

    user = decode_access_token(credentials.credentials)
    request.state.user_id = user.user_id
    return user


async def optional_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> TenantUser | None:
    """Like ``require_auth`` but yields None for anonymous callers.

    A token that is present but invalid is still rejected.
    """
    if credentials is None:
        return None
    return await require_auth(request, credentials)
