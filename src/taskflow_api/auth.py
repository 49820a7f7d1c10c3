from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

import jwt
from fastapi import Depends, Request
from pydantic import BaseModel, ValidationError

from .errors import UnauthorizedError
from .settings import Settings, get_settings

taskflow_security_logger = logging.getLogger("taskflow.security")

jwt_algorithm = "HS256"
"""
The algorithm used to sign session tokens shared with the identity provider
"""


# PUBLIC_INTERFACE
class UserIdentity(BaseModel):
    """
    The authenticated caller, as asserted by the identity provider.
    """

    id: str
    email: Optional[str] = None
    name: Optional[str] = None


def _extract_token(headers: Mapping[str, str], cookies: Mapping[str, str], cookie_name: str) -> Optional[str]:
    authorization = headers.get("authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    token = cookies.get(cookie_name)
    return token or None


# PUBLIC_INTERFACE
def resolve_session(
    headers: Mapping[str, str],
    settings: Settings,
    cookies: Optional[Mapping[str, str]] = None,
) -> Optional[UserIdentity]:
    """
    Verify the session token carried by a request and return the caller's identity.

    The token is read from `Authorization: Bearer <token>` or, failing that, from the
    session cookie. It must be an HS256 JWT signed with SESSION_SECRET carrying `sub`
    and `exp` claims.

    Returns:
        The UserIdentity, or None when the token is missing, expired, malformed or
        when no secret is configured.
    """
    token = _extract_token(headers, cookies or {}, settings.session_cookie_name)
    if token is None:
        return None
    if not settings.session_secret:
        taskflow_security_logger.warning("Session rejected: SESSION_SECRET is not configured")
        return None

    try:
        payload = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
        identity = UserIdentity(id=payload["sub"], email=payload.get("email"), name=payload.get("name"))
    except jwt.ExpiredSignatureError:
        taskflow_security_logger.info("Session rejected: token expired")
        return None
    except (jwt.InvalidTokenError, ValidationError):
        taskflow_security_logger.info("Session rejected: invalid token")
        return None
    return identity


# PUBLIC_INTERFACE
def create_session_token(
    settings: Settings,
    user_id: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    expires_delta: timedelta = timedelta(days=7),
) -> str:
    """
    Issue a session token that resolve_session accepts. Sessions last 7 days by default.
    """
    if not settings.session_secret:
        raise ValueError("SESSION_SECRET must be set to issue session tokens")
    now = datetime.now(timezone.utc)
    claims = {"sub": user_id, "iat": now, "exp": now + expires_delta}
    if email is not None:
        claims["email"] = email
    if name is not None:
        claims["name"] = name
    return jwt.encode(claims, settings.session_secret, algorithm=jwt_algorithm)


# PUBLIC_INTERFACE
def get_current_user(request: Request, settings: Settings = Depends(get_settings)) -> UserIdentity:
    """
    FastAPI dependency resolving the authenticated caller.

    Raises:
        UnauthorizedError (401) if the request carries no valid session.
    """
    user = resolve_session(request.headers, settings, cookies=request.cookies)
    if user is None:
        raise UnauthorizedError()
    return user
