"""Signed token validation for API endpoints."""

from __future__ import annotations

from jose import ExpiredSignatureError, JWTError, jwt

from shared import config
from shared.models import AuthenticatedUser


class UnauthorizedError(Exception):
    """Raised when a credential cannot be validated."""


def _extract_user_id(payload: dict[str, object]) -> str | None:
    user_claim = payload.get("user")
    raw_id = user_claim.get("id") if isinstance(user_claim, dict) else payload.get("sub")
    if isinstance(raw_id, int) and not isinstance(raw_id, bool):
        return str(raw_id)
    if isinstance(raw_id, str) and raw_id.strip():
        return raw_id.strip()
    return None


def get_user_from_token(token: str) -> AuthenticatedUser:
    """Return the acting identity for a signed token.

    Accepts ``{"user": {"id": ...}}`` and ``{"sub": ...}`` payloads.
    """

    secret = config.jwt_secret()
    if not secret:
        raise UnauthorizedError("Token verification is not configured")

    try:
        payload = jwt.decode(token, secret, algorithms=[config.jwt_algorithm()])
    except ExpiredSignatureError as exc:
        raise UnauthorizedError("Token has expired") from exc
    except JWTError as exc:
        raise UnauthorizedError("Token is not valid") from exc

    if not isinstance(payload, dict):
        raise UnauthorizedError("Token is not valid")

    user_id = _extract_user_id(payload)
    if user_id is None:
        raise UnauthorizedError("Token is not valid")

    user_claim = payload.get("user")
    email = user_claim.get("email") if isinstance(user_claim, dict) else payload.get("email")
    return AuthenticatedUser(id=user_id, email=email if isinstance(email, str) else None)
