# todo_api/core/security.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import jwt

from todo_api.auth.identity import SessionClaims
from todo_api.core.config import require_jwt_secret, settings


# -------------------------
# Session token helpers
# -------------------------
def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_session_token(claims: SessionClaims, expires_in: int | None = None) -> str:
    """
    Session token used for API auth: Authorization: Bearer <token>
    expires_in: lifetime in seconds; defaults to JWT_EXPIRATION.
    """
    require_jwt_secret()

    lifetime = expires_in if expires_in is not None else settings.JWT_EXPIRATION_SECONDS
    now = _now_utc()
    exp = now + timedelta(seconds=lifetime)

    payload = claims.to_payload()
    payload["iat"] = int(now.timestamp())
    payload["exp"] = int(exp.timestamp())

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> SessionClaims:
    """
    Verify signature + exp and return the claims.
    Raises JWTError (bad signature / expired / malformed) or ValueError (missing claims).
    Callers decide how to surface those.
    """
    require_jwt_secret()
    payload = jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require_exp": True},
    )
    return SessionClaims.from_payload(payload)
