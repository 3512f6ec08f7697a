# todo_api/auth/identity.py
"""
Identity records passed between the auth layers.

- VerifiedIdentity: what the identity provider vouches for after verifying an
  assertion (provider subject, email, display name).
- SessionClaims: the exact claim set we sign into our own session tokens.
- Identity: the resolved caller for a protected request, built from the live
  user row. This is the security context for the rest of the request.

None of these are returned to clients directly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class VerifiedIdentity:
    subject: str
    email: str
    name: str | None = None


@dataclass(frozen=True)
class SessionClaims:
    """
    Claims carried by a session token.

    Attributes:
        sub: Local user id.
        email: User's email at signing time.
        external_id: Identity-provider subject linked to the user, if any
            (signed as "externalId").
    """

    sub: str
    email: str
    external_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {"sub": self.sub, "email": self.email, "externalId": self.external_id}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> SessionClaims:
        """
        Build claims from a decoded token payload.

        Raises ValueError if the subject or email is missing.
        """
        sub = str(payload.get("sub") or "").strip()
        if not sub:
            raise ValueError("Token missing 'sub'")
        email = str(payload.get("email") or "").strip()
        if not email:
            raise ValueError("Token missing 'email'")
        external_id = payload.get("externalId")
        return cls(sub=sub, email=email, external_id=str(external_id) if external_id else None)


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    external_id: str | None = None

    @classmethod
    def from_user(cls, user: Any) -> Identity:
        return cls(id=str(user.id), email=user.email, external_id=user.external_subject_id)
