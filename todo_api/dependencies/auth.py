from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from todo_api.auth.firebase import IdentityVerifier
from todo_api.auth.identity import Identity
from todo_api.core.database import get_db
from todo_api.core.errors import Unauthenticated
from todo_api.services.sessions import resolve_session

bearer_scheme = HTTPBearer(auto_error=False)


def get_identity_verifier(request: Request) -> IdentityVerifier:
    """Return the identity verifier built at startup."""
    return request.app.state.identity_verifier


def get_current_identity(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Identity:
    """
    Validates:
      - Authorization: Bearer <token>
      - token signature + exp
      - user exists + is_active
    Returns:
      - Identity for the live user row
    """
    if not creds or creds.scheme.lower() != "bearer" or not creds.credentials:
        raise Unauthenticated("Missing Authorization header")

    return resolve_session(db, creds.credentials)
