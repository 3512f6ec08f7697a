from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from jose import JWTError
from sqlalchemy.orm import Session

from todo_api.auth.firebase import IdentityVerifier
from todo_api.core.config import settings
from todo_api.core.database import get_db
from todo_api.core.errors import NotFound
from todo_api.core.security import decode_session_token
from todo_api.dependencies.auth import get_identity_verifier
from todo_api.schemas.auth import LoginIn, LoginOut, VerifyTokenIn, VerifyTokenOut
from todo_api.schemas.user import UserSummaryOut
from todo_api.services.sessions import exchange_for_session
from todo_api.services.users import get_user_by_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginOut, response_model_by_alias=True)
def login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
):
    grant = exchange_for_session(db, verifier, payload.assertion)
    return LoginOut(
        token=grant.token,
        expires_in=grant.expires_in,
        user=UserSummaryOut.model_validate(grant.user),
    )


@router.post("/debug/verify-token", response_model=VerifyTokenOut)
def debug_verify_token(payload: VerifyTokenIn, db: Session = Depends(get_db)):
    """
    Dev-only: decode a session token and report whether it would authenticate.
    Disabled (404) unless AUTH_DEBUG_ENABLED=true outside prod.
    """
    if not settings.debug_endpoints_enabled:
        raise NotFound()

    try:
        claims = decode_session_token(payload.token)
    except (JWTError, ValueError) as exc:
        logger.info("Debug token check failed: %s", exc.__class__.__name__)
        return VerifyTokenOut(valid=False, reason=exc.__class__.__name__)

    user = get_user_by_id(db, claims.sub)
    if user is None:
        return VerifyTokenOut(valid=False, claims=claims.to_payload(), reason="User not found")

    return VerifyTokenOut(
        valid=bool(user.is_active),
        claims=claims.to_payload(),
        user_found=True,
        user_active=bool(user.is_active),
        reason=None if user.is_active else "User is inactive",
    )
