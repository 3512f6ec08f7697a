# todo_api/services/sessions.py
"""
Bridge between the identity provider and our own sessions.

exchange_for_session: provider assertion -> local user (created or re-linked) -> signed session token
resolve_session:      session token -> live, active user -> Identity
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from jose import JWTError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from todo_api.auth.firebase import FirebaseVerificationError, IdentityVerifier
from todo_api.auth.identity import Identity, SessionClaims
from todo_api.core.config import settings
from todo_api.core.errors import InvalidCredential, Unauthenticated
from todo_api.core.security import create_session_token, decode_session_token
from todo_api.models.user import User
from todo_api.services.users import (
    get_user_by_email,
    get_user_by_id,
    link_external_subject,
    provision_user,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionGrant:
    token: str
    expires_in: int
    user: User


def _find_or_provision(db: Session, *, subject: str, email: str, name: str | None) -> User:
    user = get_user_by_email(db, email)
    if user is None:
        try:
            return provision_user(db, email=email, external_subject_id=subject, display_name=name)
        except IntegrityError:
            # Lost a race with a concurrent first login for the same email.
            db.rollback()
            user = get_user_by_email(db, email)
            if user is None:
                raise
            logger.info("Concurrent first login for user id=%s; merging", user.id)

    return link_external_subject(db, user, subject)


def exchange_for_session(db: Session, verifier: IdentityVerifier, assertion: str) -> SessionGrant:
    """
    Exchange an identity-provider assertion for a local session token.

    Raises InvalidCredential for every verification failure, without saying which.
    Storage errors propagate unchanged.
    """
    try:
        verified = verifier.verify(assertion)
    except FirebaseVerificationError as exc:
        logger.warning("Identity assertion rejected: %s", exc)
        raise InvalidCredential() from exc

    user = _find_or_provision(db, subject=verified.subject, email=verified.email, name=verified.name)

    claims = SessionClaims(sub=str(user.id), email=user.email, external_id=user.external_subject_id)
    expires_in = settings.JWT_EXPIRATION_SECONDS
    token = create_session_token(claims, expires_in=expires_in)

    logger.info("Issued session for user id=%s", user.id)
    return SessionGrant(token=token, expires_in=expires_in, user=user)


def resolve_session(db: Session, token: str) -> Identity:
    """
    Validate a session token and resolve it against the live user directory.

    Raises Unauthenticated if the token is invalid or expired, or if the user
    no longer exists or is inactive.
    """
    try:
        claims = decode_session_token(token)
    except JWTError as exc:
        logger.info("Rejected session token: %s", exc)
        raise Unauthenticated("Invalid or expired token") from exc
    except ValueError as exc:
        logger.info("Rejected session token: %s", exc)
        raise Unauthenticated("Invalid or expired token") from exc

    user = get_user_by_id(db, claims.sub)
    if user is None:
        raise Unauthenticated("User not found")
    if not user.is_active:
        raise Unauthenticated("User is inactive")

    return Identity.from_user(user)
