# todo_api/services/users.py
"""
User directory helpers.

Responsibilities:
- Lookup by email or by local id
- Provisioning users the first time an identity-provider account signs in
- Re-linking the provider subject when an existing email signs in with a new one
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from todo_api.core.config import settings
from todo_api.models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Look up a user by email address."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    """Look up a user by local id."""
    return db.get(User, user_id)


def normalize_name(name: str | None, fallback: str | None = None) -> str:
    """Trim and bound the display name, falling back to the configured placeholder."""
    if name:
        clean = name.strip()
        if clean:
            return clean[:100]
    return fallback or settings.DEFAULT_DISPLAY_NAME


def provision_user(
    db: Session,
    *,
    email: str,
    external_subject_id: str,
    display_name: str | None = None,
) -> User:
    """
    Create and commit a new, active user for a first-time sign-in.

    Raises:
        ValueError: If email or external_subject_id is empty
        sqlalchemy.exc.IntegrityError: If the email was inserted concurrently
    """
    if not email:
        raise ValueError("email is required")
    if not external_subject_id:
        raise ValueError("external_subject_id is required")

    user = User(
        email=normalize_email(email),
        external_subject_id=external_subject_id,
        display_name=normalize_name(display_name),
        is_active=True,
    )

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Provisioned new user: id=%s, external_subject_id=%s", user.id, external_subject_id)
    return user


def link_external_subject(db: Session, user: User, external_subject_id: str) -> User:
    """
    Point an existing user at a new provider subject.

    No-op (and no write) when the subject already matches.
    """
    if user.external_subject_id == external_subject_id:
        return user

    previous = user.external_subject_id
    user.external_subject_id = external_subject_id
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(
        "Updated external subject for user id=%s (previous=%s, current=%s)",
        user.id,
        previous,
        external_subject_id,
    )
    return user
