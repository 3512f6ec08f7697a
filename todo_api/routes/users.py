from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from todo_api.auth.identity import Identity
from todo_api.core.database import get_db
from todo_api.core.errors import Unauthenticated
from todo_api.dependencies.auth import get_current_identity
from todo_api.models.user import User
from todo_api.schemas.user import UserSummaryOut
from todo_api.services.users import get_user_by_id

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserSummaryOut)
def get_me(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> User:
    user = get_user_by_id(db, identity.id)
    if user is None:
        # Deleted between token resolution and this read.
        raise Unauthenticated("User not found")
    return user
