from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from todo_api.schemas.user import UserSummaryOut


class LoginIn(BaseModel):
    # "firebaseToken" is what existing web clients send.
    assertion: str = Field(
        min_length=1,
        validation_alias=AliasChoices("assertion", "firebaseToken", "firebase_token"),
    )


class LoginOut(BaseModel):
    token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserSummaryOut


class VerifyTokenIn(BaseModel):
    token: str = Field(min_length=1)


class VerifyTokenOut(BaseModel):
    valid: bool
    claims: dict[str, Any] | None = None
    user_found: bool = False
    user_active: bool | None = None
    reason: str | None = None
