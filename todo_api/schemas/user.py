from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class UserSummaryOut(BaseModel):
    id: str
    email: str
    display_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("display_name", "displayName"),
        serialization_alias="displayName",
    )

    model_config = ConfigDict(from_attributes=True)
