"""
Domain models for the user cache service.

`User` mirrors a row of the `users` table and serializes to the wire shape
shared by the HTTP responses and the cached JSON values:
`{"ID", "CreatedAt", "UpdatedAt", "DeletedAt", "name"}`.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """
    Representation of a single row in the `users` table.
    """

    id: int = Field(..., alias="ID", description="Primary key assigned by the store (BIGSERIAL).")
    created_at: datetime = Field(..., alias="CreatedAt", description="Row creation timestamp.")
    updated_at: datetime = Field(..., alias="UpdatedAt", description="Last mutation timestamp.")
    deleted_at: Optional[datetime] = Field(
        None, alias="DeletedAt", description="Soft-delete marker; set rows are invisible."
    )
    name: str = Field(..., description="Display name; the only mutable field.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    def to_wire(self) -> dict:
        """JSON-compatible dict in the wire shape (aliased keys, ISO timestamps)."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "User":
        return cls.model_validate_json(raw)


class UserPayload(BaseModel):
    """
    Client-supplied fields for create and update requests.

    A missing `name` parses as the empty string so the coordinator can
    report it as a validation failure rather than a decode failure.
    """

    name: str = ""

    model_config = {"extra": "ignore"}


__all__ = ["User", "UserPayload"]
