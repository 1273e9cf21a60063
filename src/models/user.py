"""User document."""

from typing import Any

from pydantic import BaseModel, Field

from src.models.enums import Role

COLLECTION = "users"


class User(BaseModel):
    """User document as stored in the users collection.

    ``password`` always holds a bcrypt digest, never the plain text.
    """

    name: str
    email: str
    password: str
    avatar: str | None = None
    role: Role = Role.USER
    cart: list[Any] = Field(default_factory=list)
