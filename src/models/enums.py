"""Enums for document fields."""

from enum import StrEnum


class Role(StrEnum):
    """Roles a user can hold."""

    USER = "user"
    ADMIN = "admin"
