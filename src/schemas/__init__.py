"""Pydantic schemas for API requests and responses."""

from src.schemas.common import Envelope
from src.schemas.giftcard import GiftCardCreate, GiftCardResponse, GiftCardUpdate
from src.schemas.user import (
    LoginResponse,
    PaginatedUsers,
    UserLogin,
    UserRegister,
    UserResponse,
    UserUpdate,
)

__all__ = [
    "Envelope",
    "GiftCardCreate",
    "GiftCardResponse",
    "GiftCardUpdate",
    "LoginResponse",
    "PaginatedUsers",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    "UserUpdate",
]
