"""Document models."""

from src.models.enums import Role
from src.models.giftcard import GiftCard
from src.models.user import User

__all__ = [
    "Role",
    "GiftCard",
    "User",
]
