"""User and authentication schemas."""

from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, model_validator

from src.models.enums import Role
from src.schemas.common import length_between, reject_nulls

Password = Annotated[str, AfterValidator(length_between("password", 6, 12))]


class UserRegister(BaseModel):
    """User registration request."""

    model_config = ConfigDict(extra="ignore")

    name: Annotated[str, AfterValidator(length_between("name", 2, 32))]
    email: EmailStr
    password: Password
    avatar: str | None = None


class UserLogin(BaseModel):
    """User login request."""

    model_config = ConfigDict(extra="ignore")

    email: EmailStr
    password: Password


class UserResponse(BaseModel):
    """User information response. Never carries the password digest."""

    id: str
    name: str
    email: str
    avatar: str | None = None
    role: str = "user"
    cart: list[Any] = []


class LoginResponse(UserResponse):
    """Logged-in user with the issued token."""

    token: str


class PaginatedUsers(BaseModel):
    """One page of users."""

    docs: list[UserResponse]
    total_docs: int
    limit: int
    offset: int
    has_prev_page: bool
    has_next_page: bool


class UserUpdate(BaseModel):
    """Partial user update. The password is not updatable here."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    email: EmailStr | None = None
    avatar: str | None = None
    role: Role | None = None
    cart: list[Any] | None = None

    @model_validator(mode="after")
    def check_required_not_null(self) -> "UserUpdate":
        reject_nulls(self, ("name", "email", "role", "cart"))
        return self
