"""Authentication service for JWT and password handling."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database

from src.models.user import COLLECTION, User

logger = logging.getLogger(__name__)

# Password hashing context, fixed cost factor of 10
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

# Identity claims copied from a user into its token
TOKEN_CLAIMS = ("name", "email", "role")


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpiredError(TokenError):
    """The token's expiry has elapsed."""


class TokenInvalidError(TokenError):
    """The token is malformed or its signature does not verify."""


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def build_claims(user: dict[str, Any]) -> dict[str, Any]:
    """Pick the identity claims from a user document, never the password."""
    return {key: user.get(key) for key in TOKEN_CLAIMS}


def create_access_token(
    claims: dict[str, Any],
    secret: str,
    ttl: timedelta,
    algorithm: str = "HS256",
) -> str:
    """Create a signed JWT carrying the given claims and an expiry."""
    to_encode = {**claims, "exp": datetime.now(UTC) + ttl}
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        TokenExpiredError: the token was valid but its expiry has passed
        TokenInvalidError: any other verification failure
    """
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except ExpiredSignatureError as e:
        raise TokenExpiredError(str(e)) from e
    except JWTError as e:
        raise TokenInvalidError(str(e)) from e


def get_user_by_email(db: Database, email: str) -> dict[str, Any] | None:
    """Get a user document by email."""
    return db[COLLECTION].find_one({"email": email})


def authenticate_user(db: Database, email: str, password: str) -> dict[str, Any] | None:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user["password"]):
        return None
    return user


def create_user(
    db: Database,
    name: str,
    email: str,
    password: str,
    avatar: str | None = None,
) -> dict[str, Any]:
    """Create a new user with a hashed password.

    A duplicate email raises ``pymongo.errors.DuplicateKeyError`` from the
    unique index on users.email.
    """
    user = User(name=name, email=email, password=get_password_hash(password), avatar=avatar)
    document = user.model_dump(mode="json")
    result = db[COLLECTION].insert_one(document)
    document["_id"] = result.inserted_id
    logger.info(f"Registered user {email}")
    return document
