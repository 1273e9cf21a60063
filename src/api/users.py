"""User API endpoints."""

import logging
from datetime import timedelta
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from src.api.dependencies import get_context, get_db, parse_object_id
from src.api.guards import (
    authenticate,
    filter_allowed,
    omit_fields,
    require_fields,
    require_role,
    validate_body,
    validate_update,
)
from src.api.pipeline import RequestContext, pipeline
from src.context import AppContext
from src.database import serialize_document
from src.exceptions import AlreadyRegistered, InvalidCredentials, NotFound
from src.models.enums import Role
from src.models.user import COLLECTION
from src.schemas.common import Envelope
from src.schemas.user import (
    LoginResponse,
    PaginatedUsers,
    UserLogin,
    UserRegister,
    UserResponse,
    UserUpdate,
)
from src.services.auth import (
    build_claims,
    create_access_token,
    create_user,
    get_user_by_email,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

# Never sent to clients
SECRET_FIELDS = ["password"]

UPDATABLE_FIELDS = ["name", "email", "avatar", "role", "cart"]

admin_only = (authenticate, require_role([Role.ADMIN]))


def serialize_user(doc: dict[str, Any]) -> dict[str, Any]:
    """Render a user document for clients, without secret fields."""
    return omit_fields(serialize_document(doc), SECRET_FIELDS)


def to_response(doc: dict[str, Any]) -> UserResponse:
    return UserResponse.model_validate(serialize_user(doc))


def user_not_found() -> NotFound:
    return NotFound("no user with that id")


@router.get("", response_model=Envelope[list[UserResponse]])
@router.get("/", response_model=Envelope[list[UserResponse]], include_in_schema=False)
def get_users(db: Annotated[Database, Depends(get_db)]):
    """Get all users."""
    users = db[COLLECTION].find()
    return Envelope(data=[to_response(user) for user in users])


@router.get("/paginated", response_model=Envelope[PaginatedUsers])
def get_users_paginated(
    app_context: Annotated[AppContext, Depends(get_context)],
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int | None, Query(ge=1)] = None,
):
    """Get one page of users, sized by REQ_LIMIT unless a limit is given."""
    limit = limit or app_context.settings.req_limit
    collection = app_context.db[COLLECTION]

    total = collection.count_documents({})
    users = collection.find().sort("_id", 1).skip(offset).limit(limit)

    return Envelope(
        data=PaginatedUsers(
            docs=[to_response(user) for user in users],
            total_docs=total,
            limit=limit,
            offset=offset,
            has_prev_page=offset > 0,
            has_next_page=offset + limit < total,
        )
    )


@router.get("/one/{user_id}", response_model=Envelope[UserResponse])
def get_user(user_id: str, db: Annotated[Database, Depends(get_db)]):
    """Get a single user by id."""
    oid = parse_object_id(user_id)
    user = db[COLLECTION].find_one({"_id": oid})
    if user is None:
        raise user_not_found()
    return Envelope(data=to_response(user))


@router.get(
    "/protected",
    response_model=Envelope[str],
    dependencies=[Depends(pipeline(authenticate))],
)
def protected():
    """Confirm that the caller holds a valid token."""
    return Envelope(data="authorized access")


@router.get(
    "/protected_adm",
    response_model=Envelope[str],
    dependencies=[Depends(pipeline(*admin_only))],
)
def protected_admin():
    """Confirm that the caller holds a valid admin token."""
    return Envelope(data="authorized admin access")


@router.post("", response_model=Envelope[UserResponse])
@router.post("/", response_model=Envelope[UserResponse], include_in_schema=False)
def register(
    context: Annotated[
        RequestContext,
        Depends(
            pipeline(
                require_fields(["name", "email", "password"]),
                validate_body(UserRegister),
            )
        ),
    ],
    db: Annotated[Database, Depends(get_db)],
):
    """Register a new user."""
    user_data: UserRegister = context.validated

    if get_user_by_email(db, user_data.email):
        raise AlreadyRegistered()

    try:
        user = create_user(
            db, user_data.name, user_data.email, user_data.password, avatar=user_data.avatar
        )
    except DuplicateKeyError as e:
        # Lost a race with a concurrent registration
        raise AlreadyRegistered() from e

    return Envelope(data=to_response(user))


@router.post("/login", response_model=Envelope[LoginResponse])
def login(
    context: Annotated[
        RequestContext,
        Depends(
            pipeline(
                require_fields(["email", "password"]),
                validate_body(UserLogin),
            )
        ),
    ],
    app_context: Annotated[AppContext, Depends(get_context)],
):
    """Login with email and password."""
    credentials: UserLogin = context.validated
    settings = app_context.settings

    user = get_user_by_email(app_context.db, credentials.email)
    if user is None or not verify_password(credentials.password, user["password"]):
        logger.warning(f"Failed login for {credentials.email}")
        raise InvalidCredentials()

    token = create_access_token(
        build_claims(user),
        settings.jwt_secret,
        timedelta(minutes=settings.jwt_expiration_minutes),
        algorithm=settings.jwt_algorithm,
    )
    logger.info(f"User {credentials.email} logged in")

    return Envelope(data=LoginResponse(**serialize_user(user), token=token))


@router.put("/{user_id}", response_model=Envelope[UserResponse])
def update_user(
    user_id: str,
    context: Annotated[
        RequestContext,
        Depends(
            pipeline(
                *admin_only,
                filter_allowed(UPDATABLE_FIELDS),
                validate_update(UserUpdate),
            )
        ),
    ],
    db: Annotated[Database, Depends(get_db)],
):
    """Update the allowed fields of a user. The password cannot be changed here."""
    oid = parse_object_id(user_id)
    if context.filtered_body:
        try:
            user = db[COLLECTION].find_one_and_update(
                {"_id": oid},
                {"$set": context.filtered_body},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise AlreadyRegistered() from e
    else:
        # Nothing to change; MongoDB rejects an empty $set
        user = db[COLLECTION].find_one({"_id": oid})

    if user is None:
        raise user_not_found()
    return Envelope(data=to_response(user))


@router.delete("/{user_id}", response_model=Envelope[UserResponse])
def delete_user(
    user_id: str,
    context: Annotated[RequestContext, Depends(pipeline(*admin_only))],
    db: Annotated[Database, Depends(get_db)],
):
    """Delete a user and return it."""
    oid = parse_object_id(user_id)
    user = db[COLLECTION].find_one_and_delete({"_id": oid})
    if user is None:
        raise user_not_found()
    logger.info(f"Deleted user {user_id} by {context.claims.get('email')}")
    return Envelope(data=to_response(user))
