"""FastAPI dependencies for the application context and database."""

from typing import Annotated

from bson import ObjectId
from fastapi import Depends, Request
from pymongo.database import Database

from src.context import AppContext
from src.database import is_valid_object_id
from src.exceptions import InvalidId


def get_context(request: Request) -> AppContext:
    """Get the application context attached to the running app."""
    return request.app.state.context


def get_db(context: Annotated[AppContext, Depends(get_context)]) -> Database:
    """Dependency that provides the database handle."""
    return context.db


def parse_object_id(value: str) -> ObjectId:
    """Convert a path identifier to an ObjectId, rejecting malformed ones."""
    if not is_valid_object_id(value):
        raise InvalidId()
    return ObjectId(value)
