"""Database connection and index management."""

import logging
from typing import Any

from bson import ObjectId
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from src.config import Settings
from src.models.user import COLLECTION as USERS_COLLECTION

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> MongoClient:
    """Create a MongoDB client. The driver owns connection pooling."""
    return MongoClient(settings.mongodb_uri, tz_aware=True)


def get_database(client: MongoClient, settings: Settings) -> Database:
    """Select the application database from a client."""
    return client[settings.mongodb_database]


def init_db(db: Database) -> None:
    """Create the indexes the application relies on.

    The unique index on users.email is the authoritative guard against
    duplicate registrations.
    """
    db[USERS_COLLECTION].create_index([("email", ASCENDING)], unique=True)
    logger.info(f"Indexes ensured on database '{db.name}'")


def is_valid_object_id(value: str) -> bool:
    """Check whether a path identifier is a well-formed ObjectId."""
    return ObjectId.is_valid(value)


def serialize_document(doc: dict[str, Any]) -> dict[str, Any]:
    """Render a stored document for clients, with _id exposed as a string id."""
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    return data
