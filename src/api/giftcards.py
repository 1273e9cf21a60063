"""Gift card API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database

from src.api.dependencies import get_db, parse_object_id
from src.api.guards import (
    authenticate,
    filter_allowed,
    require_fields,
    require_role,
    validate_body,
    validate_update,
)
from src.api.pipeline import RequestContext, pipeline
from src.database import serialize_document
from src.exceptions import NotFound
from src.models.enums import Role
from src.models.giftcard import COLLECTION, GiftCard
from src.schemas.common import Envelope
from src.schemas.giftcard import GiftCardCreate, GiftCardResponse, GiftCardUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/giftcards", tags=["giftcards"])

UPDATABLE_FIELDS = ["title", "price", "image"]

admin_only = (authenticate, require_role([Role.ADMIN]))


def to_response(doc: dict) -> GiftCardResponse:
    return GiftCardResponse.model_validate(serialize_document(doc))


def card_not_found() -> NotFound:
    return NotFound("no gift card with that id")


@router.get("", response_model=Envelope[list[GiftCardResponse]])
@router.get("/", response_model=Envelope[list[GiftCardResponse]], include_in_schema=False)
def get_giftcards(db: Annotated[Database, Depends(get_db)]):
    """Get all gift cards."""
    cards = db[COLLECTION].find()
    return Envelope(data=[to_response(card) for card in cards])


@router.get("/one/{card_id}", response_model=Envelope[GiftCardResponse])
def get_giftcard(card_id: str, db: Annotated[Database, Depends(get_db)]):
    """Get a single gift card by id."""
    oid = parse_object_id(card_id)
    card = db[COLLECTION].find_one({"_id": oid})
    if card is None:
        raise card_not_found()
    return Envelope(data=to_response(card))


@router.post("", response_model=Envelope[GiftCardResponse])
@router.post("/", response_model=Envelope[GiftCardResponse], include_in_schema=False)
def create_giftcard(
    context: Annotated[
        RequestContext,
        Depends(
            pipeline(
                *admin_only,
                require_fields(["title", "price"]),
                validate_body(GiftCardCreate),
            )
        ),
    ],
    db: Annotated[Database, Depends(get_db)],
):
    """Create a new gift card."""
    card = GiftCard.model_validate(context.validated.model_dump())
    document = card.model_dump()
    db[COLLECTION].insert_one(document)
    logger.info(f"Created gift card {document['_id']} by {context.claims.get('email')}")
    return Envelope(data=to_response(document))


@router.put("/{card_id}", response_model=Envelope[GiftCardResponse])
def update_giftcard(
    card_id: str,
    context: Annotated[
        RequestContext,
        Depends(
            pipeline(
                *admin_only,
                filter_allowed(UPDATABLE_FIELDS),
                validate_update(GiftCardUpdate),
            )
        ),
    ],
    db: Annotated[Database, Depends(get_db)],
):
    """Update the allowed fields of a gift card."""
    oid = parse_object_id(card_id)
    if context.filtered_body:
        card = db[COLLECTION].find_one_and_update(
            {"_id": oid},
            {"$set": context.filtered_body},
            return_document=ReturnDocument.AFTER,
        )
    else:
        # Nothing to change; MongoDB rejects an empty $set
        card = db[COLLECTION].find_one({"_id": oid})

    if card is None:
        raise card_not_found()
    return Envelope(data=to_response(card))


@router.delete("/{card_id}", response_model=Envelope[GiftCardResponse])
def delete_giftcard(
    card_id: str,
    context: Annotated[RequestContext, Depends(pipeline(*admin_only))],
    db: Annotated[Database, Depends(get_db)],
):
    """Delete a gift card and return it."""
    oid = parse_object_id(card_id)
    card = db[COLLECTION].find_one_and_delete({"_id": oid})
    if card is None:
        raise card_not_found()
    logger.info(f"Deleted gift card {card_id} by {context.claims.get('email')}")
    return Envelope(data=to_response(card))
