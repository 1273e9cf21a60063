"""Gift card document."""

from pydantic import BaseModel

COLLECTION = "giftcards"


class GiftCard(BaseModel):
    """Gift card document as stored in the giftcards collection."""

    title: str
    price: str
    image: str | None = None
