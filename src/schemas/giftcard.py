"""Gift card schemas."""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, model_validator

from src.schemas.common import length_between, numeric_string, reject_nulls


class GiftCardCreate(BaseModel):
    """Create a new gift card."""

    model_config = ConfigDict(extra="ignore")

    title: Annotated[str, AfterValidator(length_between("title", 2, 32))]
    price: Annotated[str, BeforeValidator(numeric_string("price"))]
    image: str | None = None


class GiftCardResponse(BaseModel):
    """Gift card response."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    title: str
    price: str
    image: str | None = None


class GiftCardUpdate(BaseModel):
    """Partial gift card update. Numbers sent as price are stored as strings."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    title: str | None = None
    price: str | None = None
    image: str | None = None

    @model_validator(mode="after")
    def check_required_not_null(self) -> "GiftCardUpdate":
        reject_nulls(self, ("title", "price"))
        return self
