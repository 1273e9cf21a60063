"""Shared schemas and field rules."""

import re
from collections.abc import Callable
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel
from pydantic_core import PydanticCustomError

T = TypeVar("T")

NUMERIC_PATTERN = re.compile(r"[+-]?([0-9]*[.])?[0-9]+")


class Envelope(BaseModel, Generic[T]):
    """Uniform response wrapper."""

    status: Literal["OK", "ERR"] = "OK"
    data: T


def length_between(field: str, low: int, high: int) -> Callable[[str], str]:
    """Build a rule requiring a string length within [low, high]."""

    def check(value: str) -> str:
        if not low <= len(value) <= high:
            raise PydanticCustomError(
                "length",
                "{field} must be between {low} and {high} characters",
                {"field": field, "low": low, "high": high},
            )
        return value

    return check


def numeric_string(field: str) -> Callable[[Any], str]:
    """Build a rule accepting numeric strings, storing JSON numbers as strings."""

    def check(value: Any) -> str:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str) or not NUMERIC_PATTERN.fullmatch(value):
            raise PydanticCustomError("numeric", "{field} must be numeric", {"field": field})
        return value

    return check


def reject_nulls(model: BaseModel, fields: tuple[str, ...]) -> None:
    """Fail if any of fields was explicitly sent as null."""
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise PydanticCustomError("null", "{field} cannot be null", {"field": name})
