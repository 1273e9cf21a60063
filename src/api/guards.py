"""Request guards: authentication, role checks, field presence and validation."""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from src.api.pipeline import Continue, Guard, GuardResult, RequestContext, Respond
from src.exceptions import (
    Forbidden,
    InternalError,
    InvalidToken,
    MissingField,
    TokenExpired,
    Unauthenticated,
    ValidationFailed,
)
from src.services.auth import TokenExpiredError, TokenInvalidError, decode_access_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def authenticate(context: RequestContext) -> GuardResult:
    """Verify the bearer token and attach its claims to the context."""
    header = context.headers.get("authorization")
    if not header:
        return Respond(Unauthenticated())

    token = header.removeprefix(BEARER_PREFIX).strip()
    settings = context.app.settings
    try:
        claims = decode_access_token(token, settings.jwt_secret, settings.jwt_algorithm)
    except TokenExpiredError:
        return Respond(TokenExpired())
    except TokenInvalidError as e:
        logger.debug(f"Rejected token: {e}")
        return Respond(InvalidToken())

    return Continue(context.evolve(claims=claims))


def require_role(allowed_roles: Iterable[str]) -> Guard:
    """Allow the request only if the authenticated role is one of allowed_roles.

    Must run after ``authenticate``. Without claims in the context the guard
    answers 500, since the chain itself is misassembled.
    """
    allowed = frozenset(allowed_roles)

    def guard(context: RequestContext) -> GuardResult:
        if context.claims is None:
            return Respond(InternalError("no authenticated identity in request context"))
        if context.claims.get("role") not in allowed:
            return Respond(Forbidden())
        return Continue(context)

    return guard


def require_fields(names: Iterable[str]) -> Guard:
    """Reject the request if any named field is absent, null or a blank string."""
    required = tuple(names)

    def guard(context: RequestContext) -> GuardResult:
        for name in required:
            value = context.body.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                return Respond(MissingField(name))
        return Continue(context)

    return guard


def filter_allowed(names: Iterable[str]) -> Guard:
    """Keep only the listed body keys in the context's filtered body."""
    allowed = frozenset(names)

    def guard(context: RequestContext) -> GuardResult:
        filtered = {key: value for key, value in context.body.items() if key in allowed}
        return Continue(context.evolve(filtered_body=filtered))

    return guard


def format_validation_errors(errors: Sequence[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error details into ``{field, message}`` entries."""
    return [
        {
            "field": ".".join(str(part) for part in item["loc"]) or "body",
            "message": item["msg"],
        }
        for item in errors
    ]


def validate_body(model: type[BaseModel]) -> Guard:
    """Run every rule declared on model against the body.

    All rules are evaluated; the request fails with the full list of errors.
    """

    def guard(context: RequestContext) -> GuardResult:
        try:
            validated = model.model_validate(context.body)
        except ValidationError as e:
            return Respond(ValidationFailed(format_validation_errors(e.errors())))
        return Continue(context.evolve(validated=validated))

    return guard


def validate_update(model: type[BaseModel]) -> Guard:
    """Check the types of the filtered body against model.

    Runs after ``filter_allowed``; only the fields that were sent are kept, in
    their validated form.
    """

    def guard(context: RequestContext) -> GuardResult:
        try:
            validated = model.model_validate(context.filtered_body or {})
        except ValidationError as e:
            return Respond(ValidationFailed(format_validation_errors(e.errors())))
        update = validated.model_dump(mode="json", exclude_unset=True)
        return Continue(context.evolve(filtered_body=update))

    return guard


def omit_fields(record: dict[str, Any], names: Iterable[str]) -> dict[str, Any]:
    """Return a shallow copy of record without the named keys."""
    unwanted = set(names)
    return {key: value for key, value in record.items() if key not in unwanted}
