"""Per-route guard chains.

A guard receives the ``RequestContext`` built so far and returns either
``Continue`` with the (possibly enriched) context or ``Respond`` with the error
that ends the request. Only ``run_pipeline`` decides what happens next, so a
guard can never both respond and hand the request on.
"""

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from fastapi import Request
from pydantic import BaseModel

from src.context import AppContext
from src.exceptions import ApiError, MalformedBody

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Typed request state threaded through a guard chain."""

    app: AppContext | None = None
    body: dict[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    claims: dict[str, Any] | None = None
    filtered_body: dict[str, Any] | None = None
    validated: BaseModel | None = None

    def evolve(self, **changes: Any) -> "RequestContext":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


@dataclass(frozen=True)
class Continue:
    """Hand the request on to the next step."""

    context: RequestContext


@dataclass(frozen=True)
class Respond:
    """Stop the chain and answer with an error."""

    error: ApiError

    @property
    def status_code(self) -> int:
        return self.error.status_code

    @property
    def data(self) -> Any:
        return self.error.data


GuardResult = Continue | Respond
Guard = Callable[[RequestContext], GuardResult]


def run_pipeline(context: RequestContext, guards: Sequence[Guard]) -> GuardResult:
    """Run guards in order, stopping at the first one that responds."""
    for guard in guards:
        result = guard(context)
        if isinstance(result, Respond):
            return result
        context = result.context
    return Continue(context)


async def read_body(request: Request) -> dict[str, Any]:
    """Read the request body as a JSON object. An empty body is an empty object."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise MalformedBody() from e
    if not isinstance(body, dict):
        raise MalformedBody()
    return body


def pipeline(*guards: Guard) -> Callable[[Request], Any]:
    """Build a FastAPI dependency running the guard chain for one route.

    The route handler receives the final context; a ``Respond`` is raised as
    its ``ApiError`` and rendered by the application's error handler.

    Usage:
        context: Annotated[RequestContext, Depends(pipeline(authenticate, ...))]
    """

    async def dependency(request: Request) -> RequestContext:
        context = RequestContext(
            app=request.app.state.context,
            body=await read_body(request),
            headers=request.headers,
        )
        result = run_pipeline(context, guards)
        if isinstance(result, Respond):
            logger.debug(f"{request.method} {request.url.path} stopped with {result.status_code}")
            raise result.error
        return result.context

    return dependency
