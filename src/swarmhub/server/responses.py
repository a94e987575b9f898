"""Shared request parsing and error-to-status mapping for the HTTP routes."""

from __future__ import annotations

import json
import logging
from typing import TypeVar

from pydantic import BaseModel
from starlette.requests import Request
from starlette.responses import JSONResponse

from swarmhub.config import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from swarmhub.errors import Conflict, Forbidden, NotFound, SwarmHubError, ValidationError
from swarmhub.server.identity import AuthenticationRequired

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

STATUS_CODES: dict[type[SwarmHubError], int] = {
    ValidationError: 400,
    AuthenticationRequired: 401,
    Forbidden: 403,
    NotFound: 404,
    Conflict: 409,
}


class InvalidRequest(Exception):
    pass


def status_for(exc: SwarmHubError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 400


def error_response(request: Request, exc: SwarmHubError) -> JSONResponse:
    status = status_for(exc)
    logger.info(f"{request.method} {request.url.path} rejected ({status}): {exc.message}")
    return JSONResponse({"error": exc.message, "kind": exc.kind}, status_code=status)


def invalid_request(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=422)


async def parse_body(request: Request, model: type[M]) -> M:
    """Validate the JSON body against ``model``; an empty body counts as ``{}``."""
    raw = await request.body()
    try:
        body = json.loads(raw) if raw.strip() else {}
        return model.model_validate(body)
    except (json.JSONDecodeError, ValueError) as e:
        raise InvalidRequest(str(e)) from e


def parse_limit(request: Request) -> int:
    try:
        limit = int(request.query_params.get("limit", str(DEFAULT_LIST_LIMIT)))
    except ValueError:
        raise InvalidRequest("limit must be an integer") from None
    return min(max(limit, 1), MAX_LIST_LIMIT)
