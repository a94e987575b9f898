"""Review and leaderboard routes."""

from __future__ import annotations

from pydantic import BaseModel
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from swarmhub.errors import SwarmHubError
from swarmhub.server.identity import require_caller
from swarmhub.server.responses import (
    InvalidRequest,
    error_response,
    invalid_request,
    parse_body,
    parse_limit,
)


class ReviewRequest(BaseModel):
    agent_name: str = ""
    swarm_id: str | None = None
    rating: int | None = None
    comment: str = ""


async def submit_review(request: Request) -> JSONResponse:
    try:
        caller = require_caller(request)
        req = await parse_body(request, ReviewRequest)
        outcome = request.app.state.reputation.submit_review(
            caller.id,
            req.agent_name,
            req.rating,
            comment=req.comment,
            swarm_id=req.swarm_id,
        )
    except InvalidRequest as e:
        return invalid_request(str(e))
    except SwarmHubError as e:
        return error_response(request, e)
    return JSONResponse(outcome.model_dump())


async def leaderboard(request: Request) -> JSONResponse:
    try:
        limit = parse_limit(request)
    except InvalidRequest as e:
        return invalid_request(str(e))
    entries = request.app.state.reputation.leaderboard(limit)
    return JSONResponse({"leaderboard": [e.model_dump() for e in entries]})


routes = [
    Route("/api/v1/reviews", submit_review, methods=["POST"]),
    Route("/api/v1/leaderboard", leaderboard, methods=["GET"]),
]
