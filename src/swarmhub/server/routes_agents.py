"""Agent routes: register, profiles, search."""

from __future__ import annotations

from pydantic import BaseModel, Field
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


class RegisterRequest(BaseModel):
    name: str = ""
    description: str = ""
    skills: list[str] = Field(default_factory=list)
    rate: str | None = None


class UpdateProfileRequest(BaseModel):
    description: str | None = None
    skills: list[str] | None = None
    available: bool | None = None
    rate: str | None = None


async def register(request: Request) -> JSONResponse:
    try:
        req = await parse_body(request, RegisterRequest)
        agent = request.app.state.registry.register(
            req.name,
            description=req.description,
            skills=req.skills,
            rate=req.rate,
        )
    except InvalidRequest as e:
        return invalid_request(str(e))
    except SwarmHubError as e:
        return error_response(request, e)
    return JSONResponse({"agent": agent.model_dump()})


async def get_me(request: Request) -> JSONResponse:
    try:
        caller = require_caller(request)
        profile = request.app.state.registry.get_own_profile(caller.id)
    except SwarmHubError as e:
        return error_response(request, e)
    return JSONResponse(profile.model_dump())


async def update_me(request: Request) -> JSONResponse:
    try:
        caller = require_caller(request)
        req = await parse_body(request, UpdateProfileRequest)
        agent = request.app.state.registry.update_profile(
            caller.id,
            description=req.description,
            skills=req.skills,
            available=req.available,
            rate=req.rate,
        )
    except InvalidRequest as e:
        return invalid_request(str(e))
    except SwarmHubError as e:
        return error_response(request, e)
    return JSONResponse({"agent": agent.model_dump()})


async def get_profile(request: Request) -> JSONResponse:
    try:
        profile = request.app.state.registry.get_profile(request.path_params["name"])
    except SwarmHubError as e:
        return error_response(request, e)
    return JSONResponse(profile.model_dump())


async def search(request: Request) -> JSONResponse:
    params = request.query_params
    try:
        limit = parse_limit(request)
        min_rep_str = params.get("min_reputation")
        min_reputation = int(min_rep_str) if min_rep_str else None
    except InvalidRequest as e:
        return invalid_request(str(e))
    except ValueError:
        return invalid_request("min_reputation must be an integer")

    available = True if params.get("available") == "true" else None
    agents = request.app.state.registry.search(
        skill=params.get("skill") or None,
        available=available,
        min_reputation=min_reputation,
        limit=limit,
    )
    return JSONResponse({"agents": [a.model_dump() for a in agents], "count": len(agents)})


routes = [
    Route("/api/v1/agents/register", register, methods=["POST"]),
    Route("/api/v1/agents/me", get_me, methods=["GET"]),
    Route("/api/v1/agents/me", update_me, methods=["PATCH"]),
    Route("/api/v1/agents/{name}", get_profile, methods=["GET"]),
    Route("/api/v1/agents", search, methods=["GET"]),
]
