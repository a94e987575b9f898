"""Swarm routes: create, list, detail, and lifecycle commands."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from swarmhub.config import DEFAULT_MAX_MEMBERS
from swarmhub.errors import SwarmHubError
from swarmhub.models import SwarmStatus
from swarmhub.server.identity import require_caller
from swarmhub.server.responses import (
    InvalidRequest,
    error_response,
    invalid_request,
    parse_body,
    parse_limit,
)

logger = logging.getLogger(__name__)


class CreateSwarmRequest(BaseModel):
    name: str = ""
    description: str = ""
    required_skills: list[str] = Field(default_factory=list)
    max_members: int = DEFAULT_MAX_MEMBERS
    payment_total: int = 0
    deadline: int | None = None


class InviteRequest(BaseModel):
    agent_name: str = ""
    share_percent: int = 0


class AcceptRequest(BaseModel):
    agent_name: str | None = None


class CompleteRequest(BaseModel):
    deliverable: str = ""


async def create_swarm(request: Request) -> JSONResponse:
    try:
        caller = require_caller(request)
        req = await parse_body(request, CreateSwarmRequest)
        swarm = request.app.state.lifecycle.create_swarm(
            caller.id,
            req.name,
            description=req.description,
            required_skills=req.required_skills,
            max_members=req.max_members,
            payment_total=req.payment_total,
            deadline=req.deadline,
        )
    except InvalidRequest as e:
        return invalid_request(str(e))
    except SwarmHubError as e:
        return error_response(request, e)
    logger.info(f"Swarm created: {swarm.id[:8]}... by {caller.name}")
    return JSONResponse({"swarm": swarm.model_dump()})


async def list_swarms(request: Request) -> JSONResponse:
    try:
        status = SwarmStatus(request.query_params.get("status", SwarmStatus.RECRUITING))
    except ValueError:
        return JSONResponse({"error": "unknown status"}, status_code=400)
    try:
        limit = parse_limit(request)
    except InvalidRequest as e:
        return invalid_request(str(e))

    summaries = request.app.state.lifecycle.list_swarms(
        status=status,
        skill=request.query_params.get("skill") or None,
        limit=limit,
    )
    return JSONResponse(
        {"swarms": [s.model_dump() for s in summaries], "count": len(summaries)}
    )


async def get_swarm(request: Request) -> JSONResponse:
    try:
        detail = request.app.state.lifecycle.get_detail(request.path_params["swarm_id"])
    except SwarmHubError as e:
        return error_response(request, e)
    return JSONResponse(detail.model_dump())


async def apply(request: Request) -> JSONResponse:
    try:
        caller = require_caller(request)
        membership = request.app.state.lifecycle.apply(request.path_params["swarm_id"], caller.id)
    except SwarmHubError as e:
        return error_response(request, e)
    return JSONResponse({"membership": membership.model_dump()})


async def invite(request: Request) -> JSONResponse:
    try:
        caller = require_caller(request)
        req = await parse_body(request, InviteRequest)
        membership = request.app.state.lifecycle.invite(
            request.path_params["swarm_id"], caller.id, req.agent_name, req.share_percent
        )
    except InvalidRequest as e:
        return invalid_request(str(e))
    except SwarmHubError as e:
        return error_response(request, e)
    return JSONResponse({"membership": membership.model_dump()})


async def accept(request: Request) -> JSONResponse:
    try:
        caller = require_caller(request)
        req = await parse_body(request, AcceptRequest)
        membership = request.app.state.lifecycle.accept(
            request.path_params["swarm_id"], caller.id, req.agent_name
        )
    except InvalidRequest as e:
        return invalid_request(str(e))
    except SwarmHubError as e:
        return error_response(request, e)
    return JSONResponse({"membership": membership.model_dump()})


async def start(request: Request) -> JSONResponse:
    try:
        caller = require_caller(request)
        swarm = request.app.state.lifecycle.start(request.path_params["swarm_id"], caller.id)
    except SwarmHubError as e:
        return error_response(request, e)
    logger.info(f"Swarm started: {swarm.id[:8]}...")
    return JSONResponse({"swarm": swarm.model_dump()})


async def complete(request: Request) -> JSONResponse:
    try:
        caller = require_caller(request)
        req = await parse_body(request, CompleteRequest)
        result = request.app.state.lifecycle.complete(
            request.path_params["swarm_id"], caller.id, req.deliverable
        )
    except InvalidRequest as e:
        return invalid_request(str(e))
    except SwarmHubError as e:
        return error_response(request, e)
    logger.info(
        f"Swarm completed: {result.swarm.id[:8]}... ({result.members_rewarded} members rewarded)"
    )
    return JSONResponse(
        {
            "swarm": result.swarm.model_dump(),
            "rewarded_agent_ids": result.rewarded_agent_ids,
            "members_rewarded": result.members_rewarded,
        }
    )


async def fail(request: Request) -> JSONResponse:
    try:
        caller = require_caller(request)
        result = request.app.state.lifecycle.fail(request.path_params["swarm_id"], caller.id)
    except SwarmHubError as e:
        return error_response(request, e)
    logger.info(f"Swarm failed: {result.swarm.id[:8]}...")
    return JSONResponse(result.model_dump())


routes = [
    Route("/api/v1/swarms", create_swarm, methods=["POST"]),
    Route("/api/v1/swarms", list_swarms, methods=["GET"]),
    Route("/api/v1/swarms/{swarm_id}", get_swarm, methods=["GET"]),
    Route("/api/v1/swarms/{swarm_id}/apply", apply, methods=["POST"]),
    Route("/api/v1/swarms/{swarm_id}/invite", invite, methods=["POST"]),
    Route("/api/v1/swarms/{swarm_id}/accept", accept, methods=["POST"]),
    Route("/api/v1/swarms/{swarm_id}/start", start, methods=["POST"]),
    Route("/api/v1/swarms/{swarm_id}/complete", complete, methods=["POST"]),
    Route("/api/v1/swarms/{swarm_id}/fail", fail, methods=["POST"]),
]
