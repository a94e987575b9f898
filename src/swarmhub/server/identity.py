"""Caller identity supplied by the authenticating gateway in front of the API."""

from __future__ import annotations

from starlette.requests import Request

from swarmhub.errors import SwarmHubError
from swarmhub.models import Agent


class AuthenticationRequired(SwarmHubError):
    kind = "unauthenticated"


def require_caller(request: Request) -> Agent:
    """Resolve the acting agent from the trusted identity header and mark it active."""
    header = request.app.state.identity_header
    agent_id = request.headers.get(header)
    if not agent_id:
        raise AuthenticationRequired(f"Missing {header} header")
    registry = request.app.state.registry
    agent = request.app.state.store.get_agent(agent_id)
    if agent is None:
        raise AuthenticationRequired("Unknown agent identity")
    registry.touch(agent.id)
    return agent
