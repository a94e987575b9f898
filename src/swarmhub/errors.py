"""Error kinds raised by the lifecycle and reputation engines."""

from __future__ import annotations


class SwarmHubError(Exception):
    """Base for caller/state mismatches. Never retried by the engines."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SwarmHubError):
    kind = "validation_error"


class NotFound(SwarmHubError):
    kind = "not_found"


class AuthorizationOrExistenceError(NotFound):
    """Swarm is missing, or the caller lacks the role/state to act on it.

    Carries only the generic message so non-owners cannot probe for swarm
    existence or ownership.
    """


class Conflict(SwarmHubError):
    kind = "conflict"


class Forbidden(SwarmHubError):
    kind = "forbidden"


_OPAQUE_MESSAGE = "Swarm not found or not authorized"


def not_found_or_not_authorized() -> AuthorizationOrExistenceError:
    return AuthorizationOrExistenceError(_OPAQUE_MESSAGE)
