"""Entity store for agents, swarms, memberships and reviews."""

from swarmhub.store.database import SwarmStore

__all__ = ["SwarmStore"]
