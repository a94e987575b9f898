"""Swarm and membership lifecycle."""

from swarmhub.lifecycle.engine import SwarmLifecycleEngine

__all__ = ["SwarmLifecycleEngine"]
