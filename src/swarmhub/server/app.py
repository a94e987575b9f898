"""Starlette app factory with lifespan for store and engine management."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from starlette.applications import Starlette

from swarmhub.config import Config, load_config
from swarmhub.lifecycle import SwarmLifecycleEngine
from swarmhub.models import Clock, epoch_now
from swarmhub.registry import AgentRegistry
from swarmhub.reputation import ReputationEngine
from swarmhub.server.routes_agents import routes as agent_routes
from swarmhub.server.routes_reviews import routes as review_routes
from swarmhub.server.routes_swarms import routes as swarm_routes
from swarmhub.server.routes_system import routes as system_routes
from swarmhub.store import SwarmStore

logger = logging.getLogger(__name__)


def create_app(
    db_path: str | None = None,
    *,
    config: Config | None = None,
    clock: Clock | None = None,
) -> Starlette:
    """Create a Starlette app backed by the store at db_path (config default if None)."""
    if config is None:
        config = load_config()
    resolved_db_path = db_path or str(config.db_path)
    now = clock or epoch_now

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        if resolved_db_path != ":memory:":
            Path(resolved_db_path).parent.mkdir(parents=True, exist_ok=True)

        store = SwarmStore(resolved_db_path)
        reputation = ReputationEngine(store, now)
        app.state.store = store
        app.state.reputation = reputation
        app.state.registry = AgentRegistry(store, now)
        app.state.lifecycle = SwarmLifecycleEngine(store, reputation, now)
        app.state.identity_header = config.identity_header
        logger.info(f"SwarmHub store opened: {resolved_db_path}")

        yield

        store.close()

    app = Starlette(
        routes=system_routes + agent_routes + swarm_routes + review_routes,
        lifespan=lifespan,
    )
    return app
