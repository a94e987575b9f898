"""Agent registry: registration, profiles, activity, search."""

from __future__ import annotations

import sqlite3
import uuid

from swarmhub.config import DEFAULT_LIST_LIMIT, NAME_MIN_LENGTH, RECENT_REVIEWS
from swarmhub.errors import Conflict, NotFound, ValidationError
from swarmhub.models import (
    Agent,
    AgentProfile,
    Clock,
    OwnProfile,
    epoch_now,
)
from swarmhub.reputation import success_rate, trust_score
from swarmhub.store import SwarmStore


class AgentRegistry:
    def __init__(self, store: SwarmStore, clock: Clock = epoch_now) -> None:
        self._store = store
        self._clock = clock

    def register(
        self,
        name: str,
        *,
        description: str = "",
        skills: list[str] | None = None,
        rate: str | None = None,
    ) -> Agent:
        name = (name or "").strip()
        if len(name) < NAME_MIN_LENGTH:
            raise ValidationError(f"Name required (min {NAME_MIN_LENGTH} chars)")
        if self._store.get_agent_by_name(name) is not None:
            raise Conflict("Agent name already taken")

        now = self._clock()
        agent = Agent(
            id=str(uuid.uuid4()),
            name=name,
            description=description or "",
            skills=list(skills or []),
            rate=rate,
            created_at=now,
            last_active=now,
        )
        try:
            return self._store.insert_agent(agent)
        except sqlite3.IntegrityError:
            # Lost a race with a concurrent registration of the same name
            raise Conflict("Agent name already taken") from None

    def get(self, agent_id: str) -> Agent:
        agent = self._store.get_agent(agent_id)
        if agent is None:
            raise NotFound("Agent not found")
        return agent

    def get_profile(self, name: str) -> AgentProfile:
        """Public profile with derived trust metrics and recent reviews."""
        agent = self._store.get_agent_by_name(name)
        if agent is None:
            raise NotFound("Agent not found")
        return AgentProfile(
            agent=agent,
            trust_score=trust_score(agent),
            success_rate=success_rate(agent),
            reviews=self._store.recent_reviews_for(agent.id, RECENT_REVIEWS),
        )

    def get_own_profile(self, agent_id: str) -> OwnProfile:
        return OwnProfile(
            agent=self.get(agent_id),
            pending_invites=self._store.pending_invites(agent_id),
        )

    def update_profile(
        self,
        agent_id: str,
        *,
        description: str | None = None,
        skills: list[str] | None = None,
        available: bool | None = None,
        rate: str | None = None,
    ) -> Agent:
        updates: dict[str, object] = {}
        if description is not None:
            updates["description"] = description
        if skills is not None:
            updates["skills"] = skills
        if available is not None:
            updates["available"] = available
        if rate is not None:
            updates["rate"] = rate
        if not updates:
            raise ValidationError("No updates provided")

        self.get(agent_id)
        self._store.update_agent(agent_id, **updates)
        return self.get(agent_id)

    def touch(self, agent_id: str) -> None:
        self._store.update_agent(agent_id, last_active=self._clock())

    def search(
        self,
        *,
        skill: str | None = None,
        available: bool | None = None,
        min_reputation: int | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[Agent]:
        return self._store.search_agents(
            skill=skill,
            available=available,
            min_reputation=min_reputation,
            limit=limit,
        )
