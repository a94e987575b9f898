"""Reputation engine: completion bonus, review deltas, derived trust metrics."""

from __future__ import annotations

import uuid
from decimal import ROUND_HALF_UP, Decimal

from swarmhub.config import (
    COMPLETION_BONUS,
    MAX_RATING,
    MIN_RATING,
    REVIEW_NEUTRAL_RATING,
    REVIEW_STEP,
)
from swarmhub.errors import NotFound, ValidationError
from swarmhub.models import (
    Agent,
    Clock,
    LeaderboardEntry,
    Review,
    ReviewOutcome,
    epoch_now,
)
from swarmhub.store import SwarmStore


def review_delta(rating: int) -> int:
    """Map a 1-5 rating onto a reputation change in {-10, -5, 0, +5, +10}."""
    return (rating - REVIEW_NEUTRAL_RATING) * REVIEW_STEP


def apply_delta(reputation: int, delta: int) -> int:
    return max(0, reputation + delta)


def _outcomes(agent: Agent) -> int:
    return max(1, agent.completed_swarms + agent.failed_swarms)


def _round_half_up(value: float, places: int) -> float:
    # Halves round away from zero, unlike round()
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def trust_score(agent: Agent) -> float:
    """Reputation per finished swarm; equals raw reputation with no history."""
    return _round_half_up(agent.reputation / _outcomes(agent), 2)


def success_rate(agent: Agent) -> float:
    """Percentage of finished swarms that completed."""
    return _round_half_up(agent.completed_swarms / _outcomes(agent) * 100, 1)


def validate_rating(rating: object) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError(f"Rating must be an integer {MIN_RATING}-{MAX_RATING}")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError(f"Rating must be {MIN_RATING}-{MAX_RATING}")
    return rating


class ReputationEngine:
    """Mutates agent reputation on swarm completion and reviews."""

    def __init__(self, store: SwarmStore, clock: Clock = epoch_now) -> None:
        self._store = store
        self._clock = clock

    def on_swarm_completion(self, agent_id: str) -> None:
        """Count the completed swarm and add the flat completion bonus."""
        self._store.adjust_agent_stats(agent_id, reputation=COMPLETION_BONUS, completed=1)

    def on_swarm_failure(self, agent_id: str) -> None:
        self._store.adjust_agent_stats(agent_id, failed=1)

    def on_review(self, reviewee_id: str, rating: int) -> int:
        """Apply the rating's delta (floored at zero). Returns the delta."""
        delta = review_delta(validate_rating(rating))
        self._store.adjust_agent_stats(reviewee_id, reputation=delta)
        return delta

    def submit_review(
        self,
        reviewer_id: str,
        reviewee_name: str,
        rating: object,
        *,
        comment: str = "",
        swarm_id: str | None = None,
    ) -> ReviewOutcome:
        if not reviewee_name or rating is None:
            raise ValidationError("agent_name and rating required")
        valid_rating = validate_rating(rating)
        reviewee = self._store.get_agent_by_name(reviewee_name)
        if reviewee is None:
            raise NotFound("Agent not found")
        if reviewee.id == reviewer_id:
            raise ValidationError("Cannot review yourself")
        if self._store.get_agent(reviewer_id) is None:
            raise NotFound("Agent not found")
        if swarm_id is not None and self._store.get_swarm(swarm_id) is None:
            raise NotFound("Swarm not found")

        review = Review(
            id=str(uuid.uuid4()),
            reviewer_id=reviewer_id,
            reviewee_id=reviewee.id,
            swarm_id=swarm_id,
            rating=valid_rating,
            comment=comment or "",
            created_at=self._clock(),
        )
        with self._store.transaction():
            self._store.insert_review(review)
            delta = self.on_review(reviewee.id, valid_rating)
        return ReviewOutcome(review=review, reputation_change=delta)

    def leaderboard(self, limit: int = 20) -> list[LeaderboardEntry]:
        return [
            LeaderboardEntry(
                name=agent.name,
                reputation=agent.reputation,
                completed_swarms=agent.completed_swarms,
                failed_swarms=agent.failed_swarms,
                success_rate=success_rate(agent),
            )
            for agent in self._store.top_agents(limit)
        ]
