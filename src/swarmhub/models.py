"""Pydantic models and enums for agents, swarms, memberships and reviews."""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import StrEnum

from pydantic import BaseModel, Field

from swarmhub.config import DEFAULT_MAX_MEMBERS

Clock = Callable[[], int]


def epoch_now() -> int:
    return int(time.time())


class SwarmStatus(StrEnum):
    RECRUITING = "recruiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class MembershipStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    FAILED = "failed"


class MemberRole(StrEnum):
    CREATOR = "creator"
    MEMBER = "member"


class Agent(BaseModel):
    id: str
    name: str
    description: str = ""
    skills: list[str] = Field(default_factory=list)
    reputation: int = Field(default=0, ge=0)
    completed_swarms: int = 0
    failed_swarms: int = 0
    available: bool = True
    rate: str | None = None
    created_at: int = Field(default_factory=epoch_now)
    last_active: int = Field(default_factory=epoch_now)


class Swarm(BaseModel):
    id: str
    name: str
    description: str = ""
    creator_id: str
    status: SwarmStatus = SwarmStatus.RECRUITING
    required_skills: list[str] = Field(default_factory=list)
    max_members: int = DEFAULT_MAX_MEMBERS
    payment_total: int = 0
    deliverable: str | None = None
    deadline: int | None = None
    created_at: int = Field(default_factory=epoch_now)
    completed_at: int | None = None


class Membership(BaseModel):
    swarm_id: str
    agent_id: str
    role: MemberRole = MemberRole.MEMBER
    share_percent: int = 0
    status: MembershipStatus = MembershipStatus.PENDING
    joined_at: int = Field(default_factory=epoch_now)


class Review(BaseModel):
    id: str
    reviewer_id: str
    reviewee_id: str
    swarm_id: str | None = None
    rating: int = Field(ge=1, le=5)
    comment: str = ""
    created_at: int = Field(default_factory=epoch_now)


# -- Read models ------------------------------------------------------------


class ReceivedReview(BaseModel):
    rating: int
    comment: str
    created_at: int
    reviewer_name: str


class AgentProfile(BaseModel):
    agent: Agent
    trust_score: float
    success_rate: float
    reviews: list[ReceivedReview] = Field(default_factory=list)


class PendingInvite(BaseModel):
    swarm_id: str
    name: str
    description: str
    share_percent: int


class OwnProfile(BaseModel):
    agent: Agent
    pending_invites: list[PendingInvite] = Field(default_factory=list)


class SwarmSummary(BaseModel):
    swarm: Swarm
    creator_name: str
    member_count: int


class MemberView(BaseModel):
    agent_id: str
    name: str
    reputation: int
    role: MemberRole
    share_percent: int
    status: MembershipStatus


class SwarmDetail(BaseModel):
    swarm: Swarm
    creator_name: str
    members: list[MemberView] = Field(default_factory=list)
    allocated_share: int = 0


class LeaderboardEntry(BaseModel):
    name: str
    reputation: int
    completed_swarms: int
    failed_swarms: int
    success_rate: float


# -- Command outcomes -------------------------------------------------------


class CompletionResult(BaseModel):
    swarm: Swarm
    rewarded_agent_ids: list[str] = Field(default_factory=list)

    @property
    def members_rewarded(self) -> int:
        return len(self.rewarded_agent_ids)


class FailureResult(BaseModel):
    swarm: Swarm
    failed_agent_ids: list[str] = Field(default_factory=list)


class ReviewOutcome(BaseModel):
    review: Review
    reputation_change: int
