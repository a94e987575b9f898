"""Swarm lifecycle engine: creation, membership, start, completion, failure."""

from __future__ import annotations

import uuid

from swarmhub.config import DEFAULT_LIST_LIMIT, DEFAULT_MAX_MEMBERS, MAX_SHARE_PERCENT
from swarmhub.errors import Conflict, NotFound, ValidationError, not_found_or_not_authorized
from swarmhub.lifecycle.transitions import (
    transition_membership_status,
    transition_swarm_status,
)
from swarmhub.models import (
    Clock,
    CompletionResult,
    FailureResult,
    MemberRole,
    Membership,
    MembershipStatus,
    Swarm,
    SwarmDetail,
    SwarmStatus,
    SwarmSummary,
    epoch_now,
)
from swarmhub.reputation import ReputationEngine
from swarmhub.store import SwarmStore


def validate_share(share_percent: object) -> int:
    if isinstance(share_percent, bool) or not isinstance(share_percent, int):
        raise ValidationError("share_percent must be an integer")
    if share_percent < 0 or share_percent > MAX_SHARE_PERCENT:
        raise ValidationError(f"share_percent must be 0-{MAX_SHARE_PERCENT}")
    return share_percent


class SwarmLifecycleEngine:
    """Owns swarm and membership status transitions.

    Every command reads fresh rows, validates, and writes inside one store
    transaction. Creator-only commands raise the same opaque error whether
    the swarm is missing, owned by someone else, or in the wrong status.
    """

    def __init__(
        self,
        store: SwarmStore,
        reputation: ReputationEngine | None = None,
        clock: Clock = epoch_now,
    ) -> None:
        self._store = store
        self._clock = clock
        self._reputation = reputation or ReputationEngine(store, clock)

    def _require_owned_swarm(
        self, swarm_id: str, caller_id: str, *statuses: SwarmStatus
    ) -> Swarm:
        swarm = self._store.get_swarm(swarm_id)
        if swarm is None or swarm.creator_id != caller_id:
            raise not_found_or_not_authorized()
        if statuses and swarm.status not in statuses:
            raise not_found_or_not_authorized()
        return swarm

    def _move(self, swarm: Swarm, target: SwarmStatus, **fields: object) -> Swarm:
        """Conditionally write the new status; lose to any concurrent writer."""
        transition_swarm_status(swarm.status, target)
        if not self._store.transition_swarm(swarm.id, swarm.status, target, **fields):
            raise not_found_or_not_authorized()
        updates = {k: v for k, v in fields.items() if v is not None}
        return swarm.model_copy(update={"status": target, **updates})

    # -- Creation and membership -------------------------------------------

    def create_swarm(
        self,
        creator_id: str,
        name: str,
        *,
        description: str = "",
        required_skills: list[str] | None = None,
        max_members: int = DEFAULT_MAX_MEMBERS,
        payment_total: int = 0,
        deadline: int | None = None,
    ) -> Swarm:
        if not name or not name.strip():
            raise ValidationError("Swarm name required")
        if max_members < 1:
            raise ValidationError("max_members must be at least 1")
        if payment_total < 0:
            raise ValidationError("payment_total must not be negative")
        if self._store.get_agent(creator_id) is None:
            raise NotFound("Agent not found")

        now = self._clock()
        swarm = Swarm(
            id=str(uuid.uuid4()),
            name=name.strip(),
            description=description or "",
            creator_id=creator_id,
            status=SwarmStatus.RECRUITING,
            required_skills=list(required_skills or []),
            max_members=max_members,
            payment_total=payment_total,
            deadline=deadline,
            created_at=now,
        )
        with self._store.transaction():
            self._store.insert_swarm(swarm)
            self._store.insert_membership(
                Membership(
                    swarm_id=swarm.id,
                    agent_id=creator_id,
                    role=MemberRole.CREATOR,
                    share_percent=0,
                    status=MembershipStatus.ACCEPTED,
                    joined_at=now,
                )
            )
        return swarm

    def apply(self, swarm_id: str, agent_id: str) -> Membership:
        with self._store.transaction():
            if self._store.get_agent(agent_id) is None:
                raise NotFound("Agent not found")
            swarm = self._store.get_swarm(swarm_id)
            if swarm is None or swarm.status != SwarmStatus.RECRUITING:
                raise not_found_or_not_authorized()
            if self._store.get_membership(swarm_id, agent_id) is not None:
                raise Conflict("Already a member or applied")
            membership = Membership(
                swarm_id=swarm_id,
                agent_id=agent_id,
                role=MemberRole.MEMBER,
                share_percent=0,
                status=MembershipStatus.PENDING,
                joined_at=self._clock(),
            )
            return self._store.insert_membership(membership)

    def invite(
        self, swarm_id: str, caller_id: str, invitee_name: str, share_percent: int = 0
    ) -> Membership:
        share = validate_share(share_percent)
        with self._store.transaction():
            swarm = self._require_owned_swarm(swarm_id, caller_id)
            invitee = self._store.get_agent_by_name(invitee_name) if invitee_name else None
            if invitee is None:
                raise NotFound("Agent not found")
            if invitee.id == swarm.creator_id:
                raise ValidationError("Cannot invite the swarm creator")
            return self.reset_membership(swarm_id, invitee.id, share)

    def reset_membership(self, swarm_id: str, agent_id: str, share_percent: int) -> Membership:
        """Replace any existing row for the pair with a fresh pending invitation.

        Re-inviting resets standing: an accepted member goes back to pending
        with the new share.
        """
        membership = Membership(
            swarm_id=swarm_id,
            agent_id=agent_id,
            role=MemberRole.MEMBER,
            share_percent=share_percent,
            status=MembershipStatus.PENDING,
            joined_at=self._clock(),
        )
        return self._store.upsert_membership(membership)

    def accept(self, swarm_id: str, caller_id: str, agent_name: str | None = None) -> Membership:
        """Creator accepts ``agent_name``, or the caller accepts their own invite."""
        if agent_name:
            return self.accept_applicant(swarm_id, caller_id, agent_name)
        return self.accept_invite(swarm_id, caller_id)

    def accept_applicant(self, swarm_id: str, caller_id: str, agent_name: str) -> Membership:
        with self._store.transaction():
            self._require_owned_swarm(swarm_id, caller_id)
            applicant = self._store.get_agent_by_name(agent_name)
            if applicant is None:
                raise NotFound("Agent not found")
            membership = self._store.get_membership(swarm_id, applicant.id)
            if membership is None:
                raise NotFound("No application or invite found for this agent")
            return self._accept(membership)

    def accept_invite(self, swarm_id: str, agent_id: str) -> Membership:
        with self._store.transaction():
            membership = self._store.get_membership(swarm_id, agent_id)
            if membership is None or membership.status != MembershipStatus.PENDING:
                raise NotFound("No pending invite found")
            return self._accept(membership)

    def _accept(self, membership: Membership) -> Membership:
        if membership.status == MembershipStatus.ACCEPTED:
            return membership
        try:
            transition_membership_status(membership.status, MembershipStatus.ACCEPTED)
        except ValueError:
            raise Conflict(f"Membership is already {membership.status}") from None

        allocated = self._store.accepted_share_total(
            membership.swarm_id, excluding=membership.agent_id
        )
        if allocated + membership.share_percent > MAX_SHARE_PERCENT:
            raise Conflict(
                f"Accepting would allocate {allocated + membership.share_percent}% "
                f"of the payment (limit {MAX_SHARE_PERCENT}%)"
            )
        self._store.set_membership_status(
            membership.swarm_id, membership.agent_id, MembershipStatus.ACCEPTED
        )
        return membership.model_copy(update={"status": MembershipStatus.ACCEPTED})

    # -- Swarm status --------------------------------------------------------

    def start(self, swarm_id: str, caller_id: str) -> Swarm:
        with self._store.transaction():
            swarm = self._require_owned_swarm(swarm_id, caller_id, SwarmStatus.RECRUITING)
            return self._move(swarm, SwarmStatus.ACTIVE)

    def complete(self, swarm_id: str, caller_id: str, deliverable: str = "") -> CompletionResult:
        """Mark the swarm completed and reward every accepted member.

        Pending members are left as they are. The status flip and the whole
        fan-out commit together or not at all.
        """
        with self._store.transaction():
            swarm = self._require_owned_swarm(swarm_id, caller_id, SwarmStatus.ACTIVE)
            completed = self._move(
                swarm,
                SwarmStatus.COMPLETED,
                deliverable=deliverable or "",
                completed_at=self._clock(),
            )
            rewarded: list[str] = []
            for membership in self._store.list_memberships(swarm_id, MembershipStatus.ACCEPTED):
                target = transition_membership_status(
                    membership.status, MembershipStatus.COMPLETED
                )
                self._reputation.on_swarm_completion(membership.agent_id)
                self._store.set_membership_status(swarm_id, membership.agent_id, target)
                rewarded.append(membership.agent_id)
        return CompletionResult(swarm=completed, rewarded_agent_ids=rewarded)

    def fail(self, swarm_id: str, caller_id: str) -> FailureResult:
        """Abandon a recruiting or active swarm.

        Accepted members are charged a failed swarm; pending members are
        closed out without counter changes.
        """
        with self._store.transaction():
            swarm = self._require_owned_swarm(
                swarm_id, caller_id, SwarmStatus.RECRUITING, SwarmStatus.ACTIVE
            )
            failed = self._move(swarm, SwarmStatus.FAILED, completed_at=self._clock())
            charged: list[str] = []
            for membership in self._store.list_memberships(swarm_id):
                if membership.status not in (MembershipStatus.PENDING, MembershipStatus.ACCEPTED):
                    continue
                target = transition_membership_status(membership.status, MembershipStatus.FAILED)
                if membership.status == MembershipStatus.ACCEPTED:
                    self._reputation.on_swarm_failure(membership.agent_id)
                    charged.append(membership.agent_id)
                self._store.set_membership_status(swarm_id, membership.agent_id, target)
        return FailureResult(swarm=failed, failed_agent_ids=charged)

    # -- Queries -------------------------------------------------------------

    def list_swarms(
        self,
        *,
        status: SwarmStatus = SwarmStatus.RECRUITING,
        skill: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[SwarmSummary]:
        return self._store.list_swarms(status=status, skill=skill, limit=limit)

    def get_detail(self, swarm_id: str) -> SwarmDetail:
        swarm = self._store.get_swarm(swarm_id)
        if swarm is None:
            raise NotFound("Swarm not found")
        members = self._store.list_members(swarm_id)
        creator_name = next(
            (m.name for m in members if m.agent_id == swarm.creator_id), ""
        )
        allocated = sum(
            m.share_percent for m in members if m.status == MembershipStatus.ACCEPTED
        )
        return SwarmDetail(
            swarm=swarm,
            creator_name=creator_name,
            members=members,
            allocated_share=allocated,
        )
