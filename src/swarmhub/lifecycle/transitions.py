"""Transition tables for swarm and membership status."""

from __future__ import annotations

from swarmhub.models import MembershipStatus, SwarmStatus

SWARM_TRANSITIONS: dict[SwarmStatus, set[SwarmStatus]] = {
    SwarmStatus.RECRUITING: {SwarmStatus.ACTIVE, SwarmStatus.FAILED},
    SwarmStatus.ACTIVE: {SwarmStatus.COMPLETED, SwarmStatus.FAILED},
    SwarmStatus.COMPLETED: set(),
    SwarmStatus.FAILED: set(),
}

MEMBERSHIP_TRANSITIONS: dict[MembershipStatus, set[MembershipStatus]] = {
    MembershipStatus.PENDING: {MembershipStatus.ACCEPTED, MembershipStatus.FAILED},
    MembershipStatus.ACCEPTED: {MembershipStatus.COMPLETED, MembershipStatus.FAILED},
    MembershipStatus.COMPLETED: set(),
    MembershipStatus.FAILED: set(),
}


def transition_swarm_status(current: SwarmStatus, target: SwarmStatus) -> SwarmStatus:
    """Return target status if the transition is allowed, else raise ValueError."""
    valid = SWARM_TRANSITIONS[current]
    if target not in valid:
        msg = f"Invalid swarm transition: {current} -> {target}. Valid: {sorted(valid)}"
        raise ValueError(msg)
    return target


def transition_membership_status(
    current: MembershipStatus, target: MembershipStatus
) -> MembershipStatus:
    """Return target status if the transition is allowed, else raise ValueError."""
    valid = MEMBERSHIP_TRANSITIONS[current]
    if target not in valid:
        msg = f"Invalid membership transition: {current} -> {target}. Valid: {sorted(valid)}"
        raise ValueError(msg)
    return target


def is_terminal(status: SwarmStatus | MembershipStatus) -> bool:
    if isinstance(status, SwarmStatus):
        return not SWARM_TRANSITIONS[status]
    return not MEMBERSHIP_TRANSITIONS[status]
