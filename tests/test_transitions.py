"""Tests for swarm and membership transition tables."""

import pytest

from swarmhub.lifecycle.transitions import (
    MEMBERSHIP_TRANSITIONS,
    SWARM_TRANSITIONS,
    is_terminal,
    transition_membership_status,
    transition_swarm_status,
)
from swarmhub.models import MembershipStatus, SwarmStatus


class TestTables:
    def test_every_swarm_status_has_entry(self):
        assert set(SWARM_TRANSITIONS) == set(SwarmStatus)

    def test_every_membership_status_has_entry(self):
        assert set(MEMBERSHIP_TRANSITIONS) == set(MembershipStatus)


class TestSwarmTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (SwarmStatus.RECRUITING, SwarmStatus.ACTIVE),
            (SwarmStatus.RECRUITING, SwarmStatus.FAILED),
            (SwarmStatus.ACTIVE, SwarmStatus.COMPLETED),
            (SwarmStatus.ACTIVE, SwarmStatus.FAILED),
        ],
    )
    def test_allowed(self, current: SwarmStatus, target: SwarmStatus):
        assert transition_swarm_status(current, target) == target

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (SwarmStatus.RECRUITING, SwarmStatus.COMPLETED),
            (SwarmStatus.ACTIVE, SwarmStatus.RECRUITING),
            (SwarmStatus.COMPLETED, SwarmStatus.ACTIVE),
            (SwarmStatus.COMPLETED, SwarmStatus.FAILED),
            (SwarmStatus.FAILED, SwarmStatus.RECRUITING),
        ],
    )
    def test_forbidden(self, current: SwarmStatus, target: SwarmStatus):
        with pytest.raises(ValueError, match="Invalid swarm transition"):
            transition_swarm_status(current, target)

    def test_no_self_loops(self):
        for status in SwarmStatus:
            assert status not in SWARM_TRANSITIONS[status]


class TestMembershipTransitions:
    def test_pending_to_accepted(self):
        result = transition_membership_status(
            MembershipStatus.PENDING, MembershipStatus.ACCEPTED
        )
        assert result == MembershipStatus.ACCEPTED

    def test_pending_cannot_complete(self):
        with pytest.raises(ValueError, match="Invalid membership transition"):
            transition_membership_status(MembershipStatus.PENDING, MembershipStatus.COMPLETED)

    def test_completed_is_final(self):
        with pytest.raises(ValueError):
            transition_membership_status(MembershipStatus.COMPLETED, MembershipStatus.ACCEPTED)


class TestIsTerminal:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (SwarmStatus.RECRUITING, False),
            (SwarmStatus.ACTIVE, False),
            (SwarmStatus.COMPLETED, True),
            (SwarmStatus.FAILED, True),
            (MembershipStatus.PENDING, False),
            (MembershipStatus.ACCEPTED, False),
            (MembershipStatus.COMPLETED, True),
            (MembershipStatus.FAILED, True),
        ],
    )
    def test_terminal_states(self, status, expected: bool):
        assert is_terminal(status) is expected
