"""Tests for the delegation resolver: proves chain resolution, deferred and
immediate weight application, and cycle rejection."""

import pytest

from ballot.engine import DelegationResolver, cast_vote, create, delegate, enroll
from ballot.errors import (
    AlreadyVoted,
    DelegationCycleDetected,
    NoVotingRights,
    SelfDelegationDisallowed,
)
from ballot.models.election import Voter


@pytest.fixture
def state():
    s = create(["alpha", "beta", "gamma", "delta"], "chair")
    enroll(s, "chair", ["a", "b", "c", "d", "e"])
    return s


class TestDeferredWeight:
    def test_delegate_to_unvoted_voter_moves_weight(self, state) -> None:
        delegate(state, "a", "b")
        assert state.voter("b").weight == 2
        assert state.voter("a").has_voted is True
        assert state.voter("a").delegate_target == "b"
        assert state.voter("a").delegated is True
        assert all(p.vote_count == 0 for p in state.proposals)

    def test_chain_lands_on_terminus(self, state) -> None:
        """A -> B -> C: C accumulates A's weight; C's vote carries it."""
        delegate(state, "b", "c")
        delegate(state, "a", "b")
        assert state.voter("c").weight == 3
        # Intermediate voter does not receive A's weight
        assert state.voter("b").weight == 1
        cast_vote(state, "c", 2)
        assert state.proposals[2].vote_count == 3

    def test_delegate_target_is_immediate_not_terminus(self, state) -> None:
        delegate(state, "b", "c")
        delegate(state, "a", "b")
        assert state.voter("a").delegate_target == "b"

    def test_accumulated_weight_forwards_on_delegation(self, state) -> None:
        delegate(state, "a", "b")
        delegate(state, "b", "c")
        assert state.voter("c").weight == 3
        cast_vote(state, "c", 0)
        assert state.proposals[0].vote_count == 3

    def test_delegate_to_unenrolled_identity(self, state) -> None:
        delegate(state, "a", "outsider")
        assert state.voter("outsider").weight == 1
        cast_vote(state, "outsider", 1)
        assert state.proposals[1].vote_count == 1


class TestImmediateWeight:
    def test_terminus_already_voted_counts_immediately(self, state) -> None:
        cast_vote(state, "c", 3)
        delegate(state, "a", "c")
        assert state.proposals[3].vote_count == 2
        assert state.voter("c").weight == 1

    def test_chain_through_delegator_to_voted_terminus(self, state) -> None:
        cast_vote(state, "c", 1)
        delegate(state, "b", "c")
        delegate(state, "a", "b")
        assert state.proposals[1].vote_count == 3
        assert [p.vote_count for p in state.proposals] == [0, 3, 0, 0]


class TestRejections:
    def test_self_delegation_rejected(self, state) -> None:
        before = state.to_records()
        with pytest.raises(SelfDelegationDisallowed):
            delegate(state, "a", "a")
        assert state.to_records() == before

    def test_delegate_twice_rejected(self, state) -> None:
        delegate(state, "a", "b")
        before = state.to_records()
        with pytest.raises(AlreadyVoted):
            delegate(state, "a", "c")
        assert state.to_records() == before

    def test_delegate_after_vote_rejected(self, state) -> None:
        cast_vote(state, "a", 0)
        with pytest.raises(AlreadyVoted):
            delegate(state, "a", "b")

    def test_zero_weight_cannot_delegate(self, state) -> None:
        before = state.to_records()
        with pytest.raises(NoVotingRights):
            delegate(state, "outsider", "a")
        assert state.to_records() == before

    def test_two_cycle_rejected(self, state) -> None:
        """A -> B, then B -> A fails and leaves both voters unchanged."""
        delegate(state, "a", "b")
        before_a = state.voter("a").to_record()
        before_b = state.voter("b").to_record()
        before = state.to_records()
        with pytest.raises(DelegationCycleDetected):
            delegate(state, "b", "a")
        assert state.voter("a").to_record() == before_a
        assert state.voter("b").to_record() == before_b
        assert state.to_records() == before

    def test_long_cycle_rejected(self, state) -> None:
        delegate(state, "a", "b")
        delegate(state, "b", "c")
        delegate(state, "c", "d")
        with pytest.raises(DelegationCycleDetected) as exc_info:
            delegate(state, "d", "a")
        assert exc_info.value.context["revisited"] == "d"
        assert state.voter("d").has_voted is False
        assert state.voter("d").weight == 4


class TestResolver:
    def test_resolve_returns_terminus(self, state) -> None:
        delegate(state, "a", "b")
        delegate(state, "b", "c")
        assert DelegationResolver.resolve(state, "a", "e") == "c"

    def test_resolve_guards_foreign_cycle(self, state) -> None:
        """A pre-existing cycle not involving the caller still terminates."""
        state.voters["x"] = Voter(weight=1, has_voted=True, delegate_target="y")
        state.voters["y"] = Voter(weight=1, has_voted=True, delegate_target="x")
        with pytest.raises(DelegationCycleDetected):
            DelegationResolver.resolve(state, "x", "e")
        before = state.to_records()
        with pytest.raises(DelegationCycleDetected):
            delegate(state, "e", "x")
        assert state.to_records() == before

    def test_chain_lists_walk(self, state) -> None:
        delegate(state, "a", "b")
        delegate(state, "b", "c")
        assert DelegationResolver.chain(state, "a") == ["a", "b", "c"]
        assert DelegationResolver.chain(state, "e") == ["e"]

    def test_chain_stops_on_corrupted_cycle(self, state) -> None:
        state.voters["x"] = Voter(weight=1, has_voted=True, delegate_target="y")
        state.voters["y"] = Voter(weight=1, has_voted=True, delegate_target="x")
        assert DelegationResolver.chain(state, "x") == ["x", "y"]

    def test_delegate_returns_terminus(self, state) -> None:
        delegate(state, "b", "c")
        assert DelegationResolver().delegate(state, "a", "b") == "c"
