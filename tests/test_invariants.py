"""Tests for whole-state invariant checks."""

import pytest

from ballot.engine import ElectionEngine, check_state
from ballot.models.election import Voter


@pytest.fixture
def engine() -> ElectionEngine:
    e = ElectionEngine.create(["alpha", "beta"], "chair")
    e.enroll("chair", ["a", "b", "c", "d"])
    return e


class TestConsistentStates:
    def test_fresh_election(self) -> None:
        assert check_state(ElectionEngine.create(["x"], "chair").state) == []

    def test_after_mixed_activity(self, engine) -> None:
        engine.delegate("a", "b")
        assert check_state(engine.state) == []
        engine.cast_vote("c", 1)
        engine.delegate("d", "c")
        assert check_state(engine.state) == []
        engine.delegate("b", "chair")
        engine.cast_vote("chair", 0)
        assert check_state(engine.state) == []
        assert [p.vote_count for p in engine.state.proposals] == [3, 2]

    def test_delegation_to_outsider(self, engine) -> None:
        engine.delegate("a", "outsider")
        assert check_state(engine.state) == []


class TestCorruptedStates:
    def test_inflated_count(self, engine) -> None:
        engine.cast_vote("a", 0)
        engine.state.proposals[0].vote_count += 5
        errors = check_state(engine.state)
        assert any("not conserved" in e for e in errors)

    def test_cycle_flagged(self, engine) -> None:
        engine.state.voters["x"] = Voter(weight=0, has_voted=True, delegate_target="y")
        engine.state.voters["y"] = Voter(weight=0, has_voted=True, delegate_target="x")
        errors = check_state(engine.state)
        assert any("cycle" in e for e in errors)

    def test_self_delegation_flagged(self, engine) -> None:
        engine.state.voters["x"] = Voter(weight=0, has_voted=True, delegate_target="x")
        errors = check_state(engine.state)
        assert any("themself" in e for e in errors)

    def test_missing_proposal_flagged(self, engine) -> None:
        engine.state.voters["a"].has_voted = True
        engine.state.voters["a"].voted_proposal = 7
        errors = check_state(engine.state)
        assert any("missing proposal" in e for e in errors)

    def test_chairperson_without_weight_flagged(self, engine) -> None:
        engine.state.voters["chair"].weight = 0
        errors = check_state(engine.state)
        assert any("chairperson" in e for e in errors)

    def test_negative_weight_flagged(self, engine) -> None:
        engine.state.voters["a"].weight = -1
        errors = check_state(engine.state)
        assert any("negative weight" in e for e in errors)
