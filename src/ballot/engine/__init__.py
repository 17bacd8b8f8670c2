"""Ballot engine: enrollment, delegation, voting, and tally."""

from ballot.engine.delegation import DelegationResolver
from ballot.engine.election import (
    ElectionEngine,
    cast_vote,
    create,
    delegate,
    enroll,
)
from ballot.engine.invariants import check_state
from ballot.engine.tally import ProposalResult, results, winner_name, winning_proposal

__all__ = [
    "DelegationResolver",
    "ElectionEngine",
    "ProposalResult",
    "cast_vote",
    "check_state",
    "create",
    "delegate",
    "enroll",
    "results",
    "winner_name",
    "winning_proposal",
]
