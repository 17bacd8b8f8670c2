"""Tally engine: winner computation over proposal vote counts.

The scan keeps the first proposal whose count is strictly greater than the
best seen so far, starting from a count of 0 at index 0. Ties therefore go
to the lowest index, and an election with no votes reports proposal 0.
"""

from __future__ import annotations

from typing import NamedTuple

from ballot.models.election import ElectionState


class ProposalResult(NamedTuple):
    index: int
    name: str
    vote_count: int


def winning_proposal(state: ElectionState) -> int:
    """Return the index of the proposal with the greatest vote count."""
    winning_vote_count = 0
    winning_index = 0
    for index, proposal in enumerate(state.proposals):
        if proposal.vote_count > winning_vote_count:
            winning_vote_count = proposal.vote_count
            winning_index = index
    return winning_index


def winner_name(state: ElectionState) -> str:
    return state.proposals[winning_proposal(state)].name


def results(state: ElectionState) -> list[ProposalResult]:
    """Per-proposal counts in ballot order."""
    return [
        ProposalResult(index=i, name=p.name, vote_count=p.vote_count)
        for i, p in enumerate(state.proposals)
    ]
