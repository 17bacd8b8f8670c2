"""Whole-state consistency checks for an election.

Every state produced by the engine satisfies these; a violation means the
state was corrupted outside the engine (hand-edited file, bad restore).

Weight conservation: each enrolled unit of weight is, at any moment, either
counted on exactly one proposal or held by exactly one voter who has not
voted yet. Hence

    sum(vote_count) + sum(weight of voters not yet voted) == voter_count
"""

from __future__ import annotations

from ballot.models.election import ElectionState


def check_state(state: ElectionState) -> list[str]:
    """Return invariant violations. Empty list means consistent."""
    errors: list[str] = []

    chair = state.voters.get(state.chairperson)
    if chair is None or chair.weight < 1:
        errors.append(f"chairperson {state.chairperson} must hold weight >= 1")

    if not state.proposals:
        errors.append("election has no proposals")
    for index, proposal in enumerate(state.proposals):
        if proposal.vote_count < 0:
            errors.append(f"proposal {index} has negative vote_count")

    pending_weight = 0
    for identity in sorted(state.voters):
        voter = state.voters[identity]
        if voter.weight < 0:
            errors.append(f"voter {identity} has negative weight")
        if not voter.has_voted:
            pending_weight += voter.weight
            if voter.delegate_target is not None or voter.voted_proposal is not None:
                errors.append(f"voter {identity} has a recorded vote but has_voted is false")
            continue
        if voter.delegate_target is not None:
            if voter.delegate_target == identity:
                errors.append(f"voter {identity} delegates to themself")
            if voter.voted_proposal is not None:
                errors.append(f"voter {identity} both delegated and voted directly")
        elif voter.voted_proposal is None or not (
            0 <= voter.voted_proposal < len(state.proposals)
        ):
            errors.append(
                f"voter {identity} voted for missing proposal {voter.voted_proposal}"
            )

    errors.extend(_check_acyclic(state))

    counted = sum(p.vote_count for p in state.proposals)
    if counted + pending_weight != state.voter_count:
        errors.append(
            f"weight not conserved: {counted} counted + {pending_weight} pending "
            f"!= {state.voter_count} enrolled"
        )
    return errors


def _check_acyclic(state: ElectionState) -> list[str]:
    errors: list[str] = []
    terminated: set[str] = set()
    for start in sorted(state.voters):
        path: list[str] = []
        on_path: set[str] = set()
        current = start
        while current is not None and current not in terminated:
            if current in on_path:
                errors.append(f"delegation cycle through {current}")
                break
            path.append(current)
            on_path.add(current)
            current = state.voter(current).delegate_target
        terminated.update(path)
    return errors
