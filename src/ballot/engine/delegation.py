"""Delegation resolver: walks delegation chains and applies weight.

A delegation chain is the sequence of delegate_target links starting at
the voter a caller delegates to, ending at the first voter who has not
delegated (the terminus). The terminus either already voted directly, in
which case the caller's weight lands on that proposal immediately, or has
not, in which case the weight accumulates on the terminus until it votes or
delegates in turn.

Cycle rejection: any identity appearing twice in the walk, including the
delegating caller itself, fails the delegation. The visited set bounds the
walk by the number of distinct voters in the registry.

The caller's delegate_target records the immediate target, never the
terminus. Chains are re-walked on each delegation, not compressed.
"""

from __future__ import annotations

import structlog

from ballot.errors import (
    AlreadyVoted,
    DelegationCycleDetected,
    NoVotingRights,
    SelfDelegationDisallowed,
)
from ballot.models.election import ElectionState

logger = structlog.get_logger(__name__)


class DelegationResolver:
    """Resolves and applies delegations against an ElectionState."""

    @staticmethod
    def chain(state: ElectionState, start: str) -> list[str]:
        """Return the identities walked from start to the terminus, inclusive.

        Read-only. Stops early (without raising) if an identity repeats, so
        it is safe to call on any state, including a corrupted one.
        """
        walked: list[str] = [start]
        seen = {start}
        current = state.voter(start).delegate_target
        while current is not None and current not in seen:
            walked.append(current)
            seen.add(current)
            current = state.voter(current).delegate_target
        return walked

    @staticmethod
    def resolve(state: ElectionState, start: str, origin: str) -> str:
        """Return the terminus of the chain starting at start.

        Raises:
            DelegationCycleDetected: If the walk reaches origin or revisits
                any identity.
        """
        visited = {origin}
        current = start
        while True:
            if current in visited:
                raise DelegationCycleDetected(
                    f"Delegation from {origin} to {start} would form a cycle at {current}",
                    caller=origin,
                    to=start,
                    revisited=current,
                )
            visited.add(current)
            target = state.voter(current).delegate_target
            if target is None:
                return current
            current = target

    def delegate(self, state: ElectionState, caller: str, to: str) -> str:
        """Delegate caller's vote to `to`. Returns the resolved terminus.

        All checks run before any mutation; a rejected delegation leaves
        state unchanged.

        Raises:
            AlreadyVoted: caller has already voted or delegated.
            NoVotingRights: caller has zero weight.
            SelfDelegationDisallowed: to == caller.
            DelegationCycleDetected: the chain from `to` leads back.
        """
        sender = state.voter(caller)
        if sender.has_voted:
            raise AlreadyVoted(f"Voter {caller} has already voted", voter=caller)
        if not sender.has_right_to_vote:
            raise NoVotingRights(f"Voter {caller} has no right to vote", voter=caller)
        if to == caller:
            raise SelfDelegationDisallowed(
                f"Voter {caller} cannot delegate to themself", voter=caller,
            )

        terminus_id = self.resolve(state, to, caller)
        terminus = state.voter_for_update(terminus_id)

        sender = state.voter_for_update(caller)
        sender.has_voted = True
        sender.delegate_target = to

        if terminus.has_voted:
            # A terminus never has a delegate_target, so it voted directly.
            proposal = state.proposals[terminus.voted_proposal]
            proposal.vote_count += sender.weight
            logger.info(
                "delegation_counted",
                caller=caller, to=to, terminus=terminus_id,
                proposal=terminus.voted_proposal, weight=sender.weight,
            )
        else:
            terminus.weight += sender.weight
            logger.info(
                "delegation_deferred",
                caller=caller, to=to, terminus=terminus_id,
                weight=sender.weight, terminus_weight=terminus.weight,
            )
        return terminus_id
