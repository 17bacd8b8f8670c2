"""Election engine: authorization, enrollment, direct voting.

Each mutating operation is a single atomic step: every check runs before
the first mutation, so a rejected call leaves the state exactly as it was.
The caller identity is an explicit argument supplied by an authenticated
host layer; the engine never asserts identity on its own.

Operations:
- create: new election, chairperson auto-enrolled at weight 1.
- enroll: chairperson grants weight 1 to a batch of identities (all-or-nothing).
- delegate: see ballot.engine.delegation.
- cast_vote: a voter adds their full weight to one proposal.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

import structlog

from ballot.config import ElectionConfig
from ballot.engine.delegation import DelegationResolver
from ballot.engine import tally
from ballot.errors import (
    AlreadyEnrolled,
    AlreadyVoted,
    InvalidProposal,
    NoVotingRights,
    NotAuthorized,
)
from ballot.models.election import ElectionState, Proposal, Voter

logger = structlog.get_logger(__name__)

_DEFAULT_CONFIG = ElectionConfig()


def create(
    proposal_names: Sequence[str],
    creator: str,
    config: Optional[ElectionConfig] = None,
) -> ElectionState:
    """Create an election with creator as chairperson.

    Raises:
        ValueError: If there are no proposals, too many, or a name is empty
            or longer than the configured label size.
    """
    config = config or _DEFAULT_CONFIG
    if not creator or not creator.strip():
        raise ValueError("Chairperson identity cannot be empty")
    names = list(proposal_names)
    if not names:
        raise ValueError("An election needs at least one proposal")
    if len(names) > config.max_proposals:
        raise ValueError(
            f"Too many proposals: {len(names)} > {config.max_proposals}"
        )
    for name in names:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Proposal name must be a non-empty string, got {name!r}")
        size = len(name.encode("utf-8"))
        if size > config.proposal_name_max_bytes:
            raise ValueError(
                f"Proposal name {name!r} is {size} bytes, "
                f"limit is {config.proposal_name_max_bytes}"
            )

    state = ElectionState(
        chairperson=creator,
        proposals=[Proposal(name=name) for name in names],
        voters={creator: Voter(weight=1)},
        voter_count=1,
    )
    logger.info("election_created", chairperson=creator, proposals=names)
    return state


def enroll(
    state: ElectionState,
    caller: str,
    targets: Iterable[str],
    config: Optional[ElectionConfig] = None,
) -> ElectionState:
    """Give each target the right to vote. Only the chairperson may call.

    The batch is validated in full before any entry is applied. A duplicate
    identity within the batch is rejected as already enrolled.

    Raises:
        NotAuthorized: caller is not the chairperson.
        AlreadyVoted: a target has already voted.
        AlreadyEnrolled: a target already has weight, or repeats in the batch.
        ValueError: the batch exceeds max_enroll_batch.
    """
    config = config or _DEFAULT_CONFIG
    if caller != state.chairperson:
        raise NotAuthorized(
            f"{caller} is not the chairperson", caller=caller,
        )
    batch = list(targets)
    if len(batch) > config.max_enroll_batch:
        raise ValueError(
            f"Enrollment batch too large: {len(batch)} > {config.max_enroll_batch}"
        )

    pending: set[str] = set()
    for position, target in enumerate(batch):
        voter = state.voter(target)
        if voter.has_voted:
            raise AlreadyVoted(
                f"Voter {target} has already voted", voter=target, position=position,
            )
        if voter.weight != 0 or target in pending:
            raise AlreadyEnrolled(
                f"Voter {target} is already enrolled", voter=target, position=position,
            )
        pending.add(target)

    for target in batch:
        state.voter_for_update(target).weight = 1
    state.voter_count += len(batch)
    logger.info("voters_enrolled", caller=caller, count=len(batch))
    return state


def delegate(state: ElectionState, caller: str, to: str) -> ElectionState:
    """Delegate caller's vote to `to`. See DelegationResolver.delegate."""
    DelegationResolver().delegate(state, caller, to)
    return state


def cast_vote(state: ElectionState, caller: str, proposal_index: int) -> ElectionState:
    """Vote for proposals[proposal_index] with the caller's full weight.

    Raises:
        NoVotingRights: caller has zero weight.
        AlreadyVoted: caller has already voted or delegated.
        InvalidProposal: proposal_index is not a valid index.
    """
    voter = state.voter(caller)
    if not voter.has_right_to_vote:
        raise NoVotingRights(f"Voter {caller} has no right to vote", voter=caller)
    if voter.has_voted:
        raise AlreadyVoted(f"Voter {caller} has already voted", voter=caller)
    if (
        isinstance(proposal_index, bool)
        or not isinstance(proposal_index, int)
        or not 0 <= proposal_index < state.proposal_count
    ):
        raise InvalidProposal(
            f"Proposal {proposal_index!r} does not exist "
            f"({state.proposal_count} proposals)",
            voter=caller,
            proposal=proposal_index,
        )

    voter = state.voter_for_update(caller)
    voter.has_voted = True
    voter.voted_proposal = proposal_index
    state.proposals[proposal_index].vote_count += voter.weight
    logger.info(
        "vote_cast", voter=caller, proposal=proposal_index, weight=voter.weight,
    )
    return state


class ElectionEngine:
    """Owns one ElectionState and exposes the ballot operations on it.

    Usage:
        engine = ElectionEngine.create(["yes", "no"], "chair")
        engine.enroll("chair", ["alice", "bob"])
        engine.delegate("alice", "bob")
        engine.cast_vote("bob", 0)
        engine.winner_name()  # "yes"

    Thread-safety: this class is not thread-safe. The caller must
    serialise access.
    """

    def __init__(
        self,
        state: ElectionState,
        config: Optional[ElectionConfig] = None,
    ) -> None:
        self._state = state
        self._config = config or _DEFAULT_CONFIG
        self._resolver = DelegationResolver()

    @classmethod
    def create(
        cls,
        proposal_names: Sequence[str],
        creator: str,
        config: Optional[ElectionConfig] = None,
    ) -> ElectionEngine:
        return cls(create(proposal_names, creator, config), config)

    @classmethod
    def from_records(
        cls,
        data: dict,
        config: Optional[ElectionConfig] = None,
    ) -> ElectionEngine:
        """Restore an engine from ElectionState.to_records() output."""
        return cls(ElectionState.from_records(data), config)

    def to_records(self) -> dict:
        return self._state.to_records()

    @property
    def state(self) -> ElectionState:
        return self._state

    @property
    def chairperson(self) -> str:
        return self._state.chairperson

    def voter(self, identity: str) -> Voter:
        return self._state.voter(identity)

    def enroll(self, caller: str, targets: Iterable[str]) -> None:
        enroll(self._state, caller, targets, self._config)

    def delegate(self, caller: str, to: str) -> str:
        """Delegate and return the resolved terminus identity."""
        return self._resolver.delegate(self._state, caller, to)

    def cast_vote(self, caller: str, proposal_index: int) -> None:
        cast_vote(self._state, caller, proposal_index)

    def delegation_chain(self, start: str) -> list[str]:
        return self._resolver.chain(self._state, start)

    def winning_proposal(self) -> int:
        return tally.winning_proposal(self._state)

    def winner_name(self) -> str:
        return tally.winner_name(self._state)

    def results(self) -> list[tally.ProposalResult]:
        return tally.results(self._state)
