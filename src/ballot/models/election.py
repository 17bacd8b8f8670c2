"""Election data model.

A single election holds:
- A chairperson, fixed at creation, who alone may enroll voters.
- A voter registry keyed by opaque identity.
- An ordered, fixed-length list of proposals.

Invariants:
- A voter with weight 0 has no right to vote and cannot vote or delegate.
- has_voted is monotonic (False -> True only).
- A proposal's vote_count only increases, by exactly the weight applied.
- The proposal list never changes length or order after creation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Voter:
    """A single entry in the voter registry.

    voted_proposal is meaningful only for a direct vote; delegate_target
    only for a vote cast by delegation. At most one of the two is set.
    """
    weight: int = 0
    has_voted: bool = False
    voted_proposal: Optional[int] = None
    delegate_target: Optional[str] = None

    @property
    def delegated(self) -> bool:
        return self.delegate_target is not None

    @property
    def directly_voted(self) -> bool:
        return self.has_voted and not self.delegated

    @property
    def has_right_to_vote(self) -> bool:
        return self.weight > 0

    def to_record(self) -> dict[str, Any]:
        return {
            "weight": self.weight,
            "has_voted": self.has_voted,
            "voted_proposal": self.voted_proposal,
            "delegate_target": self.delegate_target,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Voter:
        return cls(
            weight=int(data.get("weight", 0)),
            has_voted=bool(data.get("has_voted", False)),
            voted_proposal=data.get("voted_proposal"),
            delegate_target=data.get("delegate_target"),
        )


@dataclass
class Proposal:
    """A ballot option. The name is an opaque short label."""
    name: str
    vote_count: int = 0


@dataclass
class ElectionState:
    """The complete state of one election.

    Identities never touched read as a default Voter (weight 0, not voted)
    through voter(); they are only inserted into the registry when mutated.

    Thread-safety: this class is not thread-safe. The caller must
    serialise access.
    """
    chairperson: str
    proposals: list[Proposal] = field(default_factory=list)
    voters: dict[str, Voter] = field(default_factory=dict)
    voter_count: int = 0

    def voter(self, identity: str) -> Voter:
        """Return the registry entry for identity, or a detached default."""
        entry = self.voters.get(identity)
        if entry is None:
            return Voter()
        return entry

    def voter_for_update(self, identity: str) -> Voter:
        """Return the registry entry for identity, inserting a default."""
        entry = self.voters.get(identity)
        if entry is None:
            entry = Voter()
            self.voters[identity] = entry
        return entry

    @property
    def proposal_count(self) -> int:
        return len(self.proposals)

    def to_records(self) -> dict[str, Any]:
        """Serialise for persistence. Voters are emitted in sorted order."""
        return {
            "chairperson": self.chairperson,
            "voter_count": self.voter_count,
            "proposals": [
                {"name": p.name, "vote_count": p.vote_count}
                for p in self.proposals
            ],
            "voters": {
                identity: self.voters[identity].to_record()
                for identity in sorted(self.voters)
            },
        }

    @classmethod
    def from_records(cls, data: dict[str, Any]) -> ElectionState:
        """Restore state from a to_records() document."""
        return cls(
            chairperson=data["chairperson"],
            voter_count=int(data.get("voter_count", 0)),
            proposals=[
                Proposal(name=p["name"], vote_count=int(p.get("vote_count", 0)))
                for p in data.get("proposals", [])
            ],
            voters={
                identity: Voter.from_record(record)
                for identity, record in data.get("voters", {}).items()
            },
        )
