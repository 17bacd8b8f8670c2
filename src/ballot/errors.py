"""Rejection taxonomy for ballot operations.

Every rejection leaves the election state unchanged. Each exception carries
a stable ``code`` (for callers and audit output) and the ``invariant`` it
protects (for humans reading the failure).
"""

from __future__ import annotations

from typing import Any


class BallotError(Exception):
    """Base class for all rejected ballot operations."""

    code = "ballot_error"
    invariant = "operation rejected"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "invariant": self.invariant,
            "message": str(self),
            "context": dict(self.context),
        }


class NotAuthorized(BallotError):
    code = "not_authorized"
    invariant = "only the chairperson may enroll voters"


class AlreadyEnrolled(BallotError):
    code = "already_enrolled"
    invariant = "a voter is enrolled at most once"


class AlreadyVoted(BallotError):
    code = "already_voted"
    invariant = "a voter votes or delegates at most once"


class SelfDelegationDisallowed(BallotError):
    code = "self_delegation_disallowed"
    invariant = "a voter cannot delegate to themself"


class DelegationCycleDetected(BallotError):
    code = "delegation_cycle_detected"
    invariant = "delegation chains must be acyclic"


class NoVotingRights(BallotError):
    code = "no_voting_rights"
    invariant = "a voter with zero weight cannot vote or delegate"


class InvalidProposal(BallotError):
    code = "invalid_proposal"
    invariant = "votes must reference an existing proposal"
