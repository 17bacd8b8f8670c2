"""Ballot service: unified facade for the election engine.

This is the primary interface for programmatic access. It orchestrates:
- Election lifecycle (create once, then enroll / delegate / vote)
- Tally reads (winning proposal, winner name, per-proposal results)
- Audit trail (one event per accepted mutation)
- Persistence (state store)

All mutators return a ServiceResult. Rejections carry the violated rule's
stable error code. Audit events are never silently dropped: if the event
log append fails, the in-memory election is restored to its prior state and
the operation fails closed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

import structlog

from ballot.config import ElectionConfig
from ballot.engine.election import ElectionEngine
from ballot.engine.invariants import check_state
from ballot.errors import BallotError
from ballot.models.election import Voter
from ballot.persistence.event_log import EventKind, EventLog, EventRecord
from ballot.persistence.state_store import StateStore

logger = structlog.get_logger(__name__)

NO_ELECTION = "no_election"
INVALID_INPUT = "invalid_input"
AUDIT_FAILURE = "audit_failure"


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    error_code: Optional[str] = None


class BallotService:
    """Election facade with audit logging and optional persistence.

    Usage:
        service = BallotService(ElectionConfig())
        service.create_election(["yes", "no"], chairperson="chair")
        service.enroll("chair", ["alice", "bob"])
        service.delegate("alice", "bob")
        service.cast_vote("bob", 0)
        service.winner_name().data["winner_name"]  # "yes"

    Persistence (optional):
        service = BallotService(config, event_log=log, state_store=store)
        # State is persisted on each mutation and loaded on construction.
    """

    def __init__(
        self,
        config: Optional[ElectionConfig] = None,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
    ) -> None:
        self._config = config or ElectionConfig()
        self._event_log = event_log
        self._state_store = state_store
        self._engine: Optional[ElectionEngine] = None
        self._event_counter = event_log.count if event_log is not None else 0

        if state_store is not None:
            state, stored_counter = state_store.load()
            if state is not None:
                self._engine = ElectionEngine(state, self._config)
            self._event_counter = max(self._event_counter, stored_counter)

        # Set when a state store write fails after the audit event was
        # committed. In-memory state matches the audit trail; the store is stale.
        self._persistence_degraded: bool = False

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_election(
        self,
        proposal_names: Sequence[str],
        chairperson: str,
    ) -> ServiceResult:
        """Create the single election this service manages."""
        if self._engine is not None:
            return ServiceResult(
                success=False,
                errors=["An election already exists"],
                error_code="election_exists",
            )
        try:
            engine = ElectionEngine.create(proposal_names, chairperson, self._config)
        except ValueError as e:
            return self._reject(INVALID_INPUT, str(e), operation="create")

        self._engine = engine
        err = self._record_event(
            EventKind.ELECTION_CREATED,
            chairperson,
            {"chairperson": chairperson, "proposals": list(proposal_names)},
        )
        if err:
            self._engine = None
            return self._reject(AUDIT_FAILURE, err, operation="create")
        return self._committed({
            "chairperson": chairperson,
            "proposals": [p.name for p in engine.state.proposals],
        })

    def enroll(self, caller: str, targets: Sequence[str]) -> ServiceResult:
        """Give a batch of identities the right to vote (chairperson only)."""
        batch = list(targets)
        return self._mutate(
            "enroll",
            lambda engine: engine.enroll(caller, batch),
            EventKind.VOTERS_ENROLLED,
            caller,
            lambda _: {"targets": batch},
        )

    def delegate(self, caller: str, to: str) -> ServiceResult:
        """Delegate caller's vote to another voter."""
        def payload(terminus: str) -> dict[str, Any]:
            return {
                "to": to,
                "terminus": terminus,
                "weight": self._engine.voter(caller).weight,
            }

        return self._mutate(
            "delegate",
            lambda engine: engine.delegate(caller, to),
            EventKind.VOTE_DELEGATED,
            caller,
            payload,
        )

    def cast_vote(self, caller: str, proposal_index: int) -> ServiceResult:
        """Vote directly for a proposal."""
        return self._mutate(
            "cast_vote",
            lambda engine: engine.cast_vote(caller, proposal_index),
            EventKind.VOTE_CAST,
            caller,
            lambda _: {
                "proposal": proposal_index,
                "weight": self._engine.voter(caller).weight,
            },
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def winning_proposal(self) -> ServiceResult:
        if self._engine is None:
            return self._no_election()
        return ServiceResult(
            success=True,
            data={"winning_proposal": self._engine.winning_proposal()},
        )

    def winner_name(self) -> ServiceResult:
        if self._engine is None:
            return self._no_election()
        return ServiceResult(
            success=True,
            data={
                "winning_proposal": self._engine.winning_proposal(),
                "winner_name": self._engine.winner_name(),
            },
        )

    def results(self) -> ServiceResult:
        if self._engine is None:
            return self._no_election()
        return ServiceResult(
            success=True,
            data={"results": [r._asdict() for r in self._engine.results()]},
        )

    def get_voter(self, identity: str) -> Optional[Voter]:
        """Look up a voter. Unknown identities read as the default entry."""
        if self._engine is None:
            return None
        return self._engine.voter(identity)

    def delegation_chain(self, identity: str) -> list[str]:
        if self._engine is None:
            return []
        return self._engine.delegation_chain(identity)

    def check_invariants(self) -> list[str]:
        if self._engine is None:
            return []
        return check_state(self._engine.state)

    @property
    def engine(self) -> Optional[ElectionEngine]:
        return self._engine

    def status(self) -> dict[str, Any]:
        """Return election-wide status summary."""
        status: dict[str, Any] = {
            "version": "0.1.0",
            "election": None,
            "events": self._event_log.count if self._event_log is not None else 0,
            "last_event": None,
            "persistence_degraded": self._persistence_degraded,
        }
        last = self._event_log.last_event if self._event_log is not None else None
        if last is not None:
            status["last_event"] = {"event_id": last.event_id, "kind": last.event_kind.value}
        if self._engine is None:
            return status
        state = self._engine.state
        voted = [v for v in state.voters.values() if v.has_voted]
        status["election"] = {
            "chairperson": state.chairperson,
            "proposals": state.proposal_count,
            "voters": {
                "enrolled": state.voter_count,
                "voted_directly": sum(1 for v in voted if v.directly_voted),
                "delegated": sum(1 for v in voted if v.delegated),
            },
            "winning_proposal": self._engine.winning_proposal(),
            "winner_name": self._engine.winner_name(),
        }
        return status

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _mutate(
        self,
        operation: str,
        apply: Callable[[ElectionEngine], Any],
        kind: EventKind,
        caller: str,
        payload: Callable[[Any], dict[str, Any]],
    ) -> ServiceResult:
        """Run one engine mutation with fail-closed audit recording."""
        if self._engine is None:
            return self._no_election()

        snapshot = self._engine.to_records()
        try:
            outcome = apply(self._engine)
        except BallotError as e:
            return self._reject(e.code, str(e), operation=operation, caller=caller)
        except ValueError as e:
            return self._reject(INVALID_INPUT, str(e), operation=operation, caller=caller)

        event_payload = payload(outcome)
        err = self._record_event(kind, caller, event_payload)
        if err:
            # Rollback: no mutation survives without its audit record
            self._engine = ElectionEngine.from_records(snapshot, self._config)
            return self._reject(AUDIT_FAILURE, err, operation=operation, caller=caller)
        return self._committed(event_payload)

    def _committed(self, data: dict[str, Any]) -> ServiceResult:
        warning = self._safe_persist_post_audit()
        result_data = dict(data)
        if warning:
            result_data["warning"] = warning
        return ServiceResult(success=True, data=result_data)

    def _reject(self, code: str, message: str, **context: Any) -> ServiceResult:
        logger.warning("operation_rejected", code=code, reason=message, **context)
        return ServiceResult(success=False, errors=[message], error_code=code)

    def _no_election(self) -> ServiceResult:
        return ServiceResult(
            success=False,
            errors=["No election exists: create one first"],
            error_code=NO_ELECTION,
        )

    def _next_event_id(self) -> str:
        """Generate a monotonically increasing unique event ID."""
        self._event_counter += 1
        return f"EVT-{self._event_counter:08d}"

    def _record_event(
        self,
        kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
    ) -> Optional[str]:
        """Append an audit event. Returns error string or None."""
        if self._event_log is None:
            return None
        try:
            event = EventRecord.create(
                event_id=self._next_event_id(),
                event_kind=kind,
                actor_id=actor_id,
                payload=payload,
            )
            self._event_log.append(event)
        except (ValueError, OSError) as e:
            return f"Event log failure: {e}"
        logger.debug("event_recorded", event_id=event.event_id, kind=kind.value)
        return None

    def _persist_state(self) -> None:
        """Persist current state (if a store is wired). Can raise OSError."""
        if self._state_store is None or self._engine is None:
            return
        self._state_store.save(self._engine.state, self._event_counter)

    def _safe_persist_post_audit(self) -> Optional[str]:
        """Persist after the audit event was committed.

        Never rolls back in-memory state. On failure sets the degraded flag
        and returns a warning string.
        """
        try:
            self._persist_state()
            return None
        except OSError as e:
            self._persistence_degraded = True
            logger.error("persistence_degraded", error=str(e))
            return f"Persistence degraded: {e}; state committed in audit trail but state store is stale"
