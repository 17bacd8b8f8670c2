"""Core data models for the ballot engine."""

from ballot.models.election import ElectionState, Proposal, Voter

__all__ = ["ElectionState", "Proposal", "Voter"]
