"""Orchestration state machines for connection flows."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .aggregator import (
    AggregatedResults,
    RankedCandidate,
    ResultAggregator,
    candidates_from_directory,
    match_percentage,
    normalize_candidates,
)
from .approval import ApprovalOutcome, ApprovalPoller, ApprovalPollState
from .interview import (
    InterviewEngine,
    InterviewResult,
    InterviewSession,
    InterviewState,
)

__all__ = [
    "AggregatedResults",
    "ApprovalOutcome",
    "ApprovalPollState",
    "ApprovalPoller",
    "InterviewEngine",
    "InterviewResult",
    "InterviewSession",
    "InterviewState",
    "RankedCandidate",
    "ResultAggregator",
    "candidates_from_directory",
    "match_percentage",
    "normalize_candidates",
]
