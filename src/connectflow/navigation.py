"""Handoff contract between the flows and the routing host."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .schemas import Answer, Candidate

if TYPE_CHECKING:
    from .core.aggregator import AggregatedResults


class ApprovalSignal(str, Enum):
    APPROVED = "approved"
    DENIED = "denied"


@dataclass(slots=True)
class ResultsHandoff:
    """Payload delivered when the interview flow completes."""

    recommended_professionals: list[Candidate]
    answers: list[Answer]
    results: "AggregatedResults"
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.results.source,
            "recommended_professionals": [
                candidate.model_dump(mode="json") for candidate in self.recommended_professionals
            ],
            "answers": [answer.to_payload() for answer in self.answers],
            "warnings": list(self.warnings),
        }


@runtime_checkable
class NavigationHost(Protocol):
    """Routing host receiving terminal outcomes."""

    def show_results(self, handoff: ResultsHandoff) -> None:
        """Navigate forward to the results presentation."""

    def approval_decided(self, signal: ApprovalSignal) -> None:
        """Navigate to the granted or not-granted destination."""

    def abort(self, message: str | None = None) -> None:
        """Return to the previous screen, optionally showing ``message``."""


__all__ = ["ApprovalSignal", "NavigationHost", "ResultsHandoff"]
