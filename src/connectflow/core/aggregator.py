"""Candidate deduplication, hygiene filtering and ranking."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import structlog

from ..client import ApiClient
from ..errors import TransportError, UpstreamError
from ..schemas import Candidate, parse_candidates
from ..schemas.config import DEFAULT_BLOCKED_MARKERS, AggregatorConfig


@dataclass(slots=True)
class RankedCandidate:
    """Candidate paired with its presented match percentage."""

    candidate: Candidate
    match_percentage: int

    @property
    def price_label(self) -> str | None:
        price = self.candidate.price_per_hour
        if price is None:
            return None
        return f"₹{price:,.0f}/hr"


@dataclass(slots=True)
class AggregatedResults:
    """Ranked, presentable candidates; empty is a valid outcome."""

    ranked: list[RankedCandidate]
    source: str = "interview"
    warning: str | None = None

    @property
    def candidates(self) -> list[Candidate]:
        return [entry.candidate for entry in self.ranked]

    @property
    def primary(self) -> RankedCandidate | None:
        return self.ranked[0] if self.ranked else None

    @property
    def secondary(self) -> list[RankedCandidate]:
        return self.ranked[1:]

    @property
    def is_empty(self) -> bool:
        return not self.ranked


def match_percentage(score: float) -> int:
    """Map a fraction or percentage score onto 0-100.

    Scores above 1 are taken to be percentages already.
    """

    if math.isnan(score):
        return 0
    fraction = score / 100 if score > 1 else score
    fraction = min(max(fraction, 0.0), 1.0)
    return int(math.floor(fraction * 100 + 0.5))


def candidates_from_directory(payload: Any) -> list[Candidate]:
    """Resolve the directory response into one candidate list.

    The service answers with a bare list, or with an object carrying
    ``items`` and/or ``suggestions``; both keys are unioned, items first.
    """

    if isinstance(payload, list):
        return parse_candidates(payload, source="directory")
    if isinstance(payload, dict):
        raw: list[Any] = []
        for key in ("items", "suggestions"):
            value = payload.get(key)
            if isinstance(value, list):
                raw.extend(value)
        return parse_candidates(raw, source="directory")
    structlog.get_logger(__name__).warning(
        "directory.unexpected_shape", type=type(payload).__name__
    )
    return []


def _sort_key(candidate: Candidate) -> float:
    score = candidate.match_score
    return float("inf") if math.isnan(score) else -score


def normalize_candidates(
    candidates: Iterable[Candidate],
    *,
    blocked_markers: Sequence[str] = DEFAULT_BLOCKED_MARKERS,
) -> list[Candidate]:
    """Deduplicate by id, drop seeded test entries and sort by score.

    Deterministic and idempotent: feeding the output back in returns it
    unchanged.
    """

    markers = [marker.lower() for marker in blocked_markers if marker]
    seen: set[str] = set()
    kept: list[Candidate] = []
    for candidate in candidates:
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        if _is_blocked(candidate, markers):
            continue
        kept.append(candidate)
    # sorted() is stable, ties keep their input order
    return sorted(kept, key=_sort_key)


def _is_blocked(candidate: Candidate, markers: Sequence[str]) -> bool:
    haystacks = (candidate.display_name.lower(), (candidate.bio or "").lower())
    return any(marker in text for marker in markers for text in haystacks)


class ResultAggregator:
    """Turn raw candidate lists into ranked results for presentation."""

    def __init__(
        self,
        client: ApiClient | None = None,
        *,
        config: AggregatorConfig | None = None,
    ) -> None:
        self._client = client
        self._config = config or AggregatorConfig()
        self._logger = structlog.get_logger(__name__)

    def normalize(self, candidates: Iterable[Candidate]) -> list[Candidate]:
        return normalize_candidates(candidates, blocked_markers=self._config.blocked_markers)

    def rank(
        self,
        candidates: Iterable[Candidate],
        *,
        source: str = "interview",
        warning: str | None = None,
    ) -> AggregatedResults:
        ranked = [
            RankedCandidate(candidate=candidate, match_percentage=match_percentage(candidate.match_score))
            for candidate in self.normalize(candidates)
        ]
        return AggregatedResults(ranked=ranked, source=source, warning=warning)

    async def fetch_directory(self) -> list[Candidate]:
        if self._client is None:
            raise TransportError("No directory client configured")
        payload = await self._client.fetch_directory()
        return candidates_from_directory(payload)

    async def aggregate(self, candidates: Sequence[Candidate]) -> AggregatedResults:
        """Rank interview candidates, or the directory list when there are none."""

        if candidates:
            results = self.rank(candidates, source="interview")
        else:
            try:
                fetched = await self.fetch_directory()
            except (TransportError, UpstreamError) as exc:
                self._logger.warning("results.directory_failed", error=str(exc))
                return AggregatedResults(ranked=[], source="directory", warning=str(exc))
            results = self.rank(fetched, source="directory")

        self._logger.info(
            "results.ranked",
            source=results.source,
            count=len(results.ranked),
            primary_id=results.primary.candidate.id if results.primary else None,
        )
        return results


__all__ = [
    "AggregatedResults",
    "DEFAULT_BLOCKED_MARKERS",
    "RankedCandidate",
    "ResultAggregator",
    "candidates_from_directory",
    "match_percentage",
    "normalize_candidates",
]
