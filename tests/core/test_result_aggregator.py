from __future__ import annotations

import httpx
import pytest

from connectflow.core import (
    ResultAggregator,
    candidates_from_directory,
    match_percentage,
    normalize_candidates,
)
from connectflow.schemas import Candidate
from connectflow.schemas.config import AggregatorConfig


def build_candidate(candidate_id: str, score: float = 0.5, **kwargs) -> Candidate:
    return Candidate(id=candidate_id, match_score=score, **kwargs)


def test_duplicates_keep_first_occurrence():
    first = build_candidate("p1", 0.4, display_name="First")
    duplicate = build_candidate("p1", 0.9, display_name="Second")
    other = build_candidate("p2", 0.6)

    normalized = normalize_candidates([first, other, duplicate])

    assert [c.id for c in normalized] == ["p2", "p1"]
    assert normalized[1] is first


def test_placeholder_entries_are_filtered():
    candidates = [
        build_candidate("p1", display_name="Test Automation Bot"),
        build_candidate("p2", display_name="Anita Rao", bio="Legacy import record"),
        build_candidate("p3", display_name="LOAD runner"),
        build_candidate("p4", display_name="Kiran Das", bio="Family therapist"),
    ]

    normalized = normalize_candidates(candidates)

    assert [c.id for c in normalized] == ["p4"]


def test_custom_markers_from_config():
    aggregator = ResultAggregator(config=AggregatorConfig(blocked_markers=["demo"]))
    candidates = [
        build_candidate("p1", display_name="Demo Account"),
        build_candidate("p2", display_name="Test Person"),
    ]

    assert [c.id for c in aggregator.normalize(candidates)] == ["p2"]


def test_sort_is_descending_and_stable():
    candidates = [
        build_candidate("a", 0.5),
        build_candidate("b", 0.9),
        build_candidate("c", 0.5),
        build_candidate("d", 0.7),
    ]

    normalized = normalize_candidates(candidates)

    assert [c.id for c in normalized] == ["b", "d", "a", "c"]


def test_normalization_is_idempotent():
    candidates = [
        build_candidate("p1", 0.82),
        build_candidate("p2", 97),
        build_candidate("p1", 0.1),
        build_candidate("p3", 0.82, display_name="Testing Account"),
        build_candidate("p4", 0.82),
        build_candidate("p5", 150),
    ]

    once = normalize_candidates(candidates)

    assert normalize_candidates(once) == once


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (0.0, 0),
        (0.82, 82),
        (1.0, 100),
        (97, 97),
        (150, 100),
        (-0.3, 0),
        (0.826, 83),
        (0.824, 82),
        (float("nan"), 0),
    ],
)
def test_match_percentage_is_clamped(score, expected):
    assert match_percentage(score) == expected


def test_percentage_treats_large_scores_as_percent():
    assert match_percentage(150) == 100
    assert match_percentage(100) == 100
    assert match_percentage(50) == 50
    assert match_percentage(2) == 2


def test_rank_exposes_primary_and_secondary():
    aggregator = ResultAggregator()
    results = aggregator.rank(
        [
            build_candidate("p1", 0.6, price_per_hour=1500),
            build_candidate("p2", 0.9),
            build_candidate("p3", 0.7),
        ]
    )

    assert results.primary is not None
    assert results.primary.candidate.id == "p2"
    assert results.primary.match_percentage == 90
    assert [entry.candidate.id for entry in results.secondary] == ["p3", "p1"]
    assert results.secondary[1].price_label == "₹1,500/hr"
    assert results.secondary[0].price_label is None
    assert not results.is_empty


def test_rank_of_only_filtered_entries_is_empty():
    results = ResultAggregator().rank([build_candidate("p1", display_name="Test Automation Bot")])

    assert results.is_empty
    assert results.primary is None
    assert results.secondary == []


def test_directory_payload_shapes_are_unioned():
    assert [c.id for c in candidates_from_directory([{"id": "a"}])] == ["a"]
    assert [
        c.id
        for c in candidates_from_directory(
            {"items": [{"id": "a"}], "suggestions": [{"id": "b"}]}
        )
    ] == ["a", "b"]
    assert [c.id for c in candidates_from_directory({"suggestions": [{"id": "b"}]})] == ["b"]
    assert candidates_from_directory({"unexpected": []}) == []
    assert candidates_from_directory("nope") == []


@pytest.mark.asyncio
async def test_directory_fallback_scenario(backend, make_client):
    backend.on(
        "GET",
        "/professionals/suggestions",
        lambda request: httpx.Response(
            200,
            json={
                "items": [{"id": "p1", "match_score": 0.82}],
                "suggestions": [
                    {"id": "p1", "match_score": 0.82},
                    {"id": "p2", "match_score": 97},
                ],
            },
        ),
    )
    aggregator = ResultAggregator(make_client())

    results = await aggregator.aggregate([])

    assert results.source == "directory"
    assert [(e.candidate.id, e.match_percentage) for e in results.ranked] == [
        ("p2", 97),
        ("p1", 82),
    ]


@pytest.mark.asyncio
async def test_interview_candidates_skip_directory(backend, make_client):
    aggregator = ResultAggregator(make_client())

    results = await aggregator.aggregate([build_candidate("p9", 0.3)])

    assert results.source == "interview"
    assert [c.id for c in results.candidates] == ["p9"]
    assert backend.requests == []


@pytest.mark.asyncio
async def test_directory_failure_yields_empty_results(backend, make_client):
    backend.on(
        "GET",
        "/professionals/suggestions",
        lambda request: httpx.Response(503, json={"message": "Directory unavailable"}),
    )
    aggregator = ResultAggregator(make_client())

    results = await aggregator.aggregate([])

    assert results.is_empty
    assert results.warning == "Directory unavailable"
