from __future__ import annotations

from typing import Any

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

_logger = structlog.get_logger(__name__)


class Candidate(BaseModel):
    """Recommended professional as returned by the backend."""

    id: str = Field(validation_alias=AliasChoices("id", "professional_id"))
    display_name: str = Field(
        default="",
        validation_alias=AliasChoices("display_name", "displayName", "name"),
    )
    avatar_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("avatar_url", "avatarUrl"),
    )
    price_per_hour: float | None = Field(
        default=None,
        validation_alias=AliasChoices("price_per_hour", "session_price_per_hour", "pricePerHour"),
    )
    match_score: float = Field(
        default=0.0,
        validation_alias=AliasChoices("match_score", "matchScore", "score"),
    )
    domain_tags: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("domain_tags", "domainTags"),
    )
    specialization_tags: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("specialization_tags", "specializationTags"),
    )
    bio: str | None = None
    specialty: str | None = None
    experience: str | None = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("id")
    @classmethod
    def _require_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("candidate id must not be empty")
        return value

    @field_validator("display_name", mode="before")
    @classmethod
    def _blank_name(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("match_score", mode="before")
    @classmethod
    def _missing_score(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("domain_tags", "specialization_tags", mode="before")
    @classmethod
    def _missing_tags(cls, value: Any) -> Any:
        return [] if value is None else value


def parse_candidates(raw: Any, *, source: str = "unknown") -> list[Candidate]:
    """Validate a raw list of candidate records, skipping unusable entries."""

    if raw is None:
        return []
    if not isinstance(raw, list):
        _logger.warning("candidates.unexpected_shape", source=source, type=type(raw).__name__)
        return []

    candidates: list[Candidate] = []
    errors: list[str] = []
    for idx, record in enumerate(raw):
        if not isinstance(record, dict):
            errors.append(f"entry {idx}: expected an object")
            continue
        try:
            candidates.append(Candidate.model_validate(record))
        except ValidationError as exc:
            errors.append(f"entry {idx}: {exc.error_count()} validation error(s)")
    if errors:
        _logger.warning("candidates.skipped", source=source, errors=errors)
    return candidates
