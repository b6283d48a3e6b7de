"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ApiConfig(BaseModel):
    base_url: str = "http://dev.api.uyir.ai:8081"
    recommendations_path: str = "/connections/recommendations"
    directory_path: str = "/professionals/suggestions"
    approval_status_path: str = "/approval-status"
    timeout_seconds: float = Field(default=10.0, gt=0)

    model_config = ConfigDict(extra="forbid")


class InterviewConfig(BaseModel):
    question_count: int = Field(default=5, ge=1, le=10)
    recommendation_limit: int = Field(default=3, ge=1, le=10)

    model_config = ConfigDict(extra="forbid")


class ApprovalConfig(BaseModel):
    poll_interval_seconds: float = Field(default=5.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)

    model_config = ConfigDict(extra="forbid")


# seeded test and migration records carry one of these in name or bio
DEFAULT_BLOCKED_MARKERS: tuple[str, ...] = ("test", "automation", "legacy", "load")


class AggregatorConfig(BaseModel):
    blocked_markers: list[str] = Field(default_factory=lambda: list(DEFAULT_BLOCKED_MARKERS))

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    api: ApiConfig = Field(default_factory=ApiConfig)
    interview: InterviewConfig = Field(default_factory=InterviewConfig)
    approval: ApprovalConfig = Field(default_factory=ApprovalConfig)
    aggregator: AggregatorConfig = Field(default_factory=AggregatorConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
