"""Pydantic schema definitions for service payloads and settings."""

from __future__ import annotations

from .candidate import Candidate, parse_candidates
from .config import AppConfig, load_config
from .question import OPTION_KEYS, Answer, OptionKey, Question

__all__ = [
    "Answer",
    "AppConfig",
    "Candidate",
    "OPTION_KEYS",
    "OptionKey",
    "Question",
    "load_config",
    "parse_candidates",
]
