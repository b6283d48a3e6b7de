"""Guided interview state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from ..client import ApiClient
from ..errors import ConfigurationError, SubmissionError, TransportError, UpstreamError
from ..schemas import Answer, Candidate, Question, parse_candidates


class InterviewState(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    ABORTED = "aborted"


class InterviewRequest(BaseModel):
    prompt: str = Field(min_length=1)
    question_count: int = Field(ge=1, le=10)
    recommendation_limit: int = Field(ge=1, le=10)


@dataclass(slots=True)
class InterviewSession:
    """Per-interview state, discarded when the flow exits."""

    request: InterviewRequest
    questions: list[Question]
    fallback_candidates: list[Candidate] = field(default_factory=list)
    current_step: int = 1
    answers: dict[int, Answer] = field(default_factory=dict)

    @property
    def prompt(self) -> str:
        return self.request.prompt

    @property
    def total_steps(self) -> int:
        return len(self.questions)

    def ordered_answers(self) -> list[Answer]:
        return [self.answers[idx] for idx in sorted(self.answers)]


@dataclass(slots=True)
class InterviewResult:
    """Final candidate set plus the answers that produced it."""

    candidates: list[Candidate]
    answers: list[Answer]
    used_fallback: bool = False
    warning: str | None = None


class InterviewEngine:
    """Drive a one-question-at-a-time interview against the recommendation service.

    ``Loading -> Active -> ... -> Submitting -> Completed``; ``Loading`` and
    ``Active`` may end in ``Aborted``. Callers serialize ``advance`` and must
    not call ``submit`` while a submission is pending.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._state = InterviewState.LOADING
        self._session: InterviewSession | None = None
        self._pending_selection: str | None = None
        self._submit_in_flight = False
        self._disposed = False
        self._result: InterviewResult | None = None
        self._logger = structlog.get_logger(__name__)

    @property
    def state(self) -> InterviewState:
        return self._state

    @property
    def session(self) -> InterviewSession | None:
        return self._session

    @property
    def result(self) -> InterviewResult | None:
        return self._result

    @property
    def pending_selection(self) -> str | None:
        return self._pending_selection

    @property
    def current_question(self) -> Question | None:
        if self._session is None or self._state not in (InterviewState.ACTIVE, InterviewState.SUBMITTING):
            return None
        return self._session.questions[self._session.current_step - 1]

    async def start(
        self,
        prompt: str | None,
        question_count: int,
        recommendation_limit: int,
    ) -> InterviewSession:
        if self._state is not InterviewState.LOADING or self._disposed:
            raise ConfigurationError("Interview already started")
        if not prompt or not prompt.strip():
            self._state = InterviewState.ABORTED
            raise ConfigurationError("A prompt is required to start the interview")
        if not self._client.authenticated:
            self._state = InterviewState.ABORTED
            raise ConfigurationError("Sign in again to continue")
        try:
            request = InterviewRequest(
                prompt=prompt,
                question_count=question_count,
                recommendation_limit=recommendation_limit,
            )
        except ValidationError as exc:
            self._state = InterviewState.ABORTED
            raise ConfigurationError(f"Invalid interview settings: {exc.error_count()} error(s)") from exc

        self._logger.info(
            "interview.started",
            question_count=question_count,
            recommendation_limit=recommendation_limit,
        )
        try:
            body = await self._client.post_recommendations(request.model_dump())
        except (UpstreamError, TransportError) as exc:
            if not self._disposed:
                self._state = InterviewState.ABORTED
            self._logger.warning("interview.start_failed", error=str(exc))
            raise
        if self._disposed:
            raise ConfigurationError("Interview was closed before questions arrived")

        try:
            questions = _parse_questions(body)
        except UpstreamError:
            self._state = InterviewState.ABORTED
            raise

        self._session = InterviewSession(
            request=request,
            questions=questions,
            fallback_candidates=parse_candidates(
                body.get("recommended_professionals"), source="interview.start"
            ),
        )
        self._state = InterviewState.ACTIVE
        self._logger.info(
            "interview.questions_loaded",
            questions=len(questions),
            fallback_candidates=len(self._session.fallback_candidates),
        )
        return self._session

    def select_option(self, option_text: str) -> None:
        self._pending_selection = option_text

    def advance(self) -> InterviewState:
        """Record the pending selection and move to the next step.

        A missing or unknown selection leaves everything untouched.
        """

        session = self._session
        if session is None or self._submit_in_flight or self._state not in (
            InterviewState.ACTIVE,
            InterviewState.SUBMITTING,
        ):
            return self._state
        if self._pending_selection is None:
            return self._state

        question = session.questions[session.current_step - 1]
        option_key = question.key_for(self._pending_selection)
        if option_key is None:
            self._logger.warning("interview.unknown_option", step=session.current_step)
            return self._state

        question_index = session.current_step - 1
        session.answers[question_index] = Answer(
            question_index=question_index,
            option_key=option_key,
            option_text=self._pending_selection,
        )

        if session.current_step < session.total_steps:
            session.current_step += 1
            self._pending_selection = None
        else:
            self._state = InterviewState.SUBMITTING
        return self._state

    async def submit(self) -> InterviewResult | None:
        """Submit all answers; falls back to the initial candidates on failure.

        Returns ``None`` when called outside ``Submitting`` or while another
        submission is pending.
        """

        session = self._session
        if session is None or self._state is not InterviewState.SUBMITTING or self._submit_in_flight:
            return None

        answers = session.ordered_answers()
        payload: dict[str, Any] = session.request.model_dump()
        payload["answers"] = [answer.to_payload() for answer in answers]

        self._submit_in_flight = True
        try:
            try:
                body = await self._client.post_recommendations(payload)
            except (UpstreamError, TransportError) as exc:
                failure: SubmissionError | None = SubmissionError(str(exc), cause=exc)
                candidates = session.fallback_candidates
            else:
                failure = None
                candidates = parse_candidates(
                    body.get("recommended_professionals"), source="interview.submit"
                )
        finally:
            self._submit_in_flight = False

        if self._disposed or self._state is not InterviewState.SUBMITTING:
            self._logger.info("interview.submission_discarded")
            return None

        if failure is not None:
            self._logger.warning(
                "interview.submission_failed",
                error=str(failure),
                fallback_candidates=len(candidates),
            )

        self._result = InterviewResult(
            candidates=list(candidates),
            answers=answers,
            used_fallback=failure is not None,
            warning=str(failure) if failure is not None else None,
        )
        self._state = InterviewState.COMPLETED
        self._logger.info(
            "interview.completed",
            candidates=len(self._result.candidates),
            used_fallback=self._result.used_fallback,
        )
        return self._result

    def cancel(self) -> None:
        if self._state in (InterviewState.ACTIVE, InterviewState.SUBMITTING):
            self._state = InterviewState.ABORTED
            self._pending_selection = None
            self._logger.info("interview.cancelled")

    def dispose(self) -> None:
        """Tear down; results that arrive afterwards are dropped."""
        self._disposed = True


def _parse_questions(body: dict[str, Any]) -> list[Question]:
    raw = body.get("questions")
    if not isinstance(raw, list) or not raw:
        raise UpstreamError("Recommendation service returned no questions")
    try:
        questions = [Question.model_validate(item) for item in raw]
    except ValidationError as exc:
        raise UpstreamError("Recommendation service returned malformed questions") from exc
    if any(not question.presentable_options() for question in questions):
        raise UpstreamError("Recommendation service returned a question without options")
    return questions


__all__ = [
    "InterviewEngine",
    "InterviewRequest",
    "InterviewResult",
    "InterviewSession",
    "InterviewState",
]
