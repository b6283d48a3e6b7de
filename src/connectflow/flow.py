"""Connections flow assembly and execution."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Optional

import pendulum
import structlog

from . import __version__
from .core import InterviewEngine, InterviewState, ResultAggregator
from .errors import ConfigurationError, TransportError, UpstreamError
from .navigation import ApprovalSignal, NavigationHost, ResultsHandoff
from .schemas import Question

# (question, step, total) -> chosen option text, or None to cancel
OptionChooser = Callable[[Question, int, int], Optional[str]]


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        entry = {
            "timestamp": pendulum.now("UTC").to_iso8601_string(),
            "app_version": __version__,
            **record,
        }
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, ensure_ascii=False))
            handle.write("\n")


class AuditingNavigator:
    """Navigation host decorator recording every terminal outcome."""

    def __init__(self, inner: NavigationHost, audit_logger: AuditLogger):
        self._inner = inner
        self._audit = audit_logger

    def show_results(self, handoff: ResultsHandoff) -> None:
        self._audit.append({"event": "results", **handoff.to_dict()})
        self._inner.show_results(handoff)

    def approval_decided(self, signal: ApprovalSignal) -> None:
        self._audit.append({"event": "approval", "signal": signal.value})
        self._inner.approval_decided(signal)

    def abort(self, message: str | None = None) -> None:
        self._audit.append({"event": "abort", "message": message})
        self._inner.abort(message)


class ConnectionsFlow:
    """Interview -> aggregation -> presentation handoff."""

    def __init__(
        self,
        *,
        engine_factory: Callable[[], InterviewEngine],
        aggregator: ResultAggregator,
        navigator: NavigationHost,
    ) -> None:
        self._engine_factory = engine_factory
        self._aggregator = aggregator
        self._navigator = navigator
        self._logger = structlog.get_logger(__name__)

    async def run(
        self,
        *,
        prompt: str | None,
        question_count: int,
        recommendation_limit: int,
        chooser: OptionChooser,
    ) -> ResultsHandoff | None:
        engine = self._engine_factory()
        try:
            return await self._drive(
                engine,
                prompt=prompt,
                question_count=question_count,
                recommendation_limit=recommendation_limit,
                chooser=chooser,
            )
        finally:
            engine.dispose()

    async def _drive(
        self,
        engine: InterviewEngine,
        *,
        prompt: str | None,
        question_count: int,
        recommendation_limit: int,
        chooser: OptionChooser,
    ) -> ResultsHandoff | None:
        try:
            session = await engine.start(prompt, question_count, recommendation_limit)
        except (ConfigurationError, UpstreamError, TransportError) as exc:
            self._logger.warning("flow.aborted", reason=type(exc).__name__, error=str(exc))
            self._navigator.abort(str(exc))
            return None

        while engine.state is InterviewState.ACTIVE:
            question = session.questions[session.current_step - 1]
            choice = chooser(question, session.current_step, session.total_steps)
            if choice is None:
                engine.cancel()
                self._navigator.abort(None)
                return None
            engine.select_option(choice)
            engine.advance()

        result = await engine.submit()
        if result is None:
            return None

        results = await self._aggregator.aggregate(result.candidates)
        warnings = [warning for warning in (result.warning, results.warning) if warning]
        handoff = ResultsHandoff(
            recommended_professionals=results.candidates,
            answers=result.answers,
            results=results,
            warnings=warnings,
        )
        self._navigator.show_results(handoff)
        return handoff


__all__ = ["AuditLogger", "AuditingNavigator", "ConnectionsFlow", "OptionChooser"]
