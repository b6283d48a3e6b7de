"""Guardian approval polling with a bounded re-check budget."""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..client import ApiClient
from ..errors import TransportError, UpstreamError
from ..navigation import ApprovalSignal, NavigationHost

TRANSPORT_ERROR_MESSAGE = "Failed to check approval status."


class ApprovalOutcome(str, Enum):
    CHECKING = "checking"
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    TRANSPORT_ERROR = "transport_error"


_TERMINAL = frozenset({ApprovalOutcome.APPROVED, ApprovalOutcome.DENIED})


class ApprovalStatus(BaseModel):
    approved: bool = False

    model_config = ConfigDict(extra="ignore")

    @field_validator("approved", mode="before")
    @classmethod
    def _null_is_not_approved(cls, value: Any) -> Any:
        return False if value is None else value


@dataclass(slots=True)
class ApprovalPollState:
    guardian_email: str
    max_attempts: int = 3
    attempts_used: int = 0
    outcome: ApprovalOutcome = ApprovalOutcome.CHECKING
    last_error: str | None = None

    @property
    def attempts_left(self) -> int:
        return self.max_attempts - self.attempts_used

    @property
    def is_terminal(self) -> bool:
        return self.outcome in _TERMINAL


def next_tick(previous: float, now: float, interval: float) -> float:
    """Next fixed-cadence deadline after ``now``.

    Ticks stay on the ``previous + k * interval`` grid so slow checks do not
    stretch the cadence; ticks already missed are skipped, not replayed.
    """

    tick = previous + interval
    if tick <= now:
        tick += math.floor((now - tick) / interval + 1) * interval
    return tick


class ApprovalPoller:
    """Poll the consent service until approval, denial or teardown.

    The background timer re-checks every ``poll_interval`` seconds without
    touching the attempt budget; only :meth:`check_again` spends attempts.
    """

    def __init__(
        self,
        client: ApiClient,
        navigator: NavigationHost,
        guardian_email: str,
        *,
        poll_interval: float = 5.0,
        max_attempts: int = 3,
    ) -> None:
        self._client = client
        self._navigator = navigator
        self._interval = poll_interval
        self._state = ApprovalPollState(guardian_email=guardian_email, max_attempts=max_attempts)
        self._mounted = False
        self._torn_down = False
        self._timer: asyncio.Task | None = None
        self._timer_starts = 0
        self._recheck_in_flight = False
        self._decided = asyncio.Event()
        self._logger = structlog.get_logger(__name__).bind(guardian_email=guardian_email)

    @property
    def state(self) -> ApprovalPollState:
        return self._state

    @property
    def timer_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def _active(self) -> bool:
        return self._mounted and not self._torn_down and not self._state.is_terminal

    async def check_once(self) -> ApprovalOutcome:
        """Single status lookup; never touches the poll state.

        Any decoded JSON answer other than an approval is pending, error
        statuses included. Network failures, timeouts and bodies that are not
        JSON are transport errors.
        """

        try:
            payload = await self._client.fetch_approval_status(self._state.guardian_email)
        except UpstreamError as exc:
            if exc.body is None:
                self._logger.warning("approval.check_failed", error=str(exc))
                return ApprovalOutcome.TRANSPORT_ERROR
            self._logger.info("approval.error_status", status_code=exc.status_code)
            return ApprovalOutcome.PENDING
        except TransportError as exc:
            self._logger.warning("approval.check_failed", error=str(exc))
            return ApprovalOutcome.TRANSPORT_ERROR
        return ApprovalOutcome.APPROVED if self._is_approved(payload) else ApprovalOutcome.PENDING

    def _is_approved(self, payload: Any) -> bool:
        if not isinstance(payload, dict):
            return False
        try:
            return ApprovalStatus.model_validate(payload).approved
        except ValidationError as exc:
            self._logger.info("approval.unrecognised_status", errors=exc.error_count())
            return False

    async def mount(self) -> ApprovalOutcome:
        """Run the first automatic check and start the background timer."""

        if self._mounted or self._torn_down:
            self._logger.warning("approval.mount_ignored")
            return self._state.outcome
        self._mounted = True
        await self._automatic_check()
        if self._active and self._timer is None:
            self._timer = asyncio.create_task(self._poll_loop())
            self._timer_starts += 1
        return self._state.outcome

    async def check_again(self) -> ApprovalOutcome:
        """User-initiated re-check; a pending answer spends one attempt."""

        if not self._active or self._recheck_in_flight:
            return self._state.outcome

        self._recheck_in_flight = True
        self._state.last_error = None
        try:
            outcome = await self.check_once()
        finally:
            self._recheck_in_flight = False

        if not self._active:
            return self._state.outcome

        if outcome is ApprovalOutcome.APPROVED:
            self._finish(ApprovalOutcome.APPROVED)
        elif outcome is ApprovalOutcome.PENDING:
            self._state.attempts_used += 1
            self._logger.info(
                "approval.recheck_pending",
                attempts_used=self._state.attempts_used,
                max_attempts=self._state.max_attempts,
            )
            if self._state.attempts_used >= self._state.max_attempts:
                self._finish(ApprovalOutcome.DENIED)
            else:
                self._state.outcome = ApprovalOutcome.PENDING
        else:
            self._state.outcome = ApprovalOutcome.TRANSPORT_ERROR
            self._state.last_error = TRANSPORT_ERROR_MESSAGE
        return self._state.outcome

    async def wait_for_decision(self) -> ApprovalOutcome:
        """Block until a terminal outcome or teardown, then return the outcome."""
        await self._decided.wait()
        return self._state.outcome

    def unmount(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        self._stop_timer()
        self._decided.set()
        self._logger.info("approval.unmounted", outcome=self._state.outcome.value)

    async def _poll_loop(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while self._active:
            deadline = next_tick(deadline, loop.time(), self._interval)
            await asyncio.sleep(deadline - loop.time())
            if not self._active:
                break
            await self._automatic_check()

    async def _automatic_check(self) -> None:
        outcome = await self.check_once()
        if not self._active:
            return
        if outcome is ApprovalOutcome.APPROVED:
            self._finish(ApprovalOutcome.APPROVED)
        elif outcome is ApprovalOutcome.PENDING:
            self._state.outcome = ApprovalOutcome.PENDING
            self._state.last_error = None
        else:
            self._state.outcome = ApprovalOutcome.TRANSPORT_ERROR
            self._state.last_error = TRANSPORT_ERROR_MESSAGE

    def _finish(self, outcome: ApprovalOutcome) -> None:
        if self._state.is_terminal:
            return
        self._state.outcome = outcome
        self._stop_timer()
        self._decided.set()
        self._logger.info(
            f"approval.{outcome.value}",
            attempts_used=self._state.attempts_used,
        )
        signal = ApprovalSignal.APPROVED if outcome is ApprovalOutcome.APPROVED else ApprovalSignal.DENIED
        self._navigator.approval_decided(signal)

    def _stop_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None:
            return
        if timer is not asyncio.current_task():
            timer.cancel()


__all__ = [
    "ApprovalOutcome",
    "ApprovalPollState",
    "ApprovalPoller",
    "ApprovalStatus",
    "TRANSPORT_ERROR_MESSAGE",
    "next_tick",
]
