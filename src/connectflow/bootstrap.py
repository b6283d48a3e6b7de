"""One-shot lazy initialisation shared by concurrent callers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

import structlog

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Uninitialized:
    """Nothing has been created yet, or the last attempt failed."""


@dataclass(frozen=True, slots=True)
class Initializing:
    """A factory call is running; later callers await ``pending``."""

    pending: asyncio.Future


@dataclass(frozen=True, slots=True)
class Ready(Generic[T]):
    """The resource exists."""

    value: T


InitState = Uninitialized | Initializing | Ready


class LazyInitializer(Generic[T]):
    """Run an async factory at most once at a time and cache its value.

    Callers arriving while the factory is running share its pending future
    instead of triggering the side effect again. A failed attempt puts the
    initializer back to ``Uninitialized`` so the next caller retries.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]], *, name: str = "resource") -> None:
        self._factory = factory
        self._name = name
        self._state: InitState = Uninitialized()
        self._logger = structlog.get_logger(__name__)

    @property
    def state(self) -> InitState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return isinstance(self._state, Ready)

    async def get(self) -> T:
        state = self._state
        if isinstance(state, Ready):
            return state.value
        if isinstance(state, Initializing):
            self._logger.debug("bootstrap.waiting", resource=self._name)
            return await asyncio.shield(state.pending)

        pending: asyncio.Future = asyncio.get_running_loop().create_future()
        self._state = Initializing(pending)
        self._logger.debug("bootstrap.starting", resource=self._name)
        try:
            value = await self._factory()
        except asyncio.CancelledError:
            self._state = Uninitialized()
            pending.cancel()
            raise
        except Exception as exc:
            self._state = Uninitialized()
            pending.set_exception(exc)
            # mark retrieved so an unobserved failure is not reported twice
            pending.exception()
            self._logger.warning("bootstrap.failed", resource=self._name, error=str(exc))
            raise
        self._state = Ready(value)
        pending.set_result(value)
        self._logger.debug("bootstrap.ready", resource=self._name)
        return value

    def peek(self) -> Any:
        """Return the value when ready, else ``None``."""
        state = self._state
        return state.value if isinstance(state, Ready) else None

    def reset(self) -> None:
        self._state = Uninitialized()


__all__ = ["LazyInitializer", "InitState", "Uninitialized", "Initializing", "Ready"]
