from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
import structlog

from connectflow.client import ApiClient
from connectflow.navigation import ApprovalSignal, ResultsHandoff
from connectflow.schemas.config import ApiConfig

BASE_URL = "http://api.test"


class RecordingNavigator:
    def __init__(self) -> None:
        self.results: list[ResultsHandoff] = []
        self.signals: list[ApprovalSignal] = []
        self.aborts: list[str | None] = []

    def show_results(self, handoff: ResultsHandoff) -> None:
        self.results.append(handoff)

    def approval_decided(self, signal: ApprovalSignal) -> None:
        self.signals.append(signal)

    def abort(self, message: str | None = None) -> None:
        self.aborts.append(message)


class FakeBackend:
    """Routes requests to per-endpoint handlers and records them."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}

    def on(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = handler

    def json_bodies(self, method: str, path: str) -> list[Any]:
        return [
            json.loads(request.content)
            for request in self.requests
            if request.method == method and request.url.path == path
        ]

    def calls(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"detail": "not found"})
        return handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def make_client(backend: FakeBackend) -> Callable[..., ApiClient]:
    def factory(token: str | None = "secret-token", **settings: Any) -> ApiClient:
        return ApiClient(
            ApiConfig(base_url=BASE_URL, **settings),
            token=token,
            transport=backend.transport(),
        )

    return factory


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
