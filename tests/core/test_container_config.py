from __future__ import annotations

from connectflow.container import create_container
from connectflow.core import ApprovalPoller, InterviewEngine
from connectflow.schemas.config import AppConfig


class NullNavigator:
    def show_results(self, handoff) -> None:
        pass

    def approval_decided(self, signal) -> None:
        pass

    def abort(self, message=None) -> None:
        pass


def test_create_container_with_overrides():
    navigator = NullNavigator()
    container = create_container(
        settings={
            "api": {"base_url": "https://api.example.org", "timeout_seconds": 3},
            "approval": {"poll_interval_seconds": 2.5, "max_attempts": 5},
            "aggregator": {"blocked_markers": ["demo"]},
        },
        token="tok",
        navigator=navigator,
    )

    client = container.api_client()
    aggregator = container.result_aggregator()
    poller = container.approval_poller(guardian_email="guardian@example.com")

    assert client.settings.base_url == "https://api.example.org"
    assert client.settings.timeout_seconds == 3
    assert client.authenticated
    assert aggregator._config.blocked_markers == ["demo"]
    assert isinstance(poller, ApprovalPoller)
    assert poller._interval == 2.5
    assert poller.state.max_attempts == 5
    assert poller._navigator is navigator


def test_container_defaults():
    container = create_container()

    assert isinstance(container.settings(), AppConfig)
    assert container.api_client().settings.timeout_seconds == 10.0
    assert not container.api_client().authenticated
    assert container.api_client() is container.api_client()


def test_engines_are_fresh_per_flow():
    container = create_container(token="tok")

    first = container.interview_engine()
    second = container.interview_engine()

    assert isinstance(first, InterviewEngine)
    assert first is not second
    assert first._client is second._client
