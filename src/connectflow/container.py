"""Dependency injection container for connection flows."""

from __future__ import annotations

from typing import Any

import httpx
from dependency_injector import containers, providers

from .client import ApiClient
from .core import ApprovalPoller, InterviewEngine, ResultAggregator
from .flow import ConnectionsFlow
from .schemas.config import AppConfig, load_config


class ConnectionsContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    settings = providers.Object(AppConfig())
    token = providers.Object(None)
    transport = providers.Object(None)
    navigator = providers.Object(None)

    api_client = providers.Singleton(
        ApiClient,
        settings=settings.provided.api,
        token=token,
        transport=transport,
    )

    result_aggregator = providers.Singleton(
        ResultAggregator,
        client=api_client,
        config=settings.provided.aggregator,
    )

    interview_engine = providers.Factory(InterviewEngine, client=api_client)

    connections_flow = providers.Factory(
        ConnectionsFlow,
        engine_factory=interview_engine.provider,
        aggregator=result_aggregator,
        navigator=navigator,
    )

    approval_poller = providers.Factory(
        ApprovalPoller,
        client=api_client,
        navigator=navigator,
        poll_interval=settings.provided.approval.poll_interval_seconds,
        max_attempts=settings.provided.approval.max_attempts,
    )


def create_container(
    *,
    settings: dict[str, Any] | AppConfig | None = None,
    token: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    navigator: Any = None,
) -> ConnectionsContainer:
    """Instantiate container with optional overrides."""

    container = ConnectionsContainer()

    if settings:
        app_config = settings if isinstance(settings, AppConfig) else load_config(settings)
        container.settings.override(providers.Object(app_config))
    if token is not None:
        container.token.override(providers.Object(token))
    if transport is not None:
        container.transport.override(providers.Object(transport))
    if navigator is not None:
        container.navigator.override(providers.Object(navigator))

    return container
