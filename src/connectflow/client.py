"""HTTP client for the recommendation, directory and consent services."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from .bootstrap import LazyInitializer
from .errors import TransportError, UpstreamError
from .schemas.config import ApiConfig


class ApiClient:
    """Thin async wrapper translating httpx failures into flow errors."""

    def __init__(
        self,
        settings: ApiConfig | None = None,
        *,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or ApiConfig()
        self._token = token
        self._transport = transport
        self._session = LazyInitializer(self._open_session, name="http_session")
        self._logger = structlog.get_logger(__name__)

    @property
    def settings(self) -> ApiConfig:
        return self._settings

    @property
    def authenticated(self) -> bool:
        return bool(self._token and self._token.strip())

    async def post_recommendations(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = await self._request("POST", self._settings.recommendations_path, json=payload)
        if not isinstance(body, dict):
            raise UpstreamError("Recommendation service returned an unexpected body")
        return body

    async def fetch_directory(self) -> Any:
        return await self._request("GET", self._settings.directory_path)

    async def fetch_approval_status(self, email: str) -> Any:
        return await self._request(
            "GET",
            self._settings.approval_status_path,
            params={"email": email},
        )

    async def aclose(self) -> None:
        session = self._session.peek()
        self._session.reset()
        if session is not None:
            await session.aclose()

    async def _open_session(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return httpx.AsyncClient(
            base_url=self._settings.base_url,
            headers=headers,
            timeout=httpx.Timeout(self._settings.timeout_seconds),
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        session = await self._session.get()
        try:
            response = await session.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            self._logger.warning("http.timeout", method=method, path=path)
            raise TransportError(f"Request to {path} timed out") from exc
        except httpx.RequestError as exc:
            self._logger.warning("http.request_failed", method=method, path=path, error=str(exc))
            raise TransportError(f"Request to {path} failed: {exc}") from exc

        if not response.is_success:
            body = _json_or_none(response)
            message = _error_message(body, response.status_code)
            self._logger.warning(
                "http.error_status",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise UpstreamError(message, status_code=response.status_code, body=body)

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"Invalid JSON from {path}", status_code=response.status_code
            ) from exc


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(body: Any, status_code: int) -> str:
    if isinstance(body, dict):
        for key in ("detail", "message"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return f"Request failed with status {status_code}"


__all__ = ["ApiClient"]
