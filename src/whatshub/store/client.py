from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from whatshub.config.settings import Settings
from whatshub.store.errors import (
    ConfigurationError,
    ConnectivityError,
    StoreError,
    ValidationError,
)
from whatshub.utils.logging import get_logger


logger = get_logger(__name__)


@dataclass(slots=True)
class StoreTelemetryEvent:
    method: str
    url: str
    status_code: int | None
    duration_ms: float
    success: bool


@dataclass(slots=True)
class StoreClientConfig:
    base_url: str
    api_key: str
    user_agent: str = "WhatsHub-Python"
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    write_timeout: float = 30.0
    pool_timeout: float = 5.0
    telemetry_callback: Callable[[StoreTelemetryEvent], None] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> StoreClientConfig:
        missing = settings.missing_settings()
        if missing:
            raise ConfigurationError(missing=missing)
        return cls(
            base_url=settings.rest_endpoint(),
            api_key=settings.supabase_key or "",
            read_timeout=settings.request_timeout,
            write_timeout=settings.request_timeout,
        )


def _map_response_to_error(response: httpx.Response) -> StoreError:
    status = response.status_code
    body: Any = {}
    try:
        body = response.json()
    except ValueError:
        body = {}

    code = None
    message = None
    if isinstance(body, dict):
        raw_code = body.get("code")
        code = str(raw_code) if raw_code is not None else None
        message = body.get("message") or body.get("error") or body.get("msg")
        details = body.get("details")
        if message and details:
            message = f"{message} ({details})"

    message = str(message or response.text or f"Store request failed with status {status}")

    if status == 401:
        return ConfigurationError(
            f"The store rejected the access key: {message}",
            status_code=status,
            code=code,
        )
    if status in {400, 403, 409, 422}:
        return ValidationError(message, status_code=status, code=code)
    return ConnectivityError(message, status_code=status, code=code)


class StoreClientFactory:
    """Own the HTTP client used to talk to the PostgREST endpoint."""

    def __init__(self, config: StoreClientConfig) -> None:
        self._config = config
        self._http_client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._config.base_url

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        client = self._get_http_client()
        url = self._absolute_url(path)
        start = time.perf_counter()
        try:
            response = await client.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            self._publish_telemetry(method, url, start, status_code=None, success=False)
            raise ConnectivityError(
                "Timed out waiting for the group database",
                inner_error=exc,
            ) from exc
        except httpx.RequestError as exc:
            self._publish_telemetry(method, url, start, status_code=None, success=False)
            raise ConnectivityError(
                f"Network error communicating with the group database: {exc}",
                inner_error=exc,
            ) from exc

        if response.status_code >= 400:
            self._publish_telemetry(
                method,
                url,
                start,
                status_code=response.status_code,
                success=False,
            )
            raise _map_response_to_error(response)

        self._publish_telemetry(
            method,
            url,
            start,
            status_code=response.status_code,
            success=True,
        )
        return response

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self.request(
            method,
            path,
            params=params,
            json_body=json_body,
            headers=headers,
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectivityError(
                "The group database returned a malformed response",
                status_code=response.status_code,
                inner_error=exc,
            ) from exc

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ------------------------------------------------------------- Internals

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            key = self._config.api_key
            self._http_client = httpx.AsyncClient(
                headers={
                    "User-Agent": self._config.user_agent,
                    "apikey": key,
                    "Authorization": f"Bearer {key}",
                    "Accept": "application/json",
                },
                timeout=httpx.Timeout(
                    connect=self._config.connect_timeout,
                    read=self._config.read_timeout,
                    write=self._config.write_timeout,
                    pool=self._config.pool_timeout,
                ),
            )
        return self._http_client

    def _absolute_url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self._config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _publish_telemetry(
        self,
        method: str,
        url: str,
        start: float,
        *,
        status_code: int | None,
        success: bool,
    ) -> None:
        event = StoreTelemetryEvent(
            method=method.upper(),
            url=url,
            status_code=status_code,
            duration_ms=(time.perf_counter() - start) * 1000,
            success=success,
        )
        callback = self._config.telemetry_callback or self._default_telemetry_callback
        try:
            callback(event)
        except Exception:  # pragma: no cover - telemetry shouldn't break requests
            logger.warning("Telemetry callback raised an exception", exc_info=True)

    @staticmethod
    def _default_telemetry_callback(event: StoreTelemetryEvent) -> None:
        logger.debug(
            "Store request",
            method=event.method,
            url=event.url,
            status_code=event.status_code,
            duration_ms=round(event.duration_ms, 2),
            success=event.success,
        )


__all__ = [
    "StoreClientConfig",
    "StoreClientFactory",
    "StoreTelemetryEvent",
]
