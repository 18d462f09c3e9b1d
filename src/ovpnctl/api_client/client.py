from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any, cast

import httpx

from .types import ConfigDetails, GatewayResult, HealthResult, PushEvent


class ApiClientError(RuntimeError):
    """Raised when an API call fails.

    ``status_code`` is 0 when the server could not be reached at all.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        payload: Any | None = None,
        path: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
        self.path = path


class OvpnctlAPIClient:
    """Typed HTTP client for the ovpnctl /v1 contract."""

    def __init__(
        self,
        *,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
            headers=headers or None,
        )
        if client is not None and headers:
            self._client.headers.update(headers)

    async def __aenter__(self) -> "OvpnctlAPIClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        try:
            return await self._client.send(request, stream=stream)
        except httpx.TransportError as e:
            raise ApiClientError(
                status_code=0,
                message=str(e) or type(e).__name__,
                path=request.url.path,
            ) from e

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        json_body: Any | None = None,
    ) -> Any:
        request = self._client.build_request(method, path, json=json_body)
        response = await self._send(request)

        self._raise_for_status(response)
        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError:
            return {"value": response.text}

    @staticmethod
    def _extract_error_message(payload: Any, fallback: str) -> str:
        if isinstance(payload, dict):
            err = payload.get("error")
            if isinstance(err, dict):
                message = err.get("message")
                if isinstance(message, str) and message.strip():
                    return message
            if isinstance(err, str) and err.strip():
                return err
            message = payload.get("message")
            if isinstance(message, str) and message.strip():
                return message
        return fallback

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        payload: Any | None
        try:
            payload = response.json()
        except ValueError:
            payload = response.text

        message = self._extract_error_message(
            payload,
            f"HTTP {response.status_code} for {response.request.method} {response.request.url.path}",
        )
        raise ApiClientError(
            status_code=response.status_code,
            message=message,
            payload=payload,
            path=response.request.url.path,
        )

    @staticmethod
    def _iter_stream_payload_lines(line: str) -> str | None:
        value = line.strip()
        if not value or value.startswith(":"):
            return None
        if value.startswith("event:"):
            return None
        if value.startswith("data:"):
            value = value[5:].strip()
        return value or None

    async def _iter_stream_events(self, response: httpx.Response) -> AsyncIterator[dict[str, Any]]:
        async for line in response.aiter_lines():
            payload_line = self._iter_stream_payload_lines(line)
            if payload_line is None:
                continue
            try:
                payload = json.loads(payload_line)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict):
                yield payload

    async def request(self, message: dict[str, Any]) -> GatewayResult:
        """Send a raw gateway message to ``POST /v1/requests``."""
        return cast(GatewayResult, await self._request_json("POST", "/v1/requests", json_body=message))

    async def connect(self, raw: str) -> GatewayResult:
        result = await self._request_json("POST", "/v1/connect", json_body={"config": {"raw": raw}})
        return cast(GatewayResult, result)

    async def disconnect(self) -> GatewayResult:
        return cast(GatewayResult, await self._request_json("POST", "/v1/disconnect"))

    async def get_status(self) -> GatewayResult:
        return cast(GatewayResult, await self._request_json("GET", "/v1/status"))

    async def save_config(self, raw: str) -> GatewayResult:
        result = await self._request_json("PUT", "/v1/config", json_body={"config": {"raw": raw}})
        return cast(GatewayResult, result)

    async def get_config(self) -> GatewayResult:
        return cast(GatewayResult, await self._request_json("GET", "/v1/config"))

    async def get_config_details(self) -> ConfigDetails:
        return cast(ConfigDetails, await self._request_json("GET", "/v1/config/details"))

    async def health(self) -> HealthResult:
        return cast(HealthResult, await self._request_json("GET", "/health"))

    async def stream_events(self) -> AsyncIterator[PushEvent]:
        request = self._client.build_request("GET", "/v1/events", timeout=None)
        response = await self._send(request, stream=True)
        try:
            if not response.is_success:
                await response.aread()
                self._raise_for_status(response)
            async for event in self._iter_stream_events(response):
                yield cast(PushEvent, event)
        finally:
            await response.aclose()
