from __future__ import annotations

import httpx

from ollachat.app.relay.contracts import (
    RELAY_CHAT_PATH,
    RelayFailure,
    RelayRequest,
    RelayResponse,
    RelayResult,
    RelaySuccess,
)
from ollachat.app.relay.service import build_upstream_payload, forward
from ollachat.core.config import RelayConfig


class LocalRelay:
    """Runs the relay in-process against the configured upstream."""

    def __init__(
        self,
        config: RelayConfig,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = client

    @property
    def config(self) -> RelayConfig:
        return self._config

    async def send(self, request: RelayRequest) -> RelayResult:
        return await forward(request, self._config, client=self._client)


class HttpRelay:
    """Talks to a relay surface over HTTP, the way the browser widget does."""

    def __init__(
        self,
        base_url: str,
        *,
        upstream_base_url: str | None = None,
        timeout_s: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}{RELAY_CHAT_PATH}"
        self._upstream_base_url = upstream_base_url
        self._timeout_s = timeout_s
        self._client = client

    @property
    def upstream_base_url(self) -> str | None:
        return self._upstream_base_url

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._upstream_base_url:
            headers["X-Ollama-Base-Url"] = self._upstream_base_url
        return headers

    async def send(self, request: RelayRequest) -> RelayResult:
        payload = build_upstream_payload(request)
        try:
            if self._client is None:
                async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                    response = await client.post(
                        self._endpoint, json=payload, headers=self._headers()
                    )
            else:
                response = await self._client.post(
                    self._endpoint, json=payload, headers=self._headers()
                )
        except httpx.HTTPError as exc:
            reason = str(exc) or type(exc).__name__
            return RelayFailure(message=reason, reason=reason)

        if not response.is_success:
            reason = _error_reason(response)
            return RelayFailure(
                message=reason,
                reason=reason,
                status_code=response.status_code,
            )

        content = _reply_content(response)
        if content is None:
            reason = "Malformed reply from relay"
            return RelayFailure(
                message=reason, reason=reason, status_code=response.status_code
            )
        return RelaySuccess(response=RelayResponse(content=content))


def _json_or_none(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError:
        return None


def _reply_content(response: httpx.Response) -> str | None:
    body = _json_or_none(response)
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


def _error_reason(response: httpx.Response) -> str:
    body = _json_or_none(response)
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, dict):
            message = message.get("content")
        if isinstance(message, str) and message.strip():
            return message
        error = body.get("error")
        if isinstance(error, str) and error.strip():
            return error
    return f"HTTP error! status: {response.status_code}"
