from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ollachat.app.observability.service import emit_relay_event, relay_trace
from ollachat.app.relay.contracts import (
    RelayFailure,
    RelayRequest,
    RelayResponse,
    RelayResult,
    RelaySuccess,
)
from ollachat.app.relay.extraction import extract_reply_text
from ollachat.core.config import RelayConfig

LOGGER = logging.getLogger(__name__)

FAILURE_PREFIX = "Failed to connect to Ollama"


class UpstreamStatusError(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"Ollama API error: {status_code}")
        self.status_code = status_code


def build_upstream_payload(request: RelayRequest) -> dict[str, Any]:
    return {
        "model": request.model,
        "messages": request.transcript.as_messages(),
        "stream": False,
    }


async def forward(
    request: RelayRequest,
    config: RelayConfig,
    *,
    client: httpx.AsyncClient | None = None,
) -> RelayResult:
    """Send one transcript upstream and normalize the reply to a single text."""
    return await forward_raw(build_upstream_payload(request), config, client=client)


async def forward_raw(
    payload: dict[str, Any],
    config: RelayConfig,
    *,
    client: httpx.AsyncClient | None = None,
) -> RelayResult:
    endpoint = config.chat_endpoint
    model = str(payload.get("model") or config.model)
    messages = payload.get("messages")
    message_count = len(messages) if isinstance(messages, list) else 0
    started_at = time.perf_counter()
    LOGGER.debug("Connecting to Ollama URL: %s", config.upstream_base_url)

    try:
        upstream_status, body = await _post_chat(endpoint, payload, config, client)
    except Exception as exc:
        upstream_status = (
            exc.status_code if isinstance(exc, UpstreamStatusError) else None
        )
        emit_relay_event(
            relay_trace(
                endpoint=endpoint,
                model=model,
                message_count=message_count,
                started_at=started_at,
                status="error",
                upstream_status=upstream_status,
                error_class=type(exc).__name__,
            ),
            logger=LOGGER,
        )
        LOGGER.warning("Ollama proxy error: %s", exc)
        reason = str(exc) or type(exc).__name__
        return RelayFailure(
            message=f"{FAILURE_PREFIX}: {reason}",
            reason=reason,
            status_code=500,
            upstream_status=upstream_status,
        )

    emit_relay_event(
        relay_trace(
            endpoint=endpoint,
            model=model,
            message_count=message_count,
            started_at=started_at,
            upstream_status=upstream_status,
        ),
        logger=LOGGER,
    )
    return RelaySuccess(
        response=RelayResponse(content=extract_reply_text(body)),
        raw=body,
    )


async def _post_chat(
    endpoint: str,
    payload: dict[str, Any],
    config: RelayConfig,
    client: httpx.AsyncClient | None,
) -> tuple[int, Any]:
    if client is None:
        async with httpx.AsyncClient(
            timeout=config.upstream_timeout_seconds
        ) as owned_client:
            response = await owned_client.post(endpoint, json=payload)
    else:
        response = await client.post(endpoint, json=payload)

    if not response.is_success:
        raise UpstreamStatusError(response.status_code)
    return response.status_code, response.json()
