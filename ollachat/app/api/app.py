from __future__ import annotations

from typing import Any

import httpx
from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse

from ollachat.app.relay.contracts import (
    RELAY_CHAT_PATH,
    ChatRelayPayload,
    RelayFailure,
    RelayReply,
)
from ollachat.app.relay.service import forward_raw
from ollachat.core.config import (
    AppConfig,
    RelayConfig,
    load_app_config,
    relay_config_for,
)

RELAY_RAW_PATH = "/api/ollama-chats"
ROUTED_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]


class InvalidRelayPayload(ValueError):
    pass


def _method_not_allowed() -> JSONResponse:
    return JSONResponse(content={"error": "Method not allowed"}, status_code=405)


def _bad_request(detail: str) -> JSONResponse:
    return JSONResponse(content={"error": detail}, status_code=400)


async def _read_payload(request: Request) -> ChatRelayPayload:
    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidRelayPayload("Request body must be JSON") from exc
    if not isinstance(body, dict):
        raise InvalidRelayPayload("Request body must be a JSON object")
    try:
        return ChatRelayPayload.model_validate(body)
    except ValueError as exc:
        raise InvalidRelayPayload(f"Invalid chat payload: {exc}") from exc


def _upstream_payload(
    payload: ChatRelayPayload, relay_config: RelayConfig
) -> dict[str, Any]:
    upstream = payload.model_dump()
    upstream["model"] = relay_config.model
    upstream["stream"] = False
    return upstream


def create_app(upstream_client: httpx.AsyncClient | None = None) -> FastAPI:
    config: AppConfig = load_app_config()
    app = FastAPI(title=config.app_name, version=config.app_version)

    async def _resolve(
        request: Request,
        explicit_base_url: str | None,
    ) -> tuple[dict[str, Any], RelayConfig]:
        payload = await _read_payload(request)
        relay_config = relay_config_for(
            config,
            explicit_base_url=explicit_base_url,
            model=payload.model,
        )
        return _upstream_payload(payload, relay_config), relay_config

    @app.get("/")
    async def root() -> JSONResponse:
        return JSONResponse(
            content={
                "name": config.app_name,
                "version": config.app_version,
                "environment": config.environment,
                "docs": "/docs",
            }
        )

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.api_route(RELAY_CHAT_PATH, methods=ROUTED_METHODS)
    async def ollama_chat(
        request: Request,
        x_ollama_base_url: str | None = Header(default=None, alias="X-Ollama-Base-Url"),
    ) -> JSONResponse:
        if request.method != "POST":
            return _method_not_allowed()
        try:
            upstream, relay_config = await _resolve(request, x_ollama_base_url)
        except InvalidRelayPayload as exc:
            return _bad_request(str(exc))

        result = await forward_raw(upstream, relay_config, client=upstream_client)
        reply = RelayReply.from_text(result.response.content)
        status_code = result.status_code if isinstance(result, RelayFailure) else 200
        return JSONResponse(content=reply.model_dump(), status_code=status_code)

    @app.api_route(RELAY_RAW_PATH, methods=ROUTED_METHODS)
    async def ollama_chat_raw(
        request: Request,
        x_ollama_base_url: str | None = Header(default=None, alias="X-Ollama-Base-Url"),
    ) -> JSONResponse:
        if request.method != "POST":
            return _method_not_allowed()
        try:
            upstream, relay_config = await _resolve(request, x_ollama_base_url)
        except InvalidRelayPayload as exc:
            return _bad_request(str(exc))

        result = await forward_raw(upstream, relay_config, client=upstream_client)
        if isinstance(result, RelayFailure):
            return JSONResponse(
                content={
                    "error": "Failed to connect to Ollama",
                    "message": result.reason,
                },
                status_code=result.status_code,
            )
        return JSONResponse(content=result.raw)

    return app
