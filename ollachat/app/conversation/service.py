from __future__ import annotations

import logging
from typing import Callable, Protocol

from ollachat.app.conversation.contracts import Role, Transcript, Turn
from ollachat.app.relay.contracts import RelayFailure, RelayRequest, RelayResult

LOGGER = logging.getLogger(__name__)

ERROR_TURN_PREFIX = "Error connecting to Ollama"


class ConversationError(Exception):
    pass


class EmptyTurnError(ConversationError, ValueError):
    pass


class SessionBusyError(ConversationError):
    pass


class Relay(Protocol):
    async def send(self, request: RelayRequest) -> RelayResult: ...


class ConversationSession:
    """One chat: its transcript, its model and at most one request in flight."""

    def __init__(
        self,
        relay: Relay,
        *,
        model: str,
        on_append: Callable[[Turn], None] | None = None,
    ) -> None:
        self._relay = relay
        self._model = model
        self._on_append = on_append
        self._transcript = Transcript()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def model(self) -> str:
        return self._model

    @property
    def transcript(self) -> Transcript:
        return self._transcript

    def set_model(self, model: str) -> None:
        name = model.strip() if isinstance(model, str) else ""
        if not name:
            raise ValueError("Model name must not be empty")
        self._model = name

    def use_relay(self, relay: Relay) -> None:
        if self._busy:
            raise SessionBusyError("Cannot change the relay while a reply is pending")
        self._relay = relay

    def reset(self) -> None:
        if self._busy:
            raise SessionBusyError("Cannot reset while a reply is pending")
        self._transcript = Transcript()

    async def send_turn(self, text: str) -> Turn:
        if not isinstance(text, str) or not text.strip():
            raise EmptyTurnError("Message must not be empty")
        if self._busy:
            raise SessionBusyError("A reply is still pending for this session")

        self._busy = True
        try:
            self._append(Turn(role=Role.USER, content=text))
            request = RelayRequest(
                model=self._model,
                transcript=self._transcript.snapshot(),
            )
            try:
                result = await self._relay.send(request)
            except Exception as exc:
                LOGGER.warning("Relay transport raised: %s", exc)
                result = RelayFailure(
                    message=f"{ERROR_TURN_PREFIX}: {exc}",
                    reason=str(exc) or type(exc).__name__,
                )
            return self._append(_assistant_turn(result))
        finally:
            self._busy = False

    def _append(self, turn: Turn) -> Turn:
        self._transcript.append(turn)
        if self._on_append is not None:
            self._on_append(turn)
        return turn


def _assistant_turn(result: RelayResult) -> Turn:
    if isinstance(result, RelayFailure):
        return Turn(
            role=Role.ASSISTANT,
            content=f"{ERROR_TURN_PREFIX}: {result.reason}",
        )
    return Turn(role=Role.ASSISTANT, content=result.response.content)
