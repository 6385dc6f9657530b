from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from ollachat.app.conversation.contracts import Transcript

RELAY_CHAT_PATH = "/api/ollama-chat"


@dataclass(frozen=True)
class RelayRequest:
    model: str
    transcript: Transcript
    stream: bool = False


@dataclass(frozen=True)
class RelayResponse:
    content: str


@dataclass(frozen=True)
class RelaySuccess:
    response: RelayResponse
    raw: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class RelayFailure:
    message: str
    reason: str
    status_code: int = 500
    upstream_status: int | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def response(self) -> RelayResponse:
        return RelayResponse(content=self.message)


RelayResult = Union[RelaySuccess, RelayFailure]


class ChatRelayPayload(BaseModel):
    """Body accepted by the relay surface and sent upstream."""

    model_config = ConfigDict(extra="allow")

    model: str | None = None
    messages: list[dict[str, Any]] = Field(default_factory=list)
    stream: bool = False


class RelayReplyContent(BaseModel):
    content: str


class RelayReply(BaseModel):
    message: RelayReplyContent

    @classmethod
    def from_text(cls, content: str) -> "RelayReply":
        return cls(message=RelayReplyContent(content=content))
