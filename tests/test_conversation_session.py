import pytest

from ollachat.app.conversation.contracts import Role, Turn
from ollachat.app.conversation.service import (
    ConversationSession,
    EmptyTurnError,
    SessionBusyError,
)
from ollachat.app.relay.contracts import (
    RelayFailure,
    RelayRequest,
    RelayResponse,
    RelaySuccess,
)


class _RecordingRelay:
    def __init__(self, reply: str = "hello", should_raise: bool = False) -> None:
        self._reply = reply
        self._should_raise = should_raise
        self.session: ConversationSession | None = None
        self.requests: list[RelayRequest] = []
        self.observed: list[tuple[bool, int]] = []

    async def send(self, request: RelayRequest) -> RelaySuccess:
        self.requests.append(request)
        if self.session is not None:
            self.observed.append((self.session.busy, len(self.session.transcript)))
        if self._should_raise:
            raise RuntimeError("socket closed")
        return RelaySuccess(response=RelayResponse(content=self._reply))


class _FailingRelay:
    async def send(self, request: RelayRequest) -> RelayFailure:
        _ = request
        return RelayFailure(
            message="Failed to connect to Ollama: Ollama API error: 500",
            reason="Ollama API error: 500",
            upstream_status=500,
        )


def _session(relay) -> ConversationSession:
    session = ConversationSession(relay, model="tinyllama")
    if isinstance(relay, _RecordingRelay):
        relay.session = session
    return session


@pytest.mark.asyncio
async def test_send_turn_echoes_user_turn_before_relay_resolves() -> None:
    relay = _RecordingRelay()
    session = _session(relay)

    await session.send_turn("hi")

    assert relay.observed == [(True, 1)]
    request = relay.requests[0]
    assert request.model == "tinyllama"
    assert request.stream is False
    assert request.transcript.turns == (Turn(role=Role.USER, content="hi"),)


@pytest.mark.asyncio
async def test_send_turn_appends_assistant_reply_and_clears_busy() -> None:
    session = _session(_RecordingRelay(reply="hello there"))

    reply = await session.send_turn("hi")

    assert reply == Turn(role=Role.ASSISTANT, content="hello there")
    assert [turn.role for turn in session.transcript] == [Role.USER, Role.ASSISTANT]
    assert session.busy is False


@pytest.mark.asyncio
async def test_send_turn_forwards_full_history() -> None:
    relay = _RecordingRelay()
    session = _session(relay)

    await session.send_turn("first")
    await session.send_turn("second")

    assert relay.requests[1].transcript.as_messages() == [
        {"role": "user", "content": "first"},
        {"role": "assistant", "content": "hello"},
        {"role": "user", "content": "second"},
    ]
    assert relay.observed == [(True, 1), (True, 3)]


@pytest.mark.asyncio
async def test_relay_failure_becomes_inline_error_turn() -> None:
    session = _session(_FailingRelay())

    reply = await session.send_turn("hi")

    assert reply.role == Role.ASSISTANT
    assert reply.content == "Error connecting to Ollama: Ollama API error: 500"
    assert session.busy is False


@pytest.mark.asyncio
async def test_relay_exception_is_contained_and_busy_released() -> None:
    session = _session(_RecordingRelay(should_raise=True))

    reply = await session.send_turn("hi")

    assert "socket closed" in reply.content
    assert len(session.transcript) == 2
    assert session.busy is False

    follow_up = await session.send_turn("still there?")
    assert follow_up.role == Role.ASSISTANT


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_blank_text_is_rejected_without_mutation(text: str) -> None:
    relay = _RecordingRelay()
    session = _session(relay)

    with pytest.raises(EmptyTurnError):
        await session.send_turn(text)

    assert len(session.transcript) == 0
    assert relay.requests == []
    assert session.busy is False


@pytest.mark.asyncio
async def test_send_while_busy_is_rejected() -> None:
    class _ReentrantRelay:
        def __init__(self) -> None:
            self.session: ConversationSession | None = None
            self.nested_error: Exception | None = None

        async def send(self, request: RelayRequest) -> RelaySuccess:
            assert self.session is not None
            try:
                await self.session.send_turn("again")
            except SessionBusyError as exc:
                self.nested_error = exc
            return RelaySuccess(response=RelayResponse(content="done"))

    relay = _ReentrantRelay()
    session = ConversationSession(relay, model="tinyllama")
    relay.session = session

    await session.send_turn("hi")

    assert isinstance(relay.nested_error, SessionBusyError)
    assert len(session.transcript) == 2


@pytest.mark.asyncio
async def test_on_append_fires_after_every_append() -> None:
    appended: list[Turn] = []
    session = ConversationSession(
        _RecordingRelay(), model="tinyllama", on_append=appended.append
    )

    await session.send_turn("hi")

    assert [turn.role for turn in appended] == [Role.USER, Role.ASSISTANT]


def test_set_model_rejects_blank_names() -> None:
    session = _session(_RecordingRelay())

    session.set_model(" llama3 ")
    assert session.model == "llama3"

    with pytest.raises(ValueError):
        session.set_model("  ")


@pytest.mark.asyncio
async def test_reset_starts_an_empty_transcript() -> None:
    session = _session(_RecordingRelay())
    await session.send_turn("hi")

    session.reset()

    assert len(session.transcript) == 0


def test_turns_are_immutable() -> None:
    turn = Turn(role=Role.USER, content="hi")

    with pytest.raises(AttributeError):
        turn.content = "edited"  # type: ignore[misc]


@pytest.mark.asyncio
async def test_use_relay_keeps_transcript_and_routes_next_send() -> None:
    first = _RecordingRelay(reply="from first")
    second = _RecordingRelay(reply="from second")
    session = _session(first)
    await session.send_turn("hi")

    session.use_relay(second)
    reply = await session.send_turn("again")

    assert reply.content == "from second"
    assert len(second.requests[0].transcript) == 3
    assert len(first.requests) == 1
