from __future__ import annotations

import logging

import chainlit as cl
from chainlit.input_widget import TextInput

from ollachat.app.conversation.contracts import Turn
from ollachat.app.conversation.service import (
    ConversationSession,
    EmptyTurnError,
    Relay,
    SessionBusyError,
)
from ollachat.app.conversation.transport import HttpRelay, LocalRelay
from ollachat.core.config import (
    DEFAULT_UPSTREAM_BASE_URL,
    AppConfig,
    load_app_config,
    relay_config_for,
)

LOGGER = logging.getLogger(__name__)

SESSION_KEY = "conversation"
MODEL_SETTING_ID = "model"
BASE_URL_SETTING_ID = "upstream_base_url"


def _build_relay(config: AppConfig, upstream_base_url: str | None = None) -> Relay:
    if config.relay_url:
        return HttpRelay(
            config.relay_url,
            upstream_base_url=upstream_base_url,
            timeout_s=config.upstream_timeout_seconds,
        )
    return LocalRelay(relay_config_for(config, explicit_base_url=upstream_base_url))


def _log_append(turn: Turn) -> None:
    LOGGER.debug(
        "transcript_append role=%s chars=%d", turn.role.value, len(turn.content)
    )


def _new_session(config: AppConfig) -> ConversationSession:
    return ConversationSession(
        _build_relay(config),
        model=config.default_model,
        on_append=_log_append,
    )


def _current_session() -> ConversationSession | None:
    session = cl.user_session.get(SESSION_KEY)
    if isinstance(session, ConversationSession):
        return session
    return None


def _parse_command(content: str) -> tuple[str, str] | None:
    text = content.strip()
    if not text.startswith("/"):
        return None
    name, _, argument = text.partition(" ")
    return name.lower(), argument.strip()


def _resolve_model_setting(settings: object, current: str) -> str:
    if not isinstance(settings, dict):
        return current
    value = settings.get(MODEL_SETTING_ID)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return current


def _resolve_base_url_setting(settings: object) -> str | None:
    if not isinstance(settings, dict):
        return None
    value = settings.get(BASE_URL_SETTING_ID)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _welcome_message(model: str) -> str:
    return (
        "Start a conversation with Ollama.\n\n"
        f"- Model: `{model}` (change it in settings or with `/model <name>`).\n"
        "- Use `/reset` to clear this chat and `/help` for commands."
    )


def _help_message() -> str:
    return (
        "Available commands:\n"
        "- `/model <name>`: switch the model for this chat\n"
        "- `/model`: show the current model\n"
        "- `/reset`: start over with an empty conversation\n"
        "- `/help`: show this command list"
    )


@cl.on_chat_start
async def on_chat_start() -> None:
    config = load_app_config()
    session = _new_session(config)
    cl.user_session.set(SESSION_KEY, session)
    await cl.ChatSettings(
        [
            TextInput(
                id=MODEL_SETTING_ID,
                label="Model",
                initial=session.model,
                placeholder=config.default_model,
            ),
            TextInput(
                id=BASE_URL_SETTING_ID,
                label="Ollama URL",
                initial="",
                placeholder=DEFAULT_UPSTREAM_BASE_URL,
                description="Ignored when OLLAMA_URL is set on the server.",
            ),
        ]
    ).send()
    await cl.Message(content=_welcome_message(session.model)).send()


@cl.on_settings_update
async def on_settings_update(settings: dict[str, object]) -> None:
    session = _current_session()
    if session is None:
        return
    session.set_model(_resolve_model_setting(settings, session.model))
    base_url = _resolve_base_url_setting(settings)
    try:
        session.use_relay(_build_relay(load_app_config(), upstream_base_url=base_url))
    except SessionBusyError as exc:
        await cl.Message(content=str(exc)).send()


async def _handle_command(
    session: ConversationSession, name: str, argument: str
) -> None:
    if name == "/help":
        await cl.Message(content=_help_message()).send()
        return

    if name == "/model":
        if argument:
            session.set_model(argument)
            await cl.Message(content=f"Model set to `{session.model}`.").send()
            return
        await cl.Message(content=f"Current model: `{session.model}`.").send()
        return

    if name == "/reset":
        try:
            session.reset()
        except SessionBusyError as exc:
            await cl.Message(content=str(exc)).send()
            return
        await cl.Message(content="Conversation cleared.").send()
        return

    await cl.Message(content=f"Unknown command `{name}`.\n\n{_help_message()}").send()


@cl.on_message
async def on_message(message: cl.Message) -> None:
    session = _current_session()
    if session is None:
        session = _new_session(load_app_config())
        cl.user_session.set(SESSION_KEY, session)

    command = _parse_command(message.content)
    if command is not None:
        await _handle_command(session, *command)
        return

    try:
        reply = await session.send_turn(message.content)
    except EmptyTurnError:
        await cl.Message(content="Type a message before sending.").send()
        return
    except SessionBusyError:
        await cl.Message(content="Still waiting on the previous reply.").send()
        return

    await cl.Message(content=reply.content).send()
