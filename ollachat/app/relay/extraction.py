from __future__ import annotations

import json
from typing import Any, Callable

ReplyExtractor = Callable[[Any], "str | None"]


def _non_empty_text(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def message_content(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if not isinstance(message, dict):
        return None
    return _non_empty_text(message.get("content"))


def message_text(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    return _non_empty_text(body.get("message"))


def response_text(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    return _non_empty_text(body.get("response"))


def serialized_body(body: Any) -> str | None:
    return json.dumps(body)


# Upstream server versions disagree on where the reply lives.
REPLY_EXTRACTORS: tuple[ReplyExtractor, ...] = (
    message_content,
    message_text,
    response_text,
    serialized_body,
)


def extract_reply_text(
    body: Any,
    extractors: tuple[ReplyExtractor, ...] = REPLY_EXTRACTORS,
) -> str:
    for extractor in extractors:
        text = extractor(body)
        if text:
            return text
    return json.dumps(body)
