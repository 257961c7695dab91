"""Inbound Lark event types and envelope parsing."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

MESSAGE_EVENT_TYPES = frozenset({"message.receive_v1", "im.message.receive_v1"})


@dataclass(frozen=True, slots=True)
class Mention:
    """One ``@`` in a Lark message; ``key`` is the ``@_user_N`` placeholder in the text."""

    key: str
    name: str = ""
    open_id: str = ""


@dataclass(frozen=True, slots=True)
class MessagePayload:
    """The ``event.message`` part of a message callback."""

    raw_content: str  # JSON string, e.g. '{"text": "..."}'
    chat_id: str
    message_type: str = "text"  # text, post, reply, ...
    message_id: str = ""
    mentions: tuple[Mention, ...] = ()

    @property
    def is_reply(self) -> bool:
        return self.message_type == "reply"

    @property
    def text(self) -> str:
        """Plain text carried by ``raw_content``; empty when absent or malformed."""
        try:
            content = json.loads(self.raw_content or "{}")
        except (json.JSONDecodeError, TypeError):
            return ""
        if not isinstance(content, dict):
            return ""
        text = content.get("text", "")
        return text if isinstance(text, str) else ""


@dataclass(frozen=True, slots=True)
class VerificationChallenge:
    challenge: str


@dataclass(frozen=True, slots=True)
class MessageCallback:
    event_type: str
    message: MessagePayload


@dataclass(frozen=True, slots=True)
class OtherEvent:
    """Anything we do not act on: unknown envelope or event type."""

    event_type: str = ""
    raw: dict[str, Any] = field(default_factory=dict)


InboundEvent = Union[VerificationChallenge, MessageCallback, OtherEvent]


def parse_event(data: Any) -> InboundEvent:
    """Classify a decoded webhook body.

    Handles the v1 envelope (``type`` + ``event.type``) and the v2 envelope
    (``schema: "2.0"`` + ``header.event_type``). Never raises: anything that
    does not look like a challenge or a message callback is an ``OtherEvent``.
    """
    if not isinstance(data, dict):
        return OtherEvent()

    if data.get("type") == "url_verification":
        return VerificationChallenge(challenge=str(data.get("challenge", "")))

    event = data.get("event")
    if not isinstance(event, dict):
        return OtherEvent(event_type=str(data.get("type", "")), raw=data)

    if data.get("type") == "event_callback":
        event_type = str(event.get("type", ""))
    elif data.get("schema") == "2.0":
        header = data.get("header") or {}
        event_type = str(header.get("event_type", "")) if isinstance(header, dict) else ""
    else:
        return OtherEvent(event_type=str(data.get("type", "")), raw=data)

    message = event.get("message")
    if event_type not in MESSAGE_EVENT_TYPES or not isinstance(message, dict):
        return OtherEvent(event_type=event_type, raw=data)

    return MessageCallback(event_type=event_type, message=_parse_message(message))


def _parse_message(message: dict[str, Any]) -> MessagePayload:
    raw_mentions = message.get("mentions")
    if not isinstance(raw_mentions, (list, tuple)):
        raw_mentions = []
    mentions = []
    for m in raw_mentions:
        if not isinstance(m, dict) or not m.get("key"):
            continue
        ident = m.get("id") or {}
        mentions.append(
            Mention(
                key=str(m["key"]),
                name=str(m.get("name", "")),
                open_id=str(ident.get("open_id", "")) if isinstance(ident, dict) else "",
            )
        )
    content = message.get("content", "")
    return MessagePayload(
        raw_content=content if isinstance(content, str) else json.dumps(content),
        chat_id=str(message.get("chat_id", "")),
        message_type=str(message.get("message_type", "text")),
        message_id=str(message.get("message_id", "")),
        mentions=tuple(mentions),
    )
