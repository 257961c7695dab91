"""Inbound Lark event model."""

from oppbot.bus.events import (
    InboundEvent,
    Mention,
    MessageCallback,
    MessagePayload,
    OtherEvent,
    VerificationChallenge,
    parse_event,
)

__all__ = [
    "InboundEvent",
    "Mention",
    "MessageCallback",
    "MessagePayload",
    "OtherEvent",
    "VerificationChallenge",
    "parse_event",
]
