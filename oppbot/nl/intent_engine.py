"""Keyword intent detection for inbound chat text.

Exactly one intent per message. Precedence: an analysis keyword wins
(``AnalysisRequest`` or ``RequestTooShort``), then ``HelpRequest``,
then ``NoIntent``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from oppbot.bus.events import Mention

ANALYSIS_KEYWORDS = ("产品分析", "分析产品")
HELP_KEYWORD = "帮助"
HELP_LITERAL = "help"
MIN_ANALYSIS_CHARS = 10  # stripped text must be strictly longer

_KEYWORD_RE = re.compile("|".join(re.escape(k) for k in ANALYSIS_KEYWORDS))
_MENTION_RE = re.compile(r"@\S+")


@dataclass(frozen=True, slots=True)
class AnalysisRequest:
    text: str


@dataclass(frozen=True, slots=True)
class RequestTooShort:
    """Keyword present but not enough material left to analyse."""

    text: str


@dataclass(frozen=True, slots=True)
class HelpRequest:
    pass


@dataclass(frozen=True, slots=True)
class NoIntent:
    pass


Intent = Union[AnalysisRequest, RequestTooShort, HelpRequest, NoIntent]


def has_analysis_keyword(text: str) -> bool:
    return _KEYWORD_RE.search(text) is not None


def strip_command(text: str) -> str:
    """Remove analysis keywords and ``@mention`` tokens, then trim."""
    return _MENTION_RE.sub("", _KEYWORD_RE.sub("", text)).strip()


def mentions_bot(mentions: Iterable[Mention], bot_name: str = "") -> bool:
    """True when the bot itself is @-mentioned.

    Without a configured ``bot_name`` any mention counts: in group chats Lark
    only delivers messages that @ the bot.
    """
    mentions = list(mentions)
    if not bot_name:
        return bool(mentions)
    return any(m.name == bot_name for m in mentions)


def is_help(text: str) -> bool:
    return HELP_KEYWORD in text or _MENTION_RE.sub("", text).strip().lower() == HELP_LITERAL


class IntentEngine:
    """Classifies message text into a single ``Intent``."""

    def __init__(self, bot_name: str = "") -> None:
        self.bot_name = bot_name

    def detect(self, text: str, mentions: Iterable[Mention] = ()) -> Intent:
        if has_analysis_keyword(text):
            stripped = strip_command(text)
            if len(stripped) > MIN_ANALYSIS_CHARS:
                return AnalysisRequest(text=stripped)
            return RequestTooShort(text=stripped)
        if is_help(text):
            return HelpRequest()
        # a bare mention asks for help; a mention with chat attached does not
        if not _MENTION_RE.sub("", text).strip() and mentions_bot(mentions, self.bot_name):
            return HelpRequest()
        return NoIntent()
