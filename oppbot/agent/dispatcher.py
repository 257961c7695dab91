"""Event dispatcher: turns one inbound Lark event into an HTTP answer.

Slow work (the completion call) is handed to the background runner so the
webhook is acknowledged well inside Lark's delivery timeout. Lark retries
any non-2xx, so every application-level condition answers 200.
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

from oppbot.agent.analysis import HELP_MESSAGE, TOO_SHORT_NOTICE, AnalysisTask
from oppbot.agent.analyst import ProductAnalyst
from oppbot.bus.events import (
    InboundEvent,
    MessageCallback,
    OtherEvent,
    VerificationChallenge,
    parse_event,
)
from oppbot.channels.feishu import Notifier, build_notifier
from oppbot.nl.intent_engine import (
    AnalysisRequest,
    HelpRequest,
    IntentEngine,
    RequestTooShort,
)
from oppbot.providers.litellm_provider import LiteLLMProvider
from oppbot.runtime.background import BackgroundRunner
from oppbot.settings import OppbotSettings

DispatchResult = tuple[int, dict[str, Any]]


def answer_challenge(event: VerificationChallenge) -> dict[str, str]:
    """URL verification handshake: echo the token unchanged."""
    return {"challenge": event.challenge}


class EventDispatcher:
    def __init__(
        self,
        intents: IntentEngine,
        notifier: Notifier,
        task: AnalysisTask,
        runner: BackgroundRunner,
        encrypt_key: str = "",
    ) -> None:
        self.intents = intents
        self.notifier = notifier
        self.task = task
        self.runner = runner
        self.encrypt_key = encrypt_key

    # ── decoding ──

    def decode(self, body: bytes) -> InboundEvent:
        """Parse (and decrypt, if needed) a raw body. Never raises."""
        try:
            raw = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Unparseable webhook body ({len(body)} bytes): {e}")
            return OtherEvent()

        if isinstance(raw, dict) and "encrypt" in raw:
            if not self.encrypt_key:
                logger.warning("Encrypted event received but no encrypt key configured")
                return OtherEvent()
            try:
                from lark_oapi import AESCipher

                plaintext = AESCipher(self.encrypt_key).decrypt_str(raw["encrypt"])
                raw = json.loads(plaintext)
            except Exception as e:
                logger.warning(f"Failed to decrypt event: {e}")
                return OtherEvent()
            logger.debug(f"Decrypted event: {str(raw)[:300]}")

        try:
            return parse_event(raw)
        except Exception as e:
            logger.opt(exception=e).warning(
                f"Malformed webhook event: {e}; raw={body[:2000].decode('utf-8', 'replace')}"
            )
            return OtherEvent()

    # ── dispatch ──

    async def handle(self, event: InboundEvent, raw: bytes = b"") -> DispatchResult:
        """Dispatch with the 500 safety net; the raw body is logged on failure."""
        try:
            return await self.dispatch(event)
        except Exception as e:
            logger.opt(exception=e).error(
                f"Error handling webhook event: {e}; raw={raw[:2000].decode('utf-8', 'replace')}"
            )
            return 500, {"error": "Internal Server Error"}

    async def dispatch(self, event: InboundEvent) -> DispatchResult:
        if isinstance(event, VerificationChallenge):
            return 200, answer_challenge(event)
        if not isinstance(event, MessageCallback):
            logger.debug(f"Ignoring event type={event.event_type!r}")
            return 200, {"status": "ok"}

        message = event.message
        if message.is_reply:
            logger.debug(f"Ignoring reply message {message.message_id} in {message.chat_id}")
            return 200, {"status": "ignored_reply"}

        text = message.text
        logger.info(f"Message in {message.chat_id}: {text[:200]!r}")
        intent = self.intents.detect(text, message.mentions)

        if isinstance(intent, AnalysisRequest):
            self.runner.spawn(
                self.task.run(intent.text, message.chat_id),
                name=f"analysis:{message.chat_id}:{message.message_id}",
            )
            return 200, {"status": "processing"}

        if isinstance(intent, RequestTooShort):
            await self.notifier.send(message.chat_id, TOO_SHORT_NOTICE)
        elif isinstance(intent, HelpRequest):
            await self.notifier.send(message.chat_id, HELP_MESSAGE)
        return 200, {"status": "ok"}


def build_dispatcher(settings: OppbotSettings, transport: Any = None) -> EventDispatcher:
    """Wire provider, analyst, notifier and runner from settings."""
    provider = LiteLLMProvider(
        api_key=settings.completion_api_key or None,
        api_base=settings.completion_api_base or None,
        default_model=settings.completion_model,
        timeout=settings.completion_timeout,
    )
    analyst = ProductAnalyst(
        provider,
        max_tokens=settings.completion_max_tokens,
        temperature=settings.completion_temperature,
    )
    notifier = build_notifier(settings, transport=transport)
    return EventDispatcher(
        intents=IntentEngine(bot_name=settings.bot_name),
        notifier=notifier,
        task=AnalysisTask(analyst, notifier),
        runner=BackgroundRunner(),
        encrypt_key=settings.encrypt_key,
    )
