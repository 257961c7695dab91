"""Shared fixtures: fake notifier/provider and Lark event builders."""

import asyncio
import json
from typing import Any, Optional

import pytest

from oppbot.agent.analysis import AnalysisTask
from oppbot.agent.analyst import ProductAnalyst
from oppbot.agent.dispatcher import EventDispatcher
from oppbot.channels.feishu import DeliveryResult
from oppbot.nl.intent_engine import IntentEngine
from oppbot.providers.base import LLMProvider, LLMResponse
from oppbot.runtime.background import BackgroundRunner
from oppbot.settings import OppbotSettings


class FakeNotifier:
    """Records every send; ``fail_texts`` makes matching sends fail."""

    def __init__(self, fail_texts: tuple = (), raise_texts: tuple = ()):
        self.sent: list[tuple[str, str]] = []
        self.fail_texts = fail_texts
        self.raise_texts = raise_texts

    async def send(self, chat_id: str, text: str) -> DeliveryResult:
        self.sent.append((chat_id, text))
        if text in self.raise_texts:
            raise RuntimeError("boom")
        if text in self.fail_texts:
            return DeliveryResult(success=False, error="rejected")
        return DeliveryResult(success=True, message_id=f"om_{len(self.sent)}")

    @property
    def texts(self) -> list[str]:
        return [t for _, t in self.sent]


class FakeProvider(LLMProvider):
    """Returns a canned response; optionally waits on ``gate`` first."""

    def __init__(self, response: Optional[LLMResponse] = None, gate: Optional[asyncio.Event] = None):
        super().__init__()
        self.response = response or LLMResponse(content="🎯 **产品机会分析报告**")
        self.gate = gate
        self.calls: list[dict[str, Any]] = []

    async def chat(self, messages, model=None, max_tokens=1500, temperature=0.2) -> LLMResponse:
        self.calls.append(
            {"messages": messages, "model": model, "max_tokens": max_tokens, "temperature": temperature}
        )
        if self.gate is not None:
            await self.gate.wait()
        return self.response

    def get_default_model(self) -> str:
        return "deepseek/deepseek-chat"


def message_event(
    text: str,
    chat_id: str = "oc_group1",
    message_type: str = "text",
    event_type: str = "message.receive_v1",
    mentions: Optional[list] = None,
) -> dict:
    message = {
        "message_id": "om_in1",
        "chat_id": chat_id,
        "message_type": message_type,
        "content": json.dumps({"text": text}, ensure_ascii=False),
    }
    if mentions is not None:
        message["mentions"] = mentions
    return {"type": "event_callback", "event": {"type": event_type, "message": message}}


LONG_TEXT = "产品分析 今天和ChatGPT讨论了智能水杯的市场机会，用户反馈价格太高"
SHORT_TEXT = "产品分析 今天讨论了智能水杯"


@pytest.fixture
def settings():
    return OppbotSettings(
        _env_file=None,
        completion_api_key="sk-test",
        feishu_webhook_url="https://open.feishu.cn/open-apis/bot/v2/hook/test",
    )


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def dispatcher(notifier, provider):
    return EventDispatcher(
        intents=IntentEngine(),
        notifier=notifier,
        task=AnalysisTask(ProductAnalyst(provider), notifier),
        runner=BackgroundRunner(),
    )
