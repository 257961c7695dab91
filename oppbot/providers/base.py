"""Base LLM provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class LLMResponse:
    """Response from an LLM provider. ``finish_reason == "error"`` marks a failed call."""

    content: str | None
    finish_reason: str = "stop"
    usage: dict[str, int] = field(default_factory=dict)
    model: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.finish_reason != "error" and bool(self.content)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    def __init__(self, api_key: str | None = None, api_base: str | None = None):
        self.api_key = api_key
        self.api_base = api_base

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 1500,
        temperature: float = 0.2,
    ) -> LLMResponse:
        """Send a chat completion request. Must not raise."""

    @abstractmethod
    def get_default_model(self) -> str:
        """Get the default model for this provider."""
