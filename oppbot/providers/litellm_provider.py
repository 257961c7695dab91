"""LiteLLM provider implementation for OpenAI-compatible completion endpoints."""

from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from oppbot.providers.base import LLMProvider, LLMResponse


class LiteLLMProvider(LLMProvider):
    """
    LLM provider using LiteLLM.

    One request per call, no retries. Transport errors and non-2xx statuses
    come back as an ``LLMResponse`` with ``finish_reason="error"``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "deepseek/deepseek-chat",
        timeout: float | None = None,
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model
        self.timeout = timeout

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True
        # Drop unsupported parameters for providers
        litellm.drop_params = True

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 1500,
        temperature: float = 0.2,
    ) -> LLMResponse:
        """
        Send a chat completion request via LiteLLM.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            model: Model identifier (e.g., 'deepseek/deepseek-chat').
            max_tokens: Maximum tokens in response.
            temperature: Sampling temperature.

        Returns:
            LLMResponse with the first choice's content, or an error marker.
        """
        model = model or self.default_model
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "num_retries": 0,
        }
        # Pass api_key directly — more reliable than env vars alone
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.timeout:
            kwargs["timeout"] = self.timeout

        try:
            response = await acompletion(**kwargs)
            return self._parse_response(response, resolved_model=model)
        except Exception as e:
            logger.error(f"LLM call failed ({model}): {e}")
            return LLMResponse(content=None, finish_reason="error", model=model, error=str(e))

    def _parse_response(self, response: Any, *, resolved_model: str = "") -> LLMResponse:
        """Parse LiteLLM response into our standard format."""
        choice = response.choices[0]
        message = choice.message

        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=message.content,
            finish_reason=choice.finish_reason or "stop",
            usage=usage,
            model=resolved_model or getattr(response, "model", ""),
        )

    def get_default_model(self) -> str:
        """Get the default model."""
        return self.default_model
