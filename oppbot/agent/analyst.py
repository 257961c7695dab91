"""Product-opportunity analyst — prompt template + single completion call."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from oppbot.providers.base import LLMProvider

PROMPT_TEMPLATE = """你是专业的亚马逊产品选品专家。请仔细分析以下AI对话内容，识别所有具有商业潜力的产品机会。

对话内容：
{text}

请按照以下格式输出分析结果：

🎯 **产品机会分析报告**

**发现的产品机会：**

1. **【产品名称】** - 产品类别
   • 市场机会：具体描述市场需求和机会点
   • 需求等级：⭐⭐⭐⭐⭐ (1-5星)
   • 竞争程度：高/中/低
   • 预估利润：高/中/低
   • 选品建议：具体的采购、定价、推广建议

2. **【产品名称】** - 产品类别
   • 市场机会：...

**总结建议：**
- 最值得关注的前3个产品
- 需要进一步调研的方向
- 风险提示

如果没有发现明确的产品机会，请回复：
❌ 在此对话中未识别到明确的产品商机，建议：
1. 提供更具体的产品讨论内容
2. 包含市场需求、竞争情况等信息
3. 重新整理对话内容后再次分析"""

UNAVAILABLE_MESSAGE = (
    "❌ AI分析服务暂时不可用，可能的原因：\n"
    "• API密钥无效\n"
    "• 网络连接问题\n"
    "• 服务暂时不可用\n\n"
    "请稍后再试或检查配置。"
)


@dataclass(frozen=True, slots=True)
class CompletionResult:
    success: bool
    content: str = ""
    error: str = ""

    @property
    def message(self) -> str:
        """Text to show in chat: the report, or the fixed diagnostic."""
        return self.content if self.success else UNAVAILABLE_MESSAGE


def build_prompt(text: str) -> str:
    return PROMPT_TEMPLATE.format(text=text)


class ProductAnalyst:
    """Sends extracted chat text to the completion endpoint."""

    def __init__(
        self,
        provider: LLMProvider,
        model: str | None = None,
        max_tokens: int = 1500,
        temperature: float = 0.2,
    ) -> None:
        self.provider = provider
        self.model = model or provider.get_default_model()
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def complete(self, text: str) -> CompletionResult:
        response = await self.provider.chat(
            messages=[{"role": "user", "content": build_prompt(text)}],
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        if not response.ok:
            error = response.error or f"empty completion (finish_reason={response.finish_reason})"
            logger.warning(f"Analysis completion failed: {error}")
            return CompletionResult(success=False, error=error)
        logger.info(f"Analysis completed: {len(response.content or '')} chars, usage={response.usage}")
        return CompletionResult(success=True, content=response.content or "")

    async def analyze(self, text: str) -> str:
        """Always returns a string; failures degrade to ``UNAVAILABLE_MESSAGE``."""
        return (await self.complete(text)).message
