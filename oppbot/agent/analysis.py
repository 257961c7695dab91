"""Async analysis task: processing notice -> completion -> result message."""

from __future__ import annotations

from loguru import logger

from oppbot.agent.analyst import ProductAnalyst
from oppbot.channels.feishu import DeliveryResult, Notifier

PROCESSING_NOTICE = "🤖 正在AI分析中，请稍等片刻..."
FAILURE_NOTICE = "❌ 分析过程中出现错误，请检查对话内容或稍后再试"
TOO_SHORT_NOTICE = (
    '📝 请在"产品分析"后面提供具体的对话内容\n\n'
    "示例：产品分析 [粘贴你与AI的对话内容]"
)
HELP_MESSAGE = (
    "🤖 产品分析机器人使用说明：\n\n"
    "1. 发送：产品分析 [AI对话内容]\n"
    "2. 我会自动提取产品机会\n"
    "3. 分析结果会直接发送到群里\n\n"
    "示例：\n"
    "产品分析 今天和ChatGPT讨论了智能水杯的市场机会..."
)


class AnalysisTask:
    """Runs one analysis end to end. Never raises; nothing awaits it."""

    def __init__(self, analyst: ProductAnalyst, notifier: Notifier) -> None:
        self.analyst = analyst
        self.notifier = notifier

    async def run(self, text: str, chat_id: str) -> DeliveryResult:
        await self._send_processing_notice(chat_id)
        try:
            report = await self.analyst.analyze(text)

            result = await self.notifier.send(chat_id, report)
            if not result.success:
                raise RuntimeError(f"result delivery failed: {result.error}")
            logger.info(f"Analysis delivered to {chat_id}")
            return result
        except Exception as e:
            logger.opt(exception=e).error(f"Analysis for {chat_id} failed: {e}")
            return await self._send_failure_notice(chat_id)

    async def _send_processing_notice(self, chat_id: str) -> None:
        try:
            notice = await self.notifier.send(chat_id, PROCESSING_NOTICE)
        except Exception as e:
            logger.warning(f"Processing notice to {chat_id} raised: {e}")
            return
        if not notice.success:
            logger.warning(f"Processing notice to {chat_id} not delivered: {notice.error}")

    async def _send_failure_notice(self, chat_id: str) -> DeliveryResult:
        try:
            result = await self.notifier.send(chat_id, FAILURE_NOTICE)
        except Exception as e:
            logger.error(f"Failure notice to {chat_id} raised: {e}")
            return DeliveryResult(success=False, error=str(e))
        if not result.success:
            logger.error(f"Failure notice to {chat_id} not delivered: {result.error}")
        return result
