"""Analysis pipeline: completion client, background task, event dispatcher."""

from oppbot.agent.analysis import AnalysisTask
from oppbot.agent.analyst import CompletionResult, ProductAnalyst
from oppbot.agent.dispatcher import EventDispatcher, build_dispatcher

__all__ = [
    "AnalysisTask",
    "CompletionResult",
    "EventDispatcher",
    "ProductAnalyst",
    "build_dispatcher",
]
