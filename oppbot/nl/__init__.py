"""Natural-language intent detection."""

from oppbot.nl.intent_engine import (
    AnalysisRequest,
    HelpRequest,
    Intent,
    IntentEngine,
    NoIntent,
    RequestTooShort,
)

__all__ = [
    "AnalysisRequest",
    "HelpRequest",
    "Intent",
    "IntentEngine",
    "NoIntent",
    "RequestTooShort",
]
