"""Runtime helpers for background work."""

from oppbot.runtime.background import BackgroundRunner

__all__ = ["BackgroundRunner"]
