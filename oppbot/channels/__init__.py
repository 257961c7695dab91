"""Outbound chat channels."""

from oppbot.channels.feishu import (
    AppNotifier,
    DeliveryResult,
    Notifier,
    TenantTokenProvider,
    WebhookNotifier,
    build_notifier,
)

__all__ = [
    "AppNotifier",
    "DeliveryResult",
    "Notifier",
    "TenantTokenProvider",
    "WebhookNotifier",
    "build_notifier",
]
