"""Feishu/Lark outbound delivery.

Two deployment modes behind one ``Notifier`` interface:

- ``webhook``: POST to a fixed group custom-bot URL; the destination id is
  ignored because the URL already names the group.
- ``app``: exchange app id/secret for a tenant access token, then call the
  IM send-message API for the chat that triggered the event.

``send`` never raises; the outcome comes back as a ``DeliveryResult``.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx
from loguru import logger

from oppbot.settings import ConfigError, OppbotSettings

_TOKEN_PATH = "/auth/v3/tenant_access_token/internal"
_SEND_PATH = "/im/v1/messages"
_TOKEN_EXPIRY_MARGIN = 300  # seconds shaved off the advertised lifetime


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    success: bool
    message_id: str = ""
    error: str = ""


@runtime_checkable
class Notifier(Protocol):
    """Interface for sending a text message to a chat."""

    async def send(self, chat_id: str, text: str) -> DeliveryResult: ...


def _lark_error(resp: httpx.Response) -> str:
    """Return an error description, or "" when Lark accepted the request.

    Lark answers some failures with HTTP 200 and a non-zero ``code``.
    """
    if not resp.is_success:
        return f"HTTP {resp.status_code}: {resp.text[:200]}"
    try:
        data = resp.json()
    except ValueError:
        return ""
    if not isinstance(data, dict):
        return ""
    code = data.get("code", data.get("StatusCode", 0))
    if code not in (0, None):
        return f"code={code}, msg={data.get('msg') or data.get('StatusMessage', '')}"
    return ""


class WebhookNotifier:
    """Group custom-bot webhook. No per-chat routing, no auth beyond the URL."""

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self._timeout = timeout
        self._transport = transport

    async def send(self, chat_id: str, text: str) -> DeliveryResult:
        payload = {"msg_type": "text", "content": {"text": text}}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self.webhook_url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Feishu webhook send failed: {e!r}")
            return DeliveryResult(success=False, error=str(e) or type(e).__name__)

        error = _lark_error(resp)
        if error:
            logger.error(f"Feishu webhook send failed: {error}")
            return DeliveryResult(success=False, error=error)
        logger.debug(f"Sent text via webhook ({len(text)} chars)")
        return DeliveryResult(success=True)


class TenantTokenProvider:
    """Fetches tenant access tokens.

    With ``cache=False`` every call performs a fresh exchange. With
    ``cache=True`` the token is reused until shortly before it expires and
    concurrent callers share one in-flight exchange.
    """

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        api_base: str = "https://open.feishu.cn/open-apis",
        cache: bool = False,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.app_id = app_id
        self.app_secret = app_secret
        self.api_base = api_base.rstrip("/")
        self.cache = cache
        self._timeout = timeout
        self._transport = transport
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    async def get_token(self) -> str | None:
        """Return a token, or None when the exchange fails (already logged)."""
        if not self.cache:
            token, _ = await self._fetch()
            return token

        async with self._lock:
            if self._token and time.monotonic() < self._expires_at:
                return self._token
            token, expire = await self._fetch()
            if token:
                lifetime = expire - _TOKEN_EXPIRY_MARGIN if expire > _TOKEN_EXPIRY_MARGIN else expire / 2
                self._token = token
                self._expires_at = time.monotonic() + lifetime
            return token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    async def _fetch(self) -> tuple[str | None, float]:
        url = f"{self.api_base}{_TOKEN_PATH}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    url, json={"app_id": self.app_id, "app_secret": self.app_secret}
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Tenant token request failed: {e!r}")
            return None, 0.0

        error = _lark_error(resp)
        if error:
            logger.error(f"Tenant token request rejected: {error}")
            return None, 0.0
        try:
            data: dict[str, Any] = resp.json()
        except ValueError:
            logger.error("Tenant token response is not JSON")
            return None, 0.0
        token = data.get("tenant_access_token")
        if not token:
            logger.error(f"Tenant token missing in response: {str(data)[:200]}")
            return None, 0.0
        return str(token), float(data.get("expire") or 0)


class AppNotifier:
    """App-credential delivery to the chat identified by ``chat_id``."""

    def __init__(
        self,
        tokens: TenantTokenProvider,
        api_base: str = "https://open.feishu.cn/open-apis",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.tokens = tokens
        self.api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def send(self, chat_id: str, text: str) -> DeliveryResult:
        token = await self.tokens.get_token()
        if not token:
            return DeliveryResult(success=False, error="no tenant access token")

        body = {
            "receive_id": chat_id,
            "msg_type": "text",
            "content": json.dumps({"text": text}, ensure_ascii=False),
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self.api_base}{_SEND_PATH}",
                    params={"receive_id_type": "chat_id"},
                    headers={"Authorization": f"Bearer {token}"},
                    json=body,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Feishu send to {chat_id} failed: {e!r}")
            return DeliveryResult(success=False, error=str(e) or type(e).__name__)

        error = _lark_error(resp)
        if error:
            logger.error(f"Feishu send to {chat_id} failed: {error}")
            if resp.status_code in (401, 403):
                self.tokens.invalidate()
            return DeliveryResult(success=False, error=error)

        message_id = ""
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            message_id = str(data["data"].get("message_id", ""))
        logger.debug(f"Sent text to {chat_id} ({len(text)} chars)")
        return DeliveryResult(success=True, message_id=message_id)


def build_notifier(
    settings: OppbotSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Notifier:
    """Pick the delivery mode from settings; raise ``ConfigError`` if it is incomplete."""
    if settings.delivery_mode == "webhook":
        if not settings.feishu_webhook_url:
            raise ConfigError("delivery_mode=webhook requires OPPBOT_FEISHU_WEBHOOK_URL")
        return WebhookNotifier(
            settings.feishu_webhook_url, timeout=settings.feishu_timeout, transport=transport
        )

    if not (settings.feishu_app_id and settings.feishu_app_secret):
        raise ConfigError(
            "delivery_mode=app requires OPPBOT_FEISHU_APP_ID and OPPBOT_FEISHU_APP_SECRET"
        )
    tokens = TenantTokenProvider(
        settings.feishu_app_id,
        settings.feishu_app_secret,
        api_base=settings.feishu_api_base,
        cache=settings.cache_tenant_token,
        timeout=settings.feishu_timeout,
        transport=transport,
    )
    return AppNotifier(
        tokens, api_base=settings.feishu_api_base, timeout=settings.feishu_timeout, transport=transport
    )
