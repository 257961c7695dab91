"""Centralised settings for oppbot, loaded from env / .env."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(RuntimeError):
    """Raised at startup when the selected delivery mode is not configured."""


class OppbotSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="OPPBOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # --- general ---
    app_name: str = "oppbot"
    log_level: str = "INFO"

    # --- HTTP ---
    host: str = "0.0.0.0"
    port: int = 3000

    # --- completion endpoint (DeepSeek by default, any litellm model works) ---
    completion_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("OPPBOT_COMPLETION_API_KEY", "DEEPSEEK_API_KEY"),
    )
    completion_api_base: str = "https://api.deepseek.com/v1"
    completion_model: str = "deepseek/deepseek-chat"
    completion_max_tokens: int = 1500
    completion_temperature: float = 0.2
    completion_timeout: float = 120.0

    # --- Lark / Feishu delivery ---
    delivery_mode: Literal["webhook", "app"] = "webhook"
    feishu_webhook_url: str = Field(
        default="",
        validation_alias=AliasChoices("OPPBOT_FEISHU_WEBHOOK_URL", "FEISHU_WEBHOOK"),
    )
    feishu_app_id: str = Field(
        default="",
        validation_alias=AliasChoices("OPPBOT_FEISHU_APP_ID", "FEISHU_APP_ID"),
    )
    feishu_app_secret: str = Field(
        default="",
        validation_alias=AliasChoices("OPPBOT_FEISHU_APP_SECRET", "FEISHU_APP_SECRET"),
    )
    feishu_api_base: str = "https://open.feishu.cn/open-apis"
    feishu_timeout: float = 15.0
    encrypt_key: str = ""  # Lark "Encrypt Key"; empty = plaintext events
    bot_name: str = ""  # display name used to recognise an explicit @bot mention

    # token reuse is off unless asked for; every send exchanges credentials
    cache_tenant_token: bool = False

    # --- background work ---
    drain_timeout_seconds: float = 30.0


@lru_cache
def get_settings() -> OppbotSettings:
    return OppbotSettings()
