# src/osint_investigator/config/settings.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_ROOT = Path(__file__).resolve().parents[3]


class Secrets(BaseSettings):
    """Credential and sensitive configuration layer."""

    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_key: str | None = Field(default=None, alias="SUPABASE_KEY")
    agent_gateway_url: str | None = Field(default=None, alias="AGENT_GATEWAY_URL")
    agent_gateway_token: str | None = Field(default=None, alias="AGENT_GATEWAY_TOKEN")
    tavily_api_key: str | None = Field(default=None, alias="TAVILY_API_KEY")
    google_api_key: str | None = Field(default=None, alias="GOOGLE_API_KEY")
    google_cse_id: str | None = Field(default=None, alias="GOOGLE_CSE_ID")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


class RuntimeSettings(BaseSettings):
    """Non-secret application settings."""

    environment: Literal["local", "dev", "staging", "prod"] = Field(default="local")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO", alias="LOG_LEVEL")
    agent_timeout_seconds: float = Field(default=45.0, gt=0, alias="AGENT_TIMEOUT")
    max_concurrent_agents: int = Field(default=8, ge=1, alias="MAX_CONCURRENT_AGENTS")
    agent_retry_attempts: int = Field(default=2, ge=1, alias="AGENT_RETRY_ATTEMPTS")
    web_query_top_n: int = Field(default=5, ge=0, alias="WEB_QUERY_TOP_N")
    storage_backend: Literal["memory", "json", "supabase"] = Field(default="json", alias="STORAGE_BACKEND")
    web_search_backend: Literal["gateway", "tavily", "google"] = Field(default="gateway", alias="WEB_SEARCH_BACKEND")
    data_dir: Path = Field(default=APP_ROOT / "data")
    findings_dir: Path = Field(default=APP_ROOT / "data" / "investigations")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


class Settings:
    """Centralized settings facade accessible throughout the application."""

    def __init__(self) -> None:
        self.secrets = Secrets()
        self.runtime = RuntimeSettings()

    def as_dict(self) -> dict[str, Any]:
        return {
            "environment": self.runtime.environment,
            "log_level": self.runtime.log_level,
            "agent_timeout_seconds": self.runtime.agent_timeout_seconds,
            "max_concurrent_agents": self.runtime.max_concurrent_agents,
            "agent_retry_attempts": self.runtime.agent_retry_attempts,
            "web_query_top_n": self.runtime.web_query_top_n,
            "storage_backend": self.runtime.storage_backend,
            "web_search_backend": self.runtime.web_search_backend,
            "data_dir": str(self.runtime.data_dir),
            "findings_dir": str(self.runtime.findings_dir),
            "supabase_configured": bool(self.secrets.supabase_url and self.secrets.supabase_key),
            "agent_gateway_configured": self.secrets.agent_gateway_url is not None,
            "tavily_configured": self.secrets.tavily_api_key is not None,
            "google_configured": bool(self.secrets.google_api_key and self.secrets.google_cse_id),
        }


settings = Settings()
