"""
Configuration for the Flowcraft execution engine service
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "http://localhost:3000"


class Settings(BaseSettings):
    """
    Flowcraft engine configuration settings
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # Core Service Configuration
    service_name: str = Field(
        default="flowcraft_engine",
        description="Service name",
        validation_alias=AliasChoices("SERVICE_NAME", "service_name"),
    )
    host: str = Field(
        default="0.0.0.0",
        description="Service host",
        validation_alias=AliasChoices("HOST", "host"),
    )
    port: int = Field(
        default=8010,
        description="Service port",
        validation_alias=AliasChoices("PORT", "port"),
    )
    debug: bool = Field(
        default=False,
        description="Debug mode",
        validation_alias=AliasChoices("DEBUG", "debug"),
    )

    # Execution Configuration
    base_url: str = Field(
        default="",
        description="Base URL that relative HTTP node URLs resolve against",
        validation_alias=AliasChoices(
            "FLOWCRAFT_BASE_URL", "NEXT_PUBLIC_FLOWCRAFT_BASE_URL", "base_url"
        ),
    )
    vercel_url: str = Field(
        default="",
        description="Deployment host used when no base URL is configured",
        validation_alias=AliasChoices("VERCEL_URL", "vercel_url"),
    )
    default_workspace_id: Optional[str] = Field(
        default=None,
        description="Workspace used by trigger endpoints when none is supplied",
        validation_alias=AliasChoices("FLOWCRAFT_DEFAULT_WORKSPACE_ID", "default_workspace_id"),
    )
    webhook_global_token: str = Field(
        default="",
        description="Deployment-wide fallback webhook token (empty disables it)",
        validation_alias=AliasChoices("FLOWCRAFT_WEBHOOK_GLOBAL_TOKEN", "webhook_global_token"),
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Per-attempt timeout for outbound HTTP calls",
        validation_alias=AliasChoices("FLOWCRAFT_HTTP_TIMEOUT_SECONDS", "http_timeout_seconds"),
    )

    # Email Configuration (send_email node)
    email_provider: str = Field(
        default="",
        description="Email provider (resend)",
        validation_alias=AliasChoices("EMAIL_PROVIDER", "email_provider"),
    )
    email_api_key: str = Field(
        default="",
        description="Email provider API key",
        validation_alias=AliasChoices("EMAIL_API_KEY", "RESEND_API_KEY", "email_api_key"),
    )
    email_from: str = Field(
        default="",
        description="Default sender address",
        validation_alias=AliasChoices("EMAIL_FROM", "email_from"),
    )

    # Storage Configuration
    storage_backend: str = Field(
        default="memory",
        description="Storage backend (memory/supabase)",
        validation_alias=AliasChoices("FLOWCRAFT_STORAGE_BACKEND", "storage_backend"),
    )
    supabase_url: str = Field(
        default="",
        description="Supabase project URL",
        validation_alias=AliasChoices("SUPABASE_URL", "supabase_url"),
    )
    supabase_secret_key: str = Field(
        default="",
        description="Supabase service role secret key",
        validation_alias=AliasChoices("SUPABASE_SECRET_KEY", "supabase_secret_key"),
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Log level",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
    )
    log_format: str = Field(
        default="simple",
        description="Log format (simple/json/standard)",
        validation_alias=AliasChoices("LOG_FORMAT", "log_format"),
    )

    @model_validator(mode="after")
    def _fill_base_url(self) -> "Settings":
        if not self.base_url:
            if self.vercel_url:
                self.base_url = f"https://{self.vercel_url}"
            else:
                self.base_url = DEFAULT_BASE_URL
        return self

    @property
    def email_configured(self) -> bool:
        return bool(self.email_provider and self.email_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Get settings instance (cached)"""
    return Settings()
