from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # Server
    api_host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")
    api_prefix: str = Field(default="/api", validation_alias="API_PREFIX")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # CORS / hosts
    allowed_origins: str = Field(default="*", validation_alias="ALLOWED_ORIGINS")
    allowed_methods: str = Field(default="POST,OPTIONS", validation_alias="ALLOWED_METHODS")
    allowed_headers: str = Field(default="Content-Type", validation_alias="ALLOWED_HEADERS")
    allowed_hosts: str = Field(default="*", validation_alias="ALLOWED_HOSTS")

    # Submission rate limiting
    rate_limit_backend: str = Field(default="memory", validation_alias="RATE_LIMIT_BACKEND")
    lead_cooldown_seconds: float = Field(default=60.0, gt=0, validation_alias="LEAD_COOLDOWN_SECONDS")
    rate_limit_max_entries: int = Field(default=1000, ge=2, validation_alias="RATE_LIMIT_MAX_ENTRIES")

    # Redis (only used by the redis rate limit backend)
    redis_url: str = Field(default="redis://redis:6379/0", validation_alias="REDIS_URL")
    redis_max_connections: int = Field(default=20, validation_alias="REDIS_MAX_CONNECTIONS")
    redis_socket_timeout: int = Field(default=5, validation_alias="REDIS_SOCKET_TIMEOUT")
    redis_socket_connect_timeout: int = Field(default=5, validation_alias="REDIS_SOCKET_CONNECT_TIMEOUT")

    # Email notification (Resend)
    resend_api_key: Optional[str] = Field(default=None, validation_alias="RESEND_API_KEY")
    resend_api_url: str = Field(default="https://api.resend.com/emails", validation_alias="RESEND_API_URL")
    resend_from_email: str = Field(default="leads@example.com", validation_alias="RESEND_FROM_EMAIL")
    resend_from_name: str = Field(default="Website Leads", validation_alias="RESEND_FROM_NAME")
    admin_email: str = Field(default="admin@example.com", validation_alias="ADMIN_EMAIL")

    # Lead store (spreadsheet automation web app)
    sheet_webapp_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SHEET_WEBAPP_URL", "NEXT_PUBLIC_SHEET_WEBAPP_URL"),
    )

    # Outbound sink calls
    sink_timeout_seconds: float = Field(default=10.0, gt=0, validation_alias="SINK_TIMEOUT_SECONDS")

    # Analytics (exposed to the page shell only)
    ga_measurement_id: Optional[str] = Field(default=None, validation_alias="GA_MEASUREMENT_ID")

    # Monitoring
    sentry_dsn: Optional[str] = Field(default=None, validation_alias="SENTRY_DSN")

    @field_validator("environment")
    def validate_environment(cls, v):
        valid_envs = ["development", "testing", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v):
        valid_formats = ["json", "console"]
        if v not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return v

    @field_validator("rate_limit_backend")
    def validate_rate_limit_backend(cls, v):
        valid_backends = ["memory", "redis"]
        if v not in valid_backends:
            raise ValueError(f"rate_limit_backend must be one of {valid_backends}")
        return v

    @field_validator("resend_api_key", "sheet_webapp_url", "ga_measurement_id", "sentry_dsn")
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v is not None else v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    def origins(self) -> List[str]:
        if self.allowed_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def methods(self) -> List[str]:
        return [method.strip() for method in self.allowed_methods.split(",") if method.strip()]

    def headers(self) -> List[str]:
        return [header.strip() for header in self.allowed_headers.split(",") if header.strip()]

    def hosts(self) -> List[str]:
        return [host.strip() for host in self.allowed_hosts.split(",") if host.strip()]


settings = Settings()
