from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Console configuration read from environment variables."""

    app_name: str = Field(default="Ticket Desk")
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="%(asctime)s %(levelname)s %(name)s %(message)s")

    # Backend configuration
    api_base_url: str = Field(default="http://localhost:3001/api")
    api_timeout: float = Field(default=10.0)
    api_token: str | None = Field(default=None)

    # Author stamped on automatic annotations
    operator_name: str = Field(default="Técnico Admin")
    operator_avatar: str | None = Field(default=None)

    default_currency: str = Field(default="UYU")
    audio_mime_type: str = Field(default="audio/webm")

    # Observability configuration
    otel_enabled: bool = Field(default=False)
    otel_service_name: str = Field(default="ticketdesk")
    otel_exporter_otlp_endpoint: str | None = Field(default=None)
    otel_exporter_otlp_headers: str | None = Field(default=None)

    class Config:
        env_file = ".env"
        env_prefix = "TICKETDESK_"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the console settings."""

    return Settings()
