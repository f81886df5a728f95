"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central settings pulled from .env / environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Financial Modeling Prep
    fmp_api_key: str | None = None
    """API key for financialmodelingprep.com. Required to start the server."""

    fmp_base_url: str = "https://financialmodelingprep.com/api/v3"
    fmp_timeout_seconds: float = 30.0

    # App
    app_env: str = "development"
    log_level: str = "INFO"

    # MCP
    mcp_server_name: str = "financial-modeling-prep-server"
    mcp_server_version: str = "1.0.0"

    # FastAPI (SSE transport)
    fastapi_host: str = "0.0.0.0"
    fastapi_port: int = 8000

    # Security Headers
    enable_security_headers: bool = True
    allowed_origins: str = "*"
    """Comma-separated list of allowed CORS origins. Use '*' only in development."""


settings = Settings()
