# ============================================================================
# ProdBay - Application Configuration
# ============================================================================
"""
Application configuration module using Pydantic Settings.

This module defines all configuration parameters for the ProdBay backend,
including:
- API/CORS settings
- Database connection
- OpenAI/LLM configuration used for brief analysis
- Email delivery for quote requests and supplier chat
- Workflow limits (brief length, chat polling)

Environment Variables:
    Every field can be set through the environment or a local .env file.
    DATABASE_URL is required; the service starts without it but every
    store operation fails until it is configured.

Usage:
    from prodbay.config import settings
    link = settings.quote_url(quote.access_token)
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # =========================================================================
    # API SETTINGS
    # =========================================================================
    api_title: str = "ProdBay API"
    api_version: str = "1.0.0"
    debug: bool = Field(default=False, description="Enable verbose logging & dev helpers")
    log_level: str = Field(default="INFO", description="Root log level")

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed origins for CORS",
    )
    cors_origin_regex: Optional[str] = Field(
        default=r"^http://(localhost|127\.0\.0\.1)(:\d+)?$",
        description="Optional regex to match allowed origins",
    )

    # =========================================================================
    # DATABASE
    # =========================================================================
    database_url: Optional[str] = Field(
        default=None,
        description="Async SQLAlchemy URL (postgresql+asyncpg://... or sqlite+aiosqlite:///...)",
    )
    db_pool_size: int = Field(default=10, description="PostgreSQL connection pool size")
    db_max_overflow: int = Field(default=20, description="Extra connections during peak load")
    db_pool_recycle: int = Field(default=3600, description="Recycle connections after N seconds")

    # =========================================================================
    # OPENAI/LLM CONFIGURATION
    # =========================================================================
    openai_api_key: Optional[str] = Field(default=None, description="LLM API key")
    openai_model: str = Field(default="gpt-4o-mini", description="LLM model name")
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="LLM base URL")
    openai_verify_ssl: bool = Field(default=True, description="Verify SSL for LLM requests")
    openai_timeout: float = Field(default=60.0, description="Timeout (s) for LLM requests")
    openai_max_retries: int = Field(default=0, description="Retry count for LLM requests")
    openai_temperature: float = Field(default=0.3, description="Sampling temperature for brief analysis")
    openai_max_tokens: int = Field(default=2000, description="Completion token cap for brief analysis")

    # =========================================================================
    # EMAIL CONFIGURATION
    # =========================================================================
    email_backend: str = Field(default="console", description="console | function | smtp")
    email_function_url: Optional[str] = Field(default=None, description="Hosted email function endpoint")
    email_function_key: Optional[str] = Field(default=None, description="Bearer key for the email function")
    email_from_address: str = Field(default="noreply@prodbay.local", description="Default sender address")
    email_from_name: str = Field(default="ProdBay", description="Default sender name")
    smtp_host: Optional[str] = Field(default=None, description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_username: Optional[str] = Field(default=None, description="SMTP username")
    smtp_password: Optional[str] = Field(default=None, description="SMTP password")
    smtp_use_tls: bool = Field(default=True, description="Use STARTTLS for SMTP")

    # =========================================================================
    # WORKFLOW SETTINGS
    # =========================================================================
    frontend_base_url: str = Field(default="http://localhost:5173", description="Base URL for supplier links")
    producer_email: Optional[str] = Field(default=None, description="Inbox notified of supplier messages")
    producer_name: str = Field(default="ProdBay Producer", description="Display name for producer messages")
    max_brief_length: int = Field(default=10000, description="Maximum accepted brief length")
    max_highlight_brief_length: int = Field(default=8000, description="Brief slice sent for highlight extraction")
    max_message_length: int = Field(default=5000, description="Maximum chat message length")
    chat_poll_interval_seconds: int = Field(default=8, description="Suggested client chat polling interval")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    # -------- Link helpers --------
    def quote_url(self, access_token: str) -> str:
        """Link a supplier follows to submit a bid."""
        return f"{self.frontend_base_url.rstrip('/')}/quote/{access_token}"

    def portal_url(self, access_token: str) -> str:
        """Link to the supplier portal chat for a quote."""
        return f"{self.frontend_base_url.rstrip('/')}/portal/quote/{access_token}"

    @property
    def producer_dashboard_url(self) -> str:
        return f"{self.frontend_base_url.rstrip('/')}/dashboard/quotes"


# Global settings instance (imported elsewhere)
settings = Settings()
