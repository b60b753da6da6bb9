"""Configuration system for hogarscan.

Uses pydantic-settings to load configuration from environment variables
and .env files with defaults suited to Bogotá rental searches.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Environment variables are prefixed with HOGARSCAN_ (e.g.,
    HOGARSCAN_DEFAULT_LIMIT). List settings take JSON, e.g.
    HOGARSCAN_ENABLED_SOURCES='["fincaraiz", "pads"]'.
    """

    model_config = SettingsConfigDict(
        env_prefix="HOGARSCAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Sources
    enabled_sources: list[str] = Field(
        default=[
            "ciencuadras",
            "metrocuadrado",
            "fincaraiz",
            "mercadolibre",
            "properati",
            "trovit",
            "pads",
        ],
        description="Source ids the orchestrator builds adapters for",
    )
    max_pages_override: Optional[int] = Field(
        default=None,
        ge=1,
        description="Cap on pages crawled per source (overrides each schema)",
    )
    timeout_override: Optional[float] = Field(
        default=None,
        gt=0,
        description="Per-source timeout in seconds (overrides each schema)",
    )

    # HTTP
    user_agents: list[str] = Field(
        default=[
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/121.0",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/120.0",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/17.1 Safari/605.1.15",
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        ],
        min_length=1,
        description="User-Agent pool; each request picks one at random",
    )
    accept_language: str = Field(default="es-CO,es;q=0.9,en;q=0.8")

    # Search defaults
    default_city: str = Field(default="Bogotá")
    default_limit: int = Field(default=20, ge=1, description="Results per page")
    default_sort: str = Field(default="score")


# Loaded once at import; pass an explicit Settings to override in code.
config = Settings()
