from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the FastAPI service.

    This is separate from src.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="Component Procurement API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for electronic-component procurement: quotations, orders, "
            "logistics, invoices and remittances synchronized with the TI backlog API."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=True,
        description="If true, run Alembic migrations (upgrade head) at app startup.",
    )

    LOG_LEVEL: str = Field(default="INFO", description="Root log level name")
    TI_LOG_LEVEL: Optional[str] = Field(
        default=None, description="Log level for the TI client loggers; inherits LOG_LEVEL when unset"
    )

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    # TI backlog API
    TI_SERVER_URL: str = Field(default="", description="Base URL of the TI backlog API server")
    TI_CLIENT_ID: str = Field(default="", description="OAuth client id")
    TI_CLIENT_SECRET: str = Field(default="", description="OAuth client secret")
    TI_API_ENV: str = Field(
        default="development",
        description="'production' calls the live endpoints; anything else uses the /test endpoints.",
    )
    TI_CHECKOUT_PROFILE_ID: Optional[str] = Field(default=None, description="Checkout profile for quotes and orders")
    TI_SHIP_TO: Optional[str] = Field(default=None, description="Ship-to account number for orders")
    TI_END_CUSTOMER_COMPANY_NAME: str = Field(default="BAIQIANCHENG SHENZHEN")
    TI_CURRENCY_CODE: str = Field(default="USD")
    TI_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    TI_TOKEN_EXPIRY_MARGIN_SECONDS: int = Field(
        default=30,
        ge=0,
        description="Treat the cached bearer token as expired this many seconds early.",
    )

    # Inbound webhook Basic-Auth credentials
    WEBHOOK_AUTH_USER: Optional[str] = Field(default=None)
    WEBHOOK_AUTH_PASS: Optional[str] = Field(default=None)

    # Maximum number of concurrent ASN requests during a bulk logistics refresh
    LOGISTICS_REFRESH_CONCURRENCY: int = Field(default=5, ge=1)

    # Automatically load from .env at runtime. The orchestrator will provide these.
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            # Try comma-separated
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]

    @property
    def ti_is_production(self) -> bool:
        return self.TI_API_ENV.strip().lower() == "production"


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    Note:
      For simplicity we construct a new instance each time. If caching is desired,
      we can add a module-level cache or lru_cache.
    """
    return AppSettings()
