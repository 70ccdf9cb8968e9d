from typing import Optional

from services.common.settings import (
    AliasChoices,
    BaseSettings,
    Field,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Dashboard Service settings and configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Module API configuration
    api_base_url: str = Field(
        default="http://localhost:8787/api/v1",
        description="Root URL of the module APIs the dashboard aggregates",
        validation_alias=AliasChoices("API_BASE_URL"),
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for each module API request",
        validation_alias=AliasChoices("REQUEST_TIMEOUT_SECONDS"),
    )

    # Presentation
    dashboard_currency: str = Field(
        default="EUR",
        description="ISO 4217 currency used for monetary cards",
        validation_alias=AliasChoices("DASHBOARD_CURRENCY"),
    )
    dashboard_locale: str = Field(
        default="en_US",
        description="Locale used to format monetary cards",
        validation_alias=AliasChoices("DASHBOARD_LOCALE"),
    )

    # Service configuration
    SERVICE_NAME: str = Field(default="dashboard-service", description="Service name")
    PORT: int = Field(default=8008, description="Port to bind to")
    HOST: str = Field(default="0.0.0.0", description="Host to bind to")
    DEBUG: bool = Field(default=False, description="Debug mode")

    # Logging configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format (json or text)")

    # Application info
    APP_NAME: str = Field(default="dashboard-service", description="Application name")
    APP_VERSION: str = Field(default="0.1.0", description="Application version")
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment (development, staging, production)",
    )

    # JWT Configuration
    jwt_verify_signature: bool = Field(
        default=True, validation_alias=AliasChoices("JWT_VERIFY_SIGNATURE")
    )
    jwt_secret_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("JWT_SECRET_KEY")
    )
    jwt_algorithm: str = Field(
        default="HS256", validation_alias=AliasChoices("JWT_ALGORITHM")
    )
    jwt_issuer: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("JWT_ISSUER")
    )
    jwt_audience: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("JWT_AUDIENCE")
    )

    # Permissions
    enforce_permissions: bool = Field(
        default=True, validation_alias=AliasChoices("ENFORCE_PERMISSIONS")
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
