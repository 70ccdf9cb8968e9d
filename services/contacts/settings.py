from typing import Optional

from services.common.settings import (
    AliasChoices,
    BaseSettings,
    Field,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Contacts Service settings and configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Database configuration
    db_url_contacts: str = Field(
        ...,  # Required field - no default to prevent production mistakes
        description="Database connection URL",
        validation_alias=AliasChoices("DB_URL_CONTACTS"),
    )

    # Service configuration
    SERVICE_NAME: str = Field(default="contacts-service", description="Service name")
    PORT: int = Field(default=8007, description="Port to bind to")
    HOST: str = Field(default="0.0.0.0", description="Host to bind to")
    DEBUG: bool = Field(default=False, description="Debug mode")

    # Logging configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format (json or text)")

    # Application info
    APP_NAME: str = Field(default="contacts-service", description="Application name")
    APP_VERSION: str = Field(default="0.1.0", description="Application version")
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment (development, staging, production)",
    )

    # JWT Configuration
    jwt_verify_signature: bool = Field(
        default=True,
        description="Whether to verify JWT signatures",
        validation_alias=AliasChoices("JWT_VERIFY_SIGNATURE"),
    )
    jwt_secret_key: Optional[str] = Field(
        default=None,
        description="Shared secret used to sign session tokens",
        validation_alias=AliasChoices("JWT_SECRET_KEY"),
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
        default=True,
        description="Check crm:contacts:* permissions; off grants every permission",
        validation_alias=AliasChoices("ENFORCE_PERMISSIONS"),
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings
