from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_storage_path() -> str:
    """Default location of the local key-value store (bookmarks, theme)."""
    return str((Path.home() / ".bibleapp" / "storage.json").resolve())


class Settings(BaseSettings):
    api_base_url: str = Field(
        default="http://localhost:8084",  # Default for local dev; MUST be set to backend URL in production
        validation_alias="API_BASE_URL",
    )
    api_token: str = Field(default="", validation_alias="API_TOKEN")
    request_timeout: float = Field(default=30.0, validation_alias="REQUEST_TIMEOUT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    login_path: str = Field(default="/auth/google/login", validation_alias="LOGIN_PATH")
    narrow_viewport_width: int = Field(
        default=768,
        validation_alias="NARROW_VIEWPORT_WIDTH",
        description="Viewports narrower than this get the narrow page budget",
    )
    narrow_page_budget: int = Field(default=300, validation_alias="NARROW_PAGE_BUDGET")
    wide_page_budget: int = Field(default=600, validation_alias="WIDE_PAGE_BUDGET")
    storage_path: str = Field(
        default_factory=get_storage_path,
        validation_alias="STORAGE_PATH",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, value: str) -> str:
        """Strip the trailing slash so route constants can be appended."""
        if not value.startswith(("http://", "https://")):
            logger.warning(f"API_BASE_URL should be an http(s) URL, but got: {value}. Requests will likely fail.")
        return value.rstrip("/")

    @field_validator("narrow_page_budget", "wide_page_budget")
    @classmethod
    def validate_page_budget(cls, value: int) -> int:
        """Page budgets must be positive."""
        if value < 1:
            raise ValueError(f"page budget must be >= 1, got {value}")
        return value

    @field_validator("api_token")
    @classmethod
    def validate_api_token(cls, value: str) -> str:
        """Warn when no session credential is configured."""
        if not value:
            logger.debug("API_TOKEN is not set. Requests will rely on the auth_token cookie only.")
        return value

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
