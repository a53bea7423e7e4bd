from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # GitHub Configuration
    GITHUB_TOKEN: Optional[str] = Field(
        default=None, description="Default GitHub token used when a request carries none"
    )
    GITHUB_API_URL: str = Field(default="https://api.github.com")
    GITHUB_API_VERSION: str = Field(default="2022-11-28")
    GITHUB_REQUEST_TIMEOUT: float = Field(default=30.0, ge=5.0, le=120.0)
    GITHUB_MAX_RETRIES: int = Field(default=2, ge=0, le=5)
    GITHUB_RETRY_DELAY: float = Field(default=1.0, ge=0.0, le=30.0)

    # Aggregation Configuration
    MAX_CONCURRENT_REQUESTS: int = Field(default=5, ge=1, le=20)
    REVIEW_STRATEGY: str = Field(default="search")

    # API Server Configuration
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000, ge=1024, le=65535)
    API_RELOAD: bool = Field(default=False)
    CORS_ORIGINS: str = Field(default="http://localhost:5173,http://localhost:3000")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")
    LOG_DIR: str = Field(default="logs")
    LOG_TO_FILE: bool = Field(default=True)

    # CLI Configuration
    TOKEN_STORE_PATH: str = Field(default="~/.config/orgstats/token.json")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v_upper

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is either 'json' or 'pretty'."""
        allowed_formats = {"json", "pretty"}
        v_lower = v.lower()
        if v_lower not in allowed_formats:
            raise ValueError(f"LOG_FORMAT must be one of {allowed_formats}")
        return v_lower

    @field_validator("REVIEW_STRATEGY")
    @classmethod
    def validate_review_strategy(cls, v: str) -> str:
        """Validate review strategy is either 'search' or 'pulls'."""
        allowed_strategies = {"search", "pulls"}
        v_lower = v.lower()
        if v_lower not in allowed_strategies:
            raise ValueError(f"REVIEW_STRATEGY must be one of {allowed_strategies}")
        return v_lower

    @field_validator("GITHUB_TOKEN")
    @classmethod
    def validate_github_token(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank token as no token at all."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    def get_cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# this will be imported throughout the project
settings = Settings()
