"""
Settings configuration for the AI-PPTX deck builder.
"""
import os
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    # App settings
    APP_ENV: str = Field("development", description="Runtime environment name")
    LOG_LEVEL: str = Field("INFO", description="Log level for the standard logger")

    # Logging
    LOGFIRE_TOKEN: Optional[str] = Field(None, description="Enables Logfire when set")

    # Whisk credential cache (written by the external whisk-proxy login flow)
    WHISK_TOKEN_FILE: str = Field(
        str(Path.home() / ".whisk-proxy" / "token.json"),
        description="Path of the cached Whisk access token"
    )
    TOKEN_EXPIRY_BUFFER_SECONDS: int = Field(
        300,
        ge=0,
        description="Tokens expiring sooner than this are treated as absent"
    )

    # Whisk endpoints
    WHISK_GENERATE_URL: str = Field(
        "https://aisandbox-pa.googleapis.com/v1/whisk:generateImage"
    )
    WHISK_RECIPE_URL: str = Field(
        "https://aisandbox-pa.googleapis.com/v1/whisk:runImageRecipe"
    )
    WHISK_UPLOAD_URL: str = Field(
        "https://labs.google/fx/api/trpc/backbone.uploadImage"
    )
    WHISK_CAPTION_URL: str = Field(
        "https://labs.google/fx/api/trpc/backbone.captionImage"
    )

    # Whisk models
    # 1 reference -> WHISK_MODEL_REF_SINGLE, 2+ references -> WHISK_MODEL_REF_MULTIPLE
    WHISK_MODEL_DEFAULT: str = Field("IMAGEN_3_5")
    WHISK_MODEL_REF_SINGLE: str = Field("GEM_PIX")
    WHISK_MODEL_REF_MULTIPLE: str = Field("R2I")

    # Timeout & retry policy for Whisk calls
    WHISK_TIMEOUT: float = Field(120.0, gt=0, description="Per-request timeout in seconds")
    WHISK_MAX_RETRIES: int = Field(
        2,
        ge=0,
        le=10,
        description="Retries for timeouts, transport errors, HTTP 429 and 5xx"
    )
    WHISK_RETRY_BASE_DELAY: float = Field(1.0, ge=0, description="Base delay (exponential backoff)")
    WHISK_RETRY_MAX_DELAY: float = Field(30.0, ge=0)

    # Background generation
    BACKGROUND_ASPECT_RATIO: str = Field("16:9")

    # Build output
    OUTPUT_BASE: Optional[str] = Field(
        None,
        description="Base directory for outputs/<name> (default: current directory)"
    )

    # Thumbnails (contact sheet of the finished deck)
    THUMBNAIL_ENABLED: bool = Field(True)
    THUMBNAIL_COLS: int = Field(5, ge=1, le=10)
    THUMBNAIL_TIMEOUT: float = Field(180.0, gt=0)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env

    @property
    def resolved_output_base(self) -> Path:
        """Base directory for build outputs."""
        return Path(self.OUTPUT_BASE) if self.OUTPUT_BASE else Path(os.getcwd())


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
