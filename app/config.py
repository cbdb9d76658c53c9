import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, model_validator
from typing import Optional
from pydantic_settings import BaseSettings

DEFAULT_DATABASE_URL = "sqlite:///./blinkchat.db"
DEFAULT_TEST_DATABASE_URL = "sqlite://"

# Project root (parent of app/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    app_name: str = "blinkchat-api"
    database_url: Optional[str] = None  # Will be set dynamically
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    port: int = Field(default=8000, json_schema_extra={"env": "PORT"})

    # Identity
    user_id_header: str = Field(
        default="X-User-Id", json_schema_extra={"env": "USER_ID_HEADER"}
    )

    # Media / object storage
    media_root: str = Field(
        default=str(_PROJECT_ROOT / "media"), json_schema_extra={"env": "MEDIA_ROOT"}
    )
    media_url_path: str = Field(
        default="/media", json_schema_extra={"env": "MEDIA_URL_PATH"}
    )
    public_base_url: str = Field(
        default="http://localhost:8000",
        json_schema_extra={"env": "PUBLIC_BASE_URL"},
    )
    media_path_prefix: str = Field(
        default="chat", json_schema_extra={"env": "MEDIA_PATH_PREFIX"}
    )
    max_attachment_bytes: int = Field(
        default=50 * 1024 * 1024,
        ge=1,
        json_schema_extra={"env": "MAX_ATTACHMENT_BYTES"},
    )

    @model_validator(mode="before")
    def set_database_url(cls, values):
        """Set the database_url dynamically based on the environment field."""
        environment = (
            values.get("environment")
            or values.get("ENV")
            or os.getenv("ENV")
            or os.getenv("ENVIRONMENT", "development")
        )
        if environment.lower() == "test":
            values["database_url"] = os.getenv(
                "TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL
            )
        else:
            values["database_url"] = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

        return values

    @property
    def media_base_url(self) -> str:
        """Public URL prefix under which uploaded media is served."""
        return self.public_base_url.rstrip("/") + "/" + self.media_url_path.strip("/")

    class ConfigDict:
        env_file = str(_PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra environment variables


def get_settings() -> Settings:
    """Get application settings with required environment variables."""
    return Settings()
