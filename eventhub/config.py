import json
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        extra="ignore",
    )

    APP_NAME: str = "Event RSVP API"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # DynamoDB
    DYNAMODB_ENDPOINT_URL: Optional[str] = "http://dynamodb-local:8000"
    AWS_DEFAULT_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = "fake"
    AWS_SECRET_ACCESS_KEY: SecretStr = SecretStr("fake")
    TABLE_NAME: str = "EventRsvp"

    # Security
    JWT_SECRET: SecretStr = SecretStr("change-me-in-production-32-bytes-min")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Image uploads
    UPLOAD_DIR: Path = _PROJECT_ROOT / "uploads"
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024
    ALLOWED_IMAGE_TYPES: Annotated[List[str], NoDecode] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    ]

    # CORS
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = ["*"]

    @field_validator("BACKEND_CORS_ORIGINS", "ALLOWED_IMAGE_TYPES", mode="before")
    @classmethod
    def split_comma_separated(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str):
            if v.startswith("["):
                return json.loads(v)
            return [i.strip() for i in v.split(",") if i.strip()]
        return v


settings = Settings()
