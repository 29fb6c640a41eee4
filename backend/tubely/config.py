"""
Tubely configuration.

Settings are read from environment variables (case-insensitive) and an
optional .env file, validated with pydantic, and cached by get_settings().
Services never read module globals: the Settings instance is handed to each
service when it is built, which is also how tests substitute their own.

Groups:
- Application: environment, logging, HTTP binding, CORS, public base URL
- Auth: JWT signing secret, algorithm and token lifetime
- MongoDB: connection URI, database name, pool bounds
- Object storage: S3/MinIO endpoint, credentials, bucket, playback URL lifetime
- Uploads: body ceilings, staging directory, thumbnail asset directory
- Media tools: ffmpeg and ffprobe executables
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_LEVELS = ("debug", "info", "warning", "error", "critical")
APP_ENVIRONMENTS = ("development", "staging", "production", "testing")
JWT_ALGORITHMS = ("HS256", "HS384", "HS512")


def _one_of(name: str, value: str, allowed: tuple[str, ...]) -> str:
    if value not in allowed:
        raise ValueError(f"{name} must be one of {', '.join(allowed)}; got '{value}'")
    return value


class Settings(BaseSettings):
    """
    Runtime configuration for the Tubely API.

    Example:
        ```python
        settings = Settings(s3_bucket_name="staging-videos")
        settings.video_url_expiration_seconds  # 1800
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # ===== Application =====

    app_name: str = Field(default="Tubely API", description="Name shown in docs and logs")
    app_env: str = Field(default="development", description="One of APP_ENVIRONMENTS")
    debug: bool = Field(
        default=False,
        description="FastAPI debug mode and auto-reload; debug pages replace JSON 500 responses",
    )
    log_level: str = Field(default="info", description="One of LOG_LEVELS")
    json_logs: bool = Field(default=False, description="One JSON object per log line")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8091, ge=1, le=65535, description="Bind port")

    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed browser origins; a comma separated string is accepted",
    )

    public_base_url: str = Field(
        default="http://localhost:8091",
        description="Base URL clients use to reach this server; prefixes thumbnail URLs",
    )

    # ===== Auth =====

    secret_key: str = Field(
        default="local-development-signing-key-replace-me-0000",
        min_length=32,
        description="HMAC key for access tokens",
    )
    jwt_algorithm: str = Field(default="HS256", description="One of JWT_ALGORITHMS")
    jwt_expiration_hours: int = Field(default=24, ge=1, le=168, description="Token lifetime")

    # ===== MongoDB =====

    mongodb_uri: str = Field(default="mongodb://localhost:27017", description="Connection URI")
    mongodb_db_name: str = Field(default="tubely", description="Database holding video records")
    mongodb_min_pool_size: int = Field(default=10, ge=1)
    mongodb_max_pool_size: int = Field(default=100, ge=10)

    # ===== Object storage =====

    s3_endpoint_url: str | None = Field(
        default=None, description="Custom endpoint (MinIO); None means AWS S3"
    )
    s3_access_key_id: str = Field(default="minioadmin")
    s3_secret_access_key: str = Field(default="minioadmin")
    s3_bucket_name: str = Field(default="tubely-videos", description="Bucket for processed videos")
    s3_region: str = Field(default="us-east-1")

    video_url_expiration_seconds: int = Field(
        default=1800,
        ge=60,
        le=604800,
        description="Lifetime of presigned playback URLs (30 minutes)",
    )

    # ===== Uploads =====

    max_video_upload_bytes: int = Field(
        default=1 << 30, ge=1, description="Request body ceiling for video uploads (1 GiB)"
    )
    max_thumbnail_upload_bytes: int = Field(
        default=10 << 20, ge=1, description="Request body ceiling for thumbnail uploads (10 MiB)"
    )
    upload_temp_dir: str | None = Field(
        default=None, description="Parent of per-request staging directories; None for the OS default"
    )
    assets_root: str = Field(default="./assets", description="Where thumbnail images are written")

    # ===== Media tools =====

    ffmpeg_path: str = Field(default="ffmpeg")
    ffprobe_path: str = Field(default="ffprobe")

    # ===== Validators =====

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return _one_of("log_level", v.lower(), LOG_LEVELS)

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        return _one_of("app_env", v.lower(), APP_ENVIRONMENTS)

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        return _one_of("jwt_algorithm", v.upper(), JWT_ALGORITHMS)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def assets_path(self) -> Path:
        return Path(self.assets_root)


@lru_cache
def get_settings() -> Settings:
    """
    Return the process-wide Settings, built on first use.

    FastAPI routes depend on this function, so tests replace it through
    app.dependency_overrides.
    """
    return Settings()
