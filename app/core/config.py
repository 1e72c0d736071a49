"""FileVault settings, read from the environment or a ``.env`` file."""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List, Optional

INSECURE_JWT_SECRET = "dev-insecure-key-change-me"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("json", "text")


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Settings are unsafe or incomplete for the current environment."""


class Settings(BaseSettings):
    """
    All runtime configuration in one place.

    Bucket credentials and the database URL are passed through untouched to
    boto3 and SQLAlchemy; nothing else in the application inspects them.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="development or production; production refuses unsafe settings"
    )
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated browser origins allowed to call the API"
    )

    # Metadata database
    database_url: str = Field(
        default="sqlite:///./filevault.db",
        description="SQLAlchemy URL of the folder/file metadata database"
    )
    # Pool settings apply to server databases only.
    db_pool_size: int = Field(default=5, description="Number of persistent database connections")
    db_max_overflow: int = Field(default=10, description="Extra connections allowed during traffic bursts")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds before a connection is recycled")

    # Object store (S3 or any S3-compatible endpoint)
    aws_region: str = Field(default="us-east-1", description="Bucket region")
    aws_bucket_name: str = Field(default="filevault", description="Bucket holding all user objects")
    aws_access_key_id: Optional[str] = Field(default=None, description="Access key (falls back to the boto3 credential chain)")
    aws_secret_access_key: Optional[str] = Field(default=None, description="Secret key (falls back to the boto3 credential chain)")
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint for S3-compatible stores (MinIO, R2); empty = AWS"
    )
    # S3 DeleteObjects accepts at most 1000 keys per request.
    s3_delete_batch_size: int = Field(default=1000, ge=1, le=1000, description="Keys per batch delete request")
    s3_max_list_pages: int = Field(
        default=10000, ge=1,
        description="Upper bound on listing pages per call (10000 pages = 10M objects)"
    )

    # Presigned URL lifetimes
    upload_url_expiry_seconds: int = Field(default=60, gt=0, description="Lifetime of presigned upload URLs")
    download_url_expiry_seconds: int = Field(default=3600, gt=0, description="Lifetime of presigned download URLs")

    # Folder paths are derived by walking parent links; this caps the walk.
    folder_path_max_depth: int = Field(default=20, ge=1, description="Maximum folder nesting considered resolvable")

    # Retention (0 = keep forever)
    trash_retention_days: int = Field(default=30, ge=0, description="Days before recycle-bin items are purged; 0 keeps them forever")
    audit_retention_days: int = Field(default=365, ge=0, description="Days audit log entries are kept")

    # Background worker
    sync_interval: int = Field(default=300, ge=1, description="Seconds between scheduled sync passes")
    sync_owner_id: str = Field(default="sync-worker", description="Owner of items discovered by the worker")
    trash_purge_interval: int = Field(default=24 * 60 * 60, ge=60, description="Seconds between recycle-bin retention checks in the worker")

    # Bearer tokens. With auth disabled every caller is an anonymous admin.
    jwt_secret_key: str = Field(default=INSECURE_JWT_SECRET, description="HMAC key for bearer tokens")
    jwt_algorithm: str = Field(default="HS256")
    auth_enabled: bool = Field(default=False, description="Require bearer tokens on /api endpoints")

    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    log_format: str = Field(default="json", description="'json' lines or human-readable 'text'")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(_LOG_FORMATS)}")
        return fmt

    @field_validator('s3_endpoint_url')
    @classmethod
    def blank_endpoint_means_aws(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    def get_cors_origins(self) -> List[str]:
        """Configured origins as a list. A ``*`` entry is rejected outright."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        if "*" in origins:
            raise ValueError("CORS_ALLOWED_ORIGINS may not contain '*'; list the origins explicitly")
        return origins

    def insecure_settings(self) -> List[str]:
        """Human-readable list of settings that are unsafe outside development."""
        problems: List[str] = []
        if self.jwt_secret_key == INSECURE_JWT_SECRET:
            problems.append("JWT_SECRET_KEY is the built-in default (generate one: openssl rand -hex 32)")
        if not self.auth_enabled:
            problems.append("AUTH_ENABLED is false, so anyone can purge files")
        if not self.aws_bucket_name:
            problems.append("AWS_BUCKET_NAME is empty")
        local = [o for o in self.get_cors_origins() if "localhost" in o or "127.0.0.1" in o]
        if local:
            problems.append(f"CORS allows local origins {local}")
        return problems

    def validate_production_config(self) -> None:
        """Raise ConfigurationError in production if any setting is unsafe."""
        if self.environment != Environment.PRODUCTION:
            return
        problems = self.insecure_settings()
        if problems:
            raise ConfigurationError("Refusing to start in production:\n  - " + "\n  - ".join(problems))

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
