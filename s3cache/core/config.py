"""Application configuration using Pydantic Settings.

Credentials, region and bucket are read from the standard AWS/pipeline
environment variables (no prefix). Tuning knobs are loaded with the
S3CACHE_ prefix.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from s3cache.core.constants import MIN_PART_SIZE_BYTES, MULTIPART_THRESHOLD_BYTES
from s3cache.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    The four transfer settings (access key, secret key, region, bucket) are
    optional at load time so that logging and input validation can run
    before them; ``require_transfer_config`` enforces them before any I/O.
    """

    # Service configuration
    service_name: str = "s3cache"
    environment: str = Field(default="development", description="Runtime environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # Object store credentials (unprefixed)
    aws_access_key_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AWS_ACCESS_KEY_ID", "aws_access_key_id"),
    )
    aws_secret_access_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("AWS_SECRET_ACCESS_KEY", "aws_secret_access_key"),
    )
    aws_region: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AWS_REGION", "aws_region"),
    )
    bucket_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("BP_CACHE_S3_BUCKET", "bucket_name"),
        description="Bucket holding cache entries",
    )

    # Object store tuning
    endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint for S3-compatible stores"
    )
    key_namespace: str = Field(
        default="",
        description="Optional prefix prepended to every storage key"
    )
    max_attempts: int = Field(default=3, ge=1, description="botocore retry attempts")

    # Transfer configuration
    multipart_threshold_bytes: int = Field(
        default=MULTIPART_THRESHOLD_BYTES,
        ge=MIN_PART_SIZE_BYTES,
        description="Payloads above this size use multipart upload; also the part size",
    )
    part_concurrency: int = Field(
        default=1,
        ge=1,
        description="Parts uploaded in parallel within one multipart session",
    )
    max_concurrency: int = Field(
        default=4,
        ge=1,
        description="Cache paths processed in parallel",
    )
    temp_dir: Optional[str] = Field(
        default=None,
        description="Parent directory for per-operation temporary files"
    )

    model_config = SettingsConfigDict(
        env_prefix="S3CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def missing_transfer_settings(self) -> list[str]:
        """Return the environment names of unset transfer settings."""
        required = {
            "AWS_ACCESS_KEY_ID": self.aws_access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.aws_secret_access_key,
            "AWS_REGION": self.aws_region,
            "BP_CACHE_S3_BUCKET": self.bucket_name,
        }
        return [name for name, value in required.items() if not value]

    def require_transfer_config(self) -> None:
        """Fail fast when credentials, region or bucket are missing.

        Raises:
            ConfigurationError: Listing every missing setting
        """
        missing = self.missing_transfer_settings()
        if missing:
            raise ConfigurationError(
                f"Missing required AWS environment variables: {', '.join(missing)}",
                settings=missing,
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return Settings()
