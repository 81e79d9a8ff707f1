"""Proxy configuration using pydantic-settings."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Settings loaded from S3PROXY_* environment variables or a .env file.

    Command-line flags override these values (see s3proxy.cli).
    """

    model_config = SettingsConfigDict(
        env_prefix="S3PROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    bind: str = "127.0.0.1:8080"
    verbose: bool = False

    # Storage backend
    credentials_file: Path | None = None
    credentials_profile: str = "default"
    endpoint_url: str | None = None
    region: str = "us-east-1"

    # /readiness
    readiness_buckets: str = ""
    readiness_timeout: float = 5.0

    # Signed-URL redirect mode
    signed_url: bool = False
    signed_url_expiry: int = 3600

    @field_validator("bind")
    @classmethod
    def check_bind(cls, value: str) -> str:
        host, sep, port = value.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError(f"bind address must be host:port, got {value!r}")
        return value

    @field_validator("signed_url_expiry")
    @classmethod
    def check_expiry(cls, value: int) -> int:
        # SigV4 presigned URLs are capped at 7 days
        if not 1 <= value <= 604800:
            raise ValueError("signed_url_expiry must be between 1 and 604800 seconds")
        return value

    @property
    def host(self) -> str:
        return self.bind.rpartition(":")[0]

    @property
    def port(self) -> int:
        return int(self.bind.rpartition(":")[2])

    @property
    def readiness_bucket_list(self) -> list[str]:
        return [name.strip() for name in self.readiness_buckets.split(",") if name.strip()]
