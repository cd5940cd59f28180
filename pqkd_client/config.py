"""
pQKD Client Configuration

Connection settings with environment variable support (``PQKD_`` prefix).
"""

import logging
import sys
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="PQKD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # KME
    kme_url: str = "http://127.0.0.1:8082"

    # QRNG, defaults to the KME host on port 8085
    qrng_url: Optional[str] = None

    # mTLS
    ssl_ca_file: Optional[Path] = Field(default=None)
    ssl_cert_file: Optional[Path] = Field(default=None)
    ssl_key_file: Optional[Path] = Field(default=None)

    local_target: Optional[str] = None

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @model_validator(mode="after")
    def check_tls_files(self) -> "Settings":
        """TLS needs the CA, the client certificate and the key together."""
        files = (self.ssl_ca_file, self.ssl_cert_file, self.ssl_key_file)
        if any(files) and not all(files):
            raise ValueError(
                "ssl_ca_file, ssl_cert_file and ssl_key_file must be set together"
            )
        return self

    @property
    def tls_enabled(self) -> bool:
        return self.ssl_ca_file is not None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Send log records to stdout at the configured level."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
