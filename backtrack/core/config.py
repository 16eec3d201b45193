"""
Application settings.

Values are read from environment variables when ``Settings()`` is
constructed, so a ``.env`` file loaded with ``python-dotenv`` beforehand
is honoured.  Tests build ``Settings`` directly with explicit values.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = field(default_factory=lambda: _env("PROJECT_NAME", "Backtrack Lost & Found"))
    database_url: str = field(default_factory=lambda: _env("DATABASE_URL", "sqlite:///backtrack.db"))

    jwt_secret: str = field(default_factory=lambda: _env("JWT_SECRET"))
    jwt_algorithm: str = field(default_factory=lambda: _env("JWT_ALGORITHM", "HS256"))
    access_token_expire_minutes: int = field(
        default_factory=lambda: int(_env("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    )
    allow_admin_registration: bool = field(default_factory=lambda: _env_bool("ALLOW_ADMIN_REGISTRATION"))

    cors_origins: List[str] = field(
        default_factory=lambda: [
            origin.strip()
            for origin in _env("CORS_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]
    )

    # "local" stores files under upload_dir, "s3" uses any S3-compatible bucket
    media_backend: str = field(default_factory=lambda: _env("MEDIA_BACKEND", "local"))
    upload_dir: str = field(default_factory=lambda: _env("UPLOAD_DIR", "uploads"))
    media_base_url: str = field(default_factory=lambda: _env("MEDIA_BASE_URL", "/uploads"))
    s3_bucket: str = field(default_factory=lambda: _env("S3_BUCKET"))
    s3_endpoint_url: Optional[str] = field(default_factory=lambda: _env("S3_ENDPOINT_URL") or None)
    s3_folder: str = field(default_factory=lambda: _env("S3_FOLDER", "back-trackers"))
    aws_access_key_id: Optional[str] = field(default_factory=lambda: _env("AWS_ACCESS_KEY_ID") or None)
    aws_secret_access_key: Optional[str] = field(default_factory=lambda: _env("AWS_SECRET_ACCESS_KEY") or None)

    max_upload_size_mb: int = field(default_factory=lambda: int(_env("MAX_UPLOAD_SIZE_MB", "5")))
    max_images: int = field(default_factory=lambda: int(_env("MAX_IMAGES", "5")))

    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: _env("LOG_FILE") or None)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024
