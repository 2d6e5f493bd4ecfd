from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present


def _optional_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    return Path(value).expanduser() if value and value.strip() else None


@dataclass
class Settings:
    """Centralized application settings.

    Environment handling lives here so the services depend on typed
    attributes instead of calling os.getenv directly.
    """

    # API key for the Gemini backend. API_KEY is accepted for older deployments.
    gemini_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    )
    gemini_model: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-pro"))

    # Directory holding app.db (profiles and theme preference).
    database_dir: Optional[Path] = field(default_factory=lambda: _optional_path("DATABASE_DIR"))

    # Directory where selected videos are kept until the session releases them.
    upload_dir: Path = field(
        default_factory=lambda: _optional_path("UPLOAD_DIR")
        or Path(tempfile.gettempdir()) / "video-describer-uploads"
    )

    # Per remote call. 0 disables the timeout.
    generation_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("GENERATION_TIMEOUT_SECONDS", "300"))
    )

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def generation_timeout(self) -> Optional[float]:
        """Timeout handed to asyncio.wait_for, or None when disabled."""
        return self.generation_timeout_seconds if self.generation_timeout_seconds > 0 else None


def get_settings() -> Settings:
    return Settings()
