"""
Runtime configuration for the Mood Art API.

Everything comes from the environment (a local .env file is loaded first).
JWT_SECRET and DATABASE_URL are required; the provider settings are optional
and art generation falls back to placeholder images without them.
"""

import math
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

from art import ProviderConfig


def _get_env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _get_env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {value!r}.") from None


def _get_env_list(name: str, default: List[str]) -> List[str]:
    value = os.environ.get(name)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    database_url: str
    database_name: str = "mood_art"
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        jwt_secret = _get_env_str("JWT_SECRET")
        if not jwt_secret:
            raise RuntimeError("JWT_SECRET environment variable is required.")
        database_url = _get_env_str("DATABASE_URL")
        if not database_url:
            raise RuntimeError("DATABASE_URL environment variable is required.")

        timeout = _get_env_float("ART_API_TIMEOUT", None)
        if timeout is not None and not (math.isfinite(timeout) and timeout > 0):
            raise RuntimeError("ART_API_TIMEOUT must be a positive number of seconds.")
        mock_delay_seconds = _get_env_float("MOCK_DELAY_SECONDS", 3.0)
        if not (math.isfinite(mock_delay_seconds) and mock_delay_seconds >= 0):
            raise RuntimeError("MOCK_DELAY_SECONDS must be zero or a positive number of seconds.")

        provider = ProviderConfig(
            api_url=_get_env_str("ART_API_URL"),
            api_token=_get_env_str("ART_API_TOKEN"),
            cloud_name=_get_env_str("CLOUDINARY_CLOUD_NAME"),
            cloud_api_key=_get_env_str("CLOUDINARY_API_KEY"),
            cloud_api_secret=_get_env_str("CLOUDINARY_API_SECRET"),
            timeout=timeout,
            mock_delay_seconds=mock_delay_seconds,
        )
        return cls(
            jwt_secret=jwt_secret,
            database_url=database_url,
            database_name=_get_env_str("DATABASE_NAME", "mood_art") or "mood_art",
            provider=provider,
            cors_origins=_get_env_list("CORS_ORIGINS", ["*"]),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
