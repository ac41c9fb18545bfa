from __future__ import annotations

import os
from dataclasses import dataclass


def getenv(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name, default)
    return v


@dataclass
class Settings:
    # Service
    service_name: str = getenv("SERVICE_NAME", "copycheck-api") or "copycheck-api"
    service_env: str = getenv("SERVICE_ENV", "dev") or "dev"
    log_level: str = getenv("LOG_LEVEL", "INFO") or "INFO"

    # OpenRouter
    openrouter_api_key: str | None = getenv("OPENROUTER_API_KEY")
    openrouter_base_url: str = getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1") or "https://openrouter.ai/api/v1"
    openrouter_model: str = getenv("OPENROUTER_MODEL", "google/gemini-2.5-flash") or "google/gemini-2.5-flash"
    openrouter_fallback_models: str = getenv("OPENROUTER_FALLBACK_MODELS", "") or ""
    openrouter_timeout: int = int(getenv("OPENROUTER_TIMEOUT", "30") or "30")
    min_timeout_seconds: int = int(getenv("MIN_TIMEOUT_SECONDS", "3") or "3")
    openrouter_max_attempts: int = int(getenv("OPENROUTER_MAX_ATTEMPTS", "2") or "2")
    openrouter_backoff_ms: int = int(getenv("OPENROUTER_BACKOFF_MS", "400") or "400")

    # Rules
    rulebook_path: str | None = getenv("RULEBOOK_PATH")
    default_channel: str = getenv("DEFAULT_CHANNEL", "facebook") or "facebook"

    # Uploads
    max_image_bytes: int = int(getenv("MAX_IMAGE_BYTES", "5242880") or "5242880")  # 5MB

    # Security & policy
    cors_allow_origins: str | None = getenv("CORS_ALLOW_ORIGINS")

    @property
    def is_production(self) -> bool:
        return self.service_env in ["prod", "production"]

    @property
    def fallback_models(self) -> list[str]:
        return [m.strip() for m in self.openrouter_fallback_models.split(",") if m.strip()]


settings = Settings()
