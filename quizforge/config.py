import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


@dataclass(frozen=True)
class Settings:
    max_upload_mb: int = 10
    pdftotext_bin: str = "pdftotext"
    pdftotext_timeout: int = 60
    log_level: str = "INFO"
    offline_only: bool = False
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout: float = 30.0
    random_seed: Optional[int] = None
    generation_rate_limit: str = "30/minute"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def llm_enabled(self) -> bool:
        # Placeholder keys from sample .env files count as "not configured"
        key = self.openai_api_key or ""
        return bool(key) and key != "your-openai-api-key-here" and not self.offline_only

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            max_upload_mb=_env_int("QUIZFORGE_MAX_UPLOAD_MB", 10),
            pdftotext_bin=os.getenv("QUIZFORGE_PDFTOTEXT_BIN", "pdftotext"),
            pdftotext_timeout=_env_int("QUIZFORGE_PDFTOTEXT_TIMEOUT", 60),
            log_level=os.getenv("QUIZFORGE_LOG_LEVEL", "INFO").upper(),
            offline_only=_env_bool("QUIZFORGE_OFFLINE_ONLY"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("QUIZFORGE_OPENAI_MODEL", "gpt-4o-mini"),
            openai_timeout=float(os.getenv("QUIZFORGE_OPENAI_TIMEOUT", "30")),
            random_seed=_env_int("QUIZFORGE_RANDOM_SEED", None),
            generation_rate_limit=os.getenv("QUIZFORGE_GENERATION_RATE_LIMIT", "30/minute"),
        )


@lru_cache()
def get_settings() -> Settings:
    """Settings are read from the environment once per process."""
    return Settings.from_env()
