from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    domain: str = "localhost"
    data_dir: Path = Path("/app/data")
    db_url: str = "sqlite:////app/data/notes.db"

    # Note lifecycle
    note_grace_delay_seconds: float = 5.0  # reveal -> content overwrite
    note_destroyed_sentinel: str = "[DESTROYED]"
    note_retention_days: int = 30  # unread notes older than this are swept
    note_sweep_interval_seconds: int = 3600
    note_max_content_length: int = 10_000

    # Usage limits
    free_note_limit: int = 5

    # RevenueCat (subscription lookup). Empty key disables verification.
    revenuecat_api_key: str = ""
    revenuecat_api_url: str = "https://api.revenuecat.com/v1"
    revenuecat_entitlement: str = "premium"
    revenuecat_timeout_seconds: float = 3.0

    @model_validator(mode="after")
    def _check_lifecycle_values(self) -> Settings:
        if self.note_grace_delay_seconds < 0:
            raise ValueError(
                f"NOTE_GRACE_DELAY_SECONDS must be >= 0, got {self.note_grace_delay_seconds}"
            )
        if self.note_retention_days <= 0:
            raise ValueError(
                f"NOTE_RETENTION_DAYS must be > 0, got {self.note_retention_days}"
            )
        if self.note_sweep_interval_seconds <= 0:
            raise ValueError(
                f"NOTE_SWEEP_INTERVAL_SECONDS must be > 0, got {self.note_sweep_interval_seconds}"
            )
        if self.free_note_limit < 0:
            raise ValueError(f"FREE_NOTE_LIMIT must be >= 0, got {self.free_note_limit}")
        self.revenuecat_api_key = self.revenuecat_api_key.strip()
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
