from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str | None = Field(None, alias="DATABASE_URL")
    backend_session_secret: str = Field("", alias="BACKEND_SESSION_SECRET")

    guest_mode: bool = Field(False, alias="GUEST_MODE")
    guest_user_id: str = Field("guest", alias="GUEST_USER_ID")
    guest_storage_path: str | None = Field(None, alias="GUEST_STORAGE_PATH")

    user_timezone: str = Field("UTC", alias="USER_TIMEZONE")
    user_timezones_raw: str = Field("", alias="USER_TIMEZONES")
    allowed_user_ids_raw: str = Field("", alias="ALLOWED_USER_IDS")

    change_log_size: int = Field(500, alias="CHANGE_LOG_SIZE")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def allowed_user_ids(self) -> List[str]:
        return [item.strip() for item in self.allowed_user_ids_raw.split(",") if item.strip()]

    def timezone_for(self, user_id: str) -> str:
        for item in self.user_timezones_raw.split(","):
            if "=" not in item:
                continue
            key, value = item.split("=", 1)
            if key.strip() == user_id and value.strip():
                return value.strip()
        return self.user_timezone


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
