from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    database_url: str = "sqlite:///./fitlog.db"
    max_upload_bytes: int = 10 * 1024 * 1024  # 10 MB upload cap
    max_heart_rate_bpm: int = 250  # physiological ceiling; higher readings are sensor noise
    log_level: str = "INFO"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
