from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./syncpanel.db"
    account_type: Optional[str] = None  # show every type when unset
    authorities_filter: List[str] = []
    refresh_interval_minutes: int = 5
    verbose: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "SYNCPANEL_"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
