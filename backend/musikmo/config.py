"""Application configuration module."""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

STORAGE_ROOT = Path(__file__).parent.parent / "storage"


class Settings(BaseSettings):
    """Settings loaded from MUSIKMO_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="MUSIKMO_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    app_name: str = "Musik M-O API"
    api_prefix: str = "/api"

    storage_root: Path = STORAGE_ROOT
    catalog_file: str = "songs.json"
    create_catalog: bool = True

    host: str = "127.0.0.1"
    port: int = 3001
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def data_dir(self) -> Path:
        return self.storage_root / "data"

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / self.catalog_file

    @property
    def covers_dir(self) -> Path:
        return self.storage_root / "covers"

    @property
    def songs_dir(self) -> Path:
        return self.storage_root / "songs"


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
