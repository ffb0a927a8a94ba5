"""Pydantic schemas for application configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


def default_data_dir() -> Path:
    return Path.home() / ".travel_translate"


class StorageConfig(BaseModel):
    """Where the key-value store and language packs live on disk."""

    data_dir: Path = Field(default_factory=default_data_dir)
    store_filename: str = "store.json"
    packs_dirname: str = "languages"

    @property
    def store_path(self) -> Path:
        return self.data_dir.expanduser() / self.store_filename

    @property
    def packs_dir(self) -> Path:
        return self.data_dir.expanduser() / self.packs_dirname


class CacheConfig(BaseModel):
    """Expiring cache parameters."""

    default_ttl_ms: int = Field(60 * 60 * 1000, ge=0)
    key_prefix: str = Field("cache:", min_length=1)


class OfflineConfig(BaseModel):
    """Language pack download behavior."""

    default_quality: Literal["basic", "standard", "premium"] = "standard"
    download_delay_s: float = Field(2.0, ge=0)
    pack_source_url: Optional[str] = None
    download_timeout_s: float = Field(30.0, gt=0)


class NetworkConfig(BaseModel):
    """Connectivity probe used to pick the online or offline path."""

    probe_url: str = "https://clients3.google.com/generate_204"
    timeout_s: float = Field(3.0, gt=0)


class ApiConfig(BaseModel):
    """Credentials and endpoint configuration for the online translator."""

    provider: Literal["mock", "openai"] = "mock"
    endpoint: str = "https://api.openai.com/v1/chat/completions"
    api_key: Optional[str] = Field(default=None, repr=False)
    model: str = "gpt-3.5-turbo"
    system_prompt: Optional[str] = Field(default=None)
    timeout_s: float = Field(15.0, gt=0)


class HistoryConfig(BaseModel):
    """Translation history retention."""

    max_items: int = Field(100, ge=1)


class AppConfig(BaseModel):
    """Root configuration model for the application."""

    storage: StorageConfig = StorageConfig()
    cache: CacheConfig = CacheConfig()
    offline: OfflineConfig = OfflineConfig()
    network: NetworkConfig = NetworkConfig()
    api: ApiConfig = ApiConfig()
    history: HistoryConfig = HistoryConfig()
