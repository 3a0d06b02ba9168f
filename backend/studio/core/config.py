"""Configuration management using pydantic-settings."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote generation webhook
    generation_webhook_url: str = "http://localhost:8787/"
    generation_timeout: float = 120.0

    # Record store: "memory" or "firestore"
    store_backend: str = "memory"
    gcp_project_id: str = ""
    catalog_path: str = "data/catalog"

    # Filter engine
    jpeg_quality: int = 95
    max_pixels: int = 40_000_000
    vignette_model_ids: list[str] = ["linkedin-headshot", "editorial-magazine"]
    # Hosts the engine may download http(s) sources from; empty disables remote fetch.
    remote_image_hosts: list[str] = []
    remote_fetch_timeout: float = 30.0

    # Upload gate
    min_image_width: int = 512
    min_image_height: int = 512
    min_upload_bytes: int = 1024
    max_upload_bytes: int = 6 * 1024 * 1024

    # Server settings
    backend_host: str = "localhost"
    backend_port: int = 8000
    frontend_port: int = 3000


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
