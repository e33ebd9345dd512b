"""Configuration management for Synapse Notes."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SYNAPSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Google (Gemini transcription/embeddings, Imagen illustrations)
    google_api_key: str = Field(
        default="",
        description="Google AI API key used for Gemini and Imagen",
    )
    transcription_model: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model used for speech-to-text",
    )

    # Embeddings
    embedding_backend: Literal["gemini", "ollama", "sentence-transformers"] = Field(
        default="gemini",
        description="Which provider computes note embeddings",
    )
    embedding_model: str = Field(
        default="text-embedding-004",
        description="Embedding model name for the selected backend",
    )
    embedding_dimension: int = Field(
        default=768,
        ge=1,
        le=8192,
        description="Exact vector length every embedding must have",
    )
    embedding_cache_size: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of cached embeddings (LRU)",
    )
    embedding_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per embedding before giving up",
    )
    embedding_base_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Base backoff delay in seconds between embedding attempts",
    )
    embedding_workers: int = Field(
        default=2,
        ge=1,
        le=16,
        description="Background threads used for embedding generation",
    )

    # Ollama (optional embedding backend)
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama API host",
    )
    ollama_api_key: str = Field(
        default="",
        description="Ollama API key (default: from OLLAMA_API_KEY env var)",
    )

    # Illustrations
    image_endpoint: str = Field(
        default=(
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "imagen-3.0-generate-002:predict"
        ),
        description="Imagen predict endpoint",
    )
    moderation_prefix_length: int = Field(
        default=1000,
        ge=10,
        description="Number of transcript characters screened for the image prompt",
    )

    # Outbound calls
    request_timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Timeout in seconds for outbound provider calls",
    )

    # Storage
    storage_path: Path = Field(
        default=Path("data/uploads"),
        description="Directory for recordings and generated illustrations",
    )
    database_path: Path = Field(
        default=Path("data/synapse.db"),
        description="Path to SQLite database file",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")

    @property
    def database_url(self) -> str:
        """SQLAlchemy database URL."""
        return f"sqlite:///{self.database_path}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
