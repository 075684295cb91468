"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from kbart_harvester import __version__

MAX_WORKERS = 64
DEFAULT_CHUNK_SIZE = 131072  # 128 KB


def default_worker_count() -> int:
    """Derives the default number of workers from the host's CPU count."""
    return max(1, min(MAX_WORKERS, os.cpu_count() or 1))


class HarvestConfig(BaseModel):
    """A validated, immutable configuration for one harvest run."""

    # Core settings
    output_dir: Path
    max_workers: int = Field(default_factory=default_worker_count)
    check_validity: bool = True

    # Transport settings
    connect_timeout: float = 15.0
    read_timeout: float = 90.0
    total_timeout: float | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    user_agent: str = f"kbart-harvester/{__version__}"

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        frozen = True
        str_strip_whitespace = True

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > MAX_WORKERS:
            raise ValueError(f"Max workers must be between 1 and {MAX_WORKERS}.")
        return v

    @field_validator("connect_timeout", "read_timeout", "total_timeout")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("Timeouts must be positive numbers of seconds.")
        return v

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        if v < 1024:
            raise ValueError("Chunk size must be at least 1024 bytes.")
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "output_dir"}
        return {key for key in cls.model_fields if key not in internal_fields}
