"""
Configuration for the habit store.

Paths and log settings come from environment variables so callers never read
os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

DEFAULT_DATA_FILE = "data/habits.json"
DEFAULT_LOG_FILE = "logs/habits.log"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    data_file: Path
    log_file: Path
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    level = (os.getenv("HABITS_LOG_LEVEL") or "INFO").strip().upper()
    return Settings(
        data_file=Path(os.getenv("HABITS_DATA_FILE") or DEFAULT_DATA_FILE).expanduser(),
        log_file=Path(os.getenv("HABITS_LOG_FILE") or DEFAULT_LOG_FILE).expanduser(),
        log_level=level,
    )
