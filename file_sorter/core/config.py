"""
Configuration for file-sorter.

Two layers:

- :class:`OrganizerSettings` tunes the engine (batching, retries) and is read
  from ``FILE_SORTER_*`` environment variables or a ``.env`` file.
- :class:`SorterConfig` is the user's persisted setup (categories, input and
  output folders), stored as JSON in ``~/.file-sorter.json``.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".file-sorter.json"

DEFAULT_CATEGORIES: Dict[str, List[str]] = {
    "Images": [".jpg", ".jpeg", ".png", ".gif", ".bmp"],
    "Documents": [".pdf", ".doc", ".docx", ".txt", ".xlsx", ".pptx"],
    "Videos": [".mp4", ".avi", ".mov", ".wmv", ".mkv"],
    "Audio": [".mp3", ".wav", ".ogg", ".flac", ".aac"],
    "Archives": [".zip", ".rar", ".7z", ".tar", ".gz"],
}


class OrganizerSettings(BaseSettings):
    """Engine tuning loaded from environment variables."""

    batch_size: int = Field(default=10, ge=1, description="Files per batch")
    batch_delay: float = Field(
        default=0.05, ge=0, description="Pause between batches, in seconds"
    )
    max_retries: int = Field(
        default=3, ge=1, description="Rounds of the move fallback chain"
    )
    retry_backoff: float = Field(
        default=0.1,
        ge=0,
        description="Seconds multiplied by the attempt index between rounds",
    )

    model_config = SettingsConfigDict(
        env_prefix="FILE_SORTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def normalize_extensions(extensions: Union[str, Iterable[str]]) -> List[str]:
    """
    Normalize user-entered extensions.

    Accepts a comma separated string or an iterable. Each entry is trimmed and
    given a leading dot; empty entries are dropped.

    Args:
        extensions: e.g. ``"jpg, .PNG"`` or ``["jpg", ".png"]``

    Returns:
        List like ``[".jpg", ".PNG"]`` (case is kept, matching ignores it)
    """
    if isinstance(extensions, str):
        extensions = extensions.split(",")

    normalized: List[str] = []
    for ext in extensions:
        trimmed = ext.strip()
        if not trimmed or trimmed == ".":
            continue
        if not trimmed.startswith("."):
            trimmed = "." + trimmed
        if trimmed not in normalized:
            normalized.append(trimmed)
    return normalized


class SorterConfig(BaseModel):
    """Persisted user configuration."""

    categories: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_CATEGORIES.items()},
        description="Category name -> extensions",
    )
    output_folders: List[str] = Field(
        default_factory=list, description="Output roots used so far"
    )
    input_folder: Optional[str] = Field(
        default=None, description="Folder scanned when no files are given"
    )

    def add_output_folder(self, folder: Union[str, Path]) -> None:
        folder = str(folder)
        if folder not in self.output_folders:
            self.output_folders.append(folder)

    def set_input_folder(self, folder: Union[str, Path]) -> None:
        self.input_folder = str(folder)

    def add_category(self, name: str, extensions: Union[str, Iterable[str]]) -> None:
        """Add or replace a category."""
        name = name.strip()
        if not name:
            raise ConfigError("Category name must not be empty")
        exts = normalize_extensions(extensions)
        if not exts:
            raise ConfigError(f"Category {name!r} needs at least one extension")
        self.categories[name] = exts

    def remove_category(self, name: str) -> bool:
        """Remove a category. Returns False if it did not exist."""
        return self.categories.pop(name, None) is not None


def get_config_path() -> Path:
    """Default location of the persisted configuration."""
    return Path.home() / CONFIG_FILENAME


def load_config(path: Optional[Path] = None) -> SorterConfig:
    """
    Load configuration from disk.

    Args:
        path: Config file; defaults to ``~/.file-sorter.json``

    Returns:
        Loaded config, or the defaults if the file does not exist

    Raises:
        ConfigError: If the file exists but cannot be read or parsed
    """
    config_path = Path(path) if path else get_config_path()
    if not config_path.exists():
        logger.debug(f"No config at {config_path}, using defaults")
        return SorterConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Cannot parse config file {config_path}: {e}") from e

    try:
        return SorterConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e


def save_config(config: SorterConfig, path: Optional[Path] = None) -> Path:
    """
    Write configuration to disk.

    Returns:
        Path the config was written to
    """
    config_path = Path(path) if path else get_config_path()
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(config.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise ConfigError(f"Cannot write config file {config_path}: {e}") from e

    logger.info(f"Saved config to {config_path}")
    return config_path
