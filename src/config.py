"""
Configuration - data locations, host API access and generation defaults.
Settings persist to a JSON file; environment variables (optionally from a
.env file) override the host API connection.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger("smartsets.config")


__all__ = ["Config", "config"]


def _default_data_dir() -> Path:
    """Returns the data directory, honouring SMARTSETS_DATA_DIR."""
    env_dir = os.getenv("SMARTSETS_DATA_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".smartsets"


@dataclass
class Config:
    """
    Central configuration handling for the engine.
    Manages paths, host API settings and output defaults.
    """

    DATA_DIR: Path = None
    RECIPES_DIR: Path = None
    DATABASE_FILE: Path = None
    SETTINGS_FILE: Path = None
    LOG_FILE: Path | None = None

    # Output defaults
    DEFAULT_FOLDER_PATH: str = "Smart Sets"
    DEFAULT_PROFILE: str = ""
    PREVIEW_SAMPLE_SIZE: int = 25

    # Smart grouping defaults
    GROUPING_MIN_COUNT: int = 5
    GROUPING_MAX_GROUPS: int = 50

    LOG_LEVEL: str = "INFO"

    # Live host API
    HOST_API_URL: str | None = None
    HOST_API_TOKEN: str | None = None  # Runtime-only, NOT persisted to JSON
    HOST_API_TIMEOUT: float = 30.0

    def __post_init__(self):
        """Resolve paths and load settings after instantiation."""
        load_dotenv()

        if self.DATA_DIR is None:
            self.DATA_DIR = _default_data_dir()
        if self.RECIPES_DIR is None:
            self.RECIPES_DIR = self.DATA_DIR / "recipes"
        if self.DATABASE_FILE is None:
            self.DATABASE_FILE = self.DATA_DIR / "smartsets.db"
        if self.SETTINGS_FILE is None:
            self.SETTINGS_FILE = self.DATA_DIR / "settings.json"

        self._load_settings()

        env_url = os.getenv("SMARTSETS_HOST_API_URL")
        if env_url:
            self.HOST_API_URL = env_url
        env_token = os.getenv("SMARTSETS_HOST_API_TOKEN")
        if env_token:
            self.HOST_API_TOKEN = env_token

    def ensure_dirs(self) -> None:
        """Create the data and recipe directories if missing."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.RECIPES_DIR.mkdir(parents=True, exist_ok=True)

    def _load_settings(self) -> None:
        """Load settings from JSON file."""
        if not self.SETTINGS_FILE.exists():
            return

        try:
            with open(self.SETTINGS_FILE, "r", encoding="utf-8") as f:
                data = json.load(f)

                self.DEFAULT_FOLDER_PATH = data.get("default_folder_path", self.DEFAULT_FOLDER_PATH)
                self.DEFAULT_PROFILE = data.get("default_profile", self.DEFAULT_PROFILE)
                self.PREVIEW_SAMPLE_SIZE = data.get("preview_sample_size", self.PREVIEW_SAMPLE_SIZE)
                self.GROUPING_MIN_COUNT = data.get("grouping_min_count", self.GROUPING_MIN_COUNT)
                self.GROUPING_MAX_GROUPS = data.get("grouping_max_groups", self.GROUPING_MAX_GROUPS)
                self.LOG_LEVEL = data.get("log_level", self.LOG_LEVEL)
                self.HOST_API_URL = data.get("host_api_url", self.HOST_API_URL)
                self.HOST_API_TIMEOUT = data.get("host_api_timeout", self.HOST_API_TIMEOUT)

                log_file = data.get("log_file")
                if log_file:
                    self.LOG_FILE = Path(log_file)

        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load settings from %s: %s", self.SETTINGS_FILE, e)

    def save(self) -> None:
        """Save current configuration to JSON file."""
        data = {
            "default_folder_path": self.DEFAULT_FOLDER_PATH,
            "default_profile": self.DEFAULT_PROFILE,
            "preview_sample_size": self.PREVIEW_SAMPLE_SIZE,
            "grouping_min_count": self.GROUPING_MIN_COUNT,
            "grouping_max_groups": self.GROUPING_MAX_GROUPS,
            "log_level": self.LOG_LEVEL,
            "host_api_url": self.HOST_API_URL,
            "host_api_timeout": self.HOST_API_TIMEOUT,
            "log_file": str(self.LOG_FILE) if self.LOG_FILE else "",
        }

        try:
            self.SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
            with open(self.SETTINGS_FILE, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.error("Failed to save settings to %s: %s", self.SETTINGS_FILE, e)

    def get_log_level(self) -> int:
        """Returns LOG_LEVEL as a logging module constant (INFO on unknown names)."""
        level = logging.getLevelName(str(self.LOG_LEVEL).upper())
        return level if isinstance(level, int) else logging.INFO


# Global instance
config = Config()
