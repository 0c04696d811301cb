# Config
"""
Configuration for the ARK infographic service.

Values come from the environment (a local ``.env`` is loaded first) and can be
overridden with keyword arguments, which is what the tests do.
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from infographic.utils.errors import ConfigurationError

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"Environment variable {name} must be an integer, got {raw!r}",
            {"name": name, "value": raw},
        )


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_path(name: str, default: Optional[str]) -> Optional[Path]:
    raw = os.getenv(name, default)
    return Path(raw) if raw else None


class Settings:
    def __init__(self, **overrides: Any) -> None:
        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.dev_mode = _env_bool("DEV_MODE", False)
        self.log_file_path = _env_path("LOG_FILE_PATH", None)

        # Generated lookup tables
        self.data_dir = _env_path("DATA_DIR", "data")

        # Extraction inputs
        self.values_path = _env_path("VALUES_PATH", "upstream/values/values.json")
        self.server_multipliers_path = _env_path(
            "SERVER_MULTIPLIERS_PATH", "upstream/serverMultipliers.json"
        )
        self.multiplier_preset = os.getenv("MULTIPLIER_PRESET", "official")

        # Sprites
        self.sprites_dir = _env_path("SPRITES_DIR", "sprites")
        self.sprites_url = os.getenv("SPRITES_URL") or None
        self.default_game = os.getenv("DEFAULT_GAME", "ASA")

        # Response cache
        self.cache_ttl_seconds = _env_int("CACHE_TTL_SECONDS", 86400)
        self.cache_max_entries = _env_int("CACHE_MAX_ENTRIES", 1024)

        # HTTP server
        self.host = os.getenv("HOST", "127.0.0.1")
        self.port = _env_int("PORT", 8787)

        # "module:factory" returning the stat/render/colorize implementations
        self.collaborators = os.getenv("INFOGRAPHIC_COLLABORATORS") or None

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise ConfigurationError(f"Unknown setting '{key}'", {"setting": key})
            setattr(self, key, value)

        if self.cache_ttl_seconds <= 0:
            raise ConfigurationError(
                "cache_ttl_seconds must be positive",
                {"cache_ttl_seconds": self.cache_ttl_seconds},
            )

    @property
    def colors_path(self) -> Path:
        return Path(self.data_dir) / "colors.json"

    @property
    def species_path(self) -> Path:
        return Path(self.data_dir) / "species-meta.json"

    def get_log_file_path(self) -> Optional[Path]:
        if self.log_file_path:
            path = Path(self.log_file_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            return path
        return None


# Singleton instance
_settings = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
