"""BuildSync configuration management"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import toml  # type: ignore[import-untyped]

from buildsync.notifications import DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_ADVISORY_URL = "https://advisory.buildsync.dev"
DEFAULT_POLL_INTERVAL_SECONDS = 1.0
API_KEY_ENV_VARS = ("BUILDSYNC_API_KEY", "GEMINI_API_KEY")


def buildsync_home() -> Path:
    """Return the config directory, honouring BUILDSYNC_HOME."""
    override = os.environ.get("BUILDSYNC_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".buildsync"


class BuildSyncConfig:
    """Manage BuildSync configuration"""

    def __init__(self, config_dir: Path | None = None) -> None:
        self.config_dir = config_dir or buildsync_home()
        self.config_file = self.config_dir / "config.toml"

    def _load(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return {}
        try:
            config = toml.load(self.config_file)
        except (toml.TomlDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", self.config_file, exc)
            return {}
        return config if isinstance(config, dict) else {}

    def _section(self, name: str) -> dict[str, Any]:
        section = self._load().get(name)
        return section if isinstance(section, dict) else {}

    def get_store_path(self) -> Path:
        """Get the sqlite path of the shared durable layer"""
        path = self._section("store").get("path")
        if isinstance(path, str) and path:
            return Path(path).expanduser()
        return self.config_dir / "buildsync.db"

    def get_notification_timeout(self) -> float:
        value = self._section("notifications").get("timeout_seconds")
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return float(value)
        return DEFAULT_TIMEOUT_SECONDS

    def get_poll_interval(self) -> float:
        value = self._section("sync").get("poll_interval_seconds")
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return float(value)
        return DEFAULT_POLL_INTERVAL_SECONDS

    def get_advisory_url(self) -> str:
        url = self._section("advisory").get("server_url")
        if isinstance(url, str) and url:
            return url
        return DEFAULT_ADVISORY_URL

    def get_api_key(self) -> str | None:
        """API key from the environment; never stored in the config file."""
        for name in API_KEY_ENV_VARS:
            value = os.environ.get(name)
            if value and value.strip():
                return value.strip()
        return None

    def set_value(self, section: str, key: str, value: Any) -> None:
        """Set one config value, creating the file if needed"""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        config = self._load()
        section_data = config.get(section)
        if not isinstance(section_data, dict):
            section_data = {}
            config[section] = section_data
        section_data[key] = value

        with open(self.config_file, "w", encoding="utf-8") as f:
            toml.dump(config, f)
