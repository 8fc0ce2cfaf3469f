"""Runtime settings for hyouji.

Settings sources (in priority order):
1. Environment variables (HYOUJI_CONFIG_DIR, etc.)
2. .env file in current directory
3. Built-in defaults
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "github-label-manager"
DEFAULT_FALLBACK_CONFIG_PATH = Path.home() / ".github-label-manager-config.json"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class Settings:
    config_dir: Path = DEFAULT_CONFIG_DIR
    fallback_config_path: Path = DEFAULT_FALLBACK_CONFIG_PATH
    api_url: str = DEFAULT_API_URL
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def load(cls) -> Settings:
        return cls(
            config_dir=Path(os.getenv("HYOUJI_CONFIG_DIR", str(DEFAULT_CONFIG_DIR))),
            fallback_config_path=Path(
                os.getenv("HYOUJI_FALLBACK_CONFIG_PATH", str(DEFAULT_FALLBACK_CONFIG_PATH))
            ),
            api_url=os.getenv("HYOUJI_GITHUB_API_URL", DEFAULT_API_URL),
            log_level=os.getenv("HYOUJI_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )

    def validate(self) -> list[str]:
        """Return a list of settings issues."""
        issues = []
        if not isinstance(logging.getLevelName(self.log_level), int):
            issues.append(f"Unknown log level '{self.log_level}' (HYOUJI_LOG_LEVEL)")
        if not self.api_url.startswith(("https://", "http://")):
            issues.append(f"API URL must be http(s): {self.api_url} (HYOUJI_GITHUB_API_URL)")
        return issues
