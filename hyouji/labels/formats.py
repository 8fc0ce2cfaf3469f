"""File format detection and parsing for label files."""

from __future__ import annotations

import json
from pathlib import Path

import yaml

SUPPORTED_EXTENSIONS = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def detect_file_format(file_path: str | Path) -> str | None:
    """Return "json" or "yaml" based on the extension, None if unsupported."""
    return SUPPORTED_EXTENSIONS.get(Path(file_path).suffix.lower())


def parse_json_content(content: str) -> object:
    return json.loads(content)


def parse_yaml_content(content: str) -> object:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"YAMLException: {e}") from e


def get_supported_extensions() -> list[str]:
    return list(SUPPORTED_EXTENSIONS)


def format_supported_extensions() -> str:
    return ", ".join(get_supported_extensions())
