"""Shared test fixtures for hyouji."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from hyouji.config import Settings
from hyouji.github.labels import LabelService
from hyouji.storage.config_store import ConfigStore
from hyouji.storage.crypto import encrypt_token

VALID_TOKEN = "ghp_" + "a1B2c3D4e5" * 3 + "f6G7h8"


@pytest.fixture
def token() -> str:
    assert len(VALID_TOKEN) == 40
    return VALID_TOKEN


@pytest.fixture
def login_lookup() -> MagicMock:
    return MagicMock(return_value="octocat")


@pytest.fixture
def store(tmp_path: Path, login_lookup: MagicMock) -> ConfigStore:
    return ConfigStore(
        config_dir=tmp_path / "config" / "github-label-manager",
        fallback_path=tmp_path / ".github-label-manager-config.json",
        login_lookup=login_lookup,
    )


@pytest.fixture
def write_config():
    """Write a config file the way an earlier run would have left it."""

    def _write(path: Path, token: str, owner: str = "octocat", encrypt: bool = True) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        stored = encrypt_token(token) if encrypt else token
        path.write_text(
            json.dumps(
                {"token": stored, "owner": owner, "lastUpdated": "2024-06-15T10:00:00+00:00"}
            )
        )
        return path

    return _write


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        config_dir=tmp_path / "config" / "github-label-manager",
        fallback_config_path=tmp_path / ".github-label-manager-config.json",
    )


@pytest.fixture
def gh_repo() -> MagicMock:
    """Stand-in for a PyGithub Repository."""
    return MagicMock()


@pytest.fixture
def client(gh_repo: MagicMock) -> MagicMock:
    client = MagicMock()
    client.repo = gh_repo
    client.full_name = "octocat/hello-world"
    return client


@pytest.fixture
def label_service(client: MagicMock) -> LabelService:
    return LabelService(client)
