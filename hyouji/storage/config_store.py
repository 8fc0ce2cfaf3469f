"""Persistent credential storage.

Credentials live in a small JSON file:

    {"token": "<iv>:<cipher>", "owner": "octocat", "lastUpdated": "2024-06-15T10:00:00+00:00"}

Two locations are used. The primary file sits under the user config
directory; the fallback file sits directly in the home directory and is only
written when the primary location cannot be written. Reads try primary first.

Every filesystem failure is re-raised as a ConfigError tagged with a
ConfigErrorType, with the platform exception kept on ``original_error``.
"""

from __future__ import annotations

import errno
import json
import logging
import os
import re
import shutil
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

import requests
from github.GithubException import GithubException

from hyouji.config import (
    DEFAULT_API_URL,
    DEFAULT_CONFIG_DIR,
    DEFAULT_FALLBACK_CONFIG_PATH,
    Settings,
)
from hyouji.github.client import fetch_authenticated_login
from hyouji.storage.crypto import decrypt_token, encrypt_token, is_token_encrypted

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"
DIR_MODE = 0o700
FILE_MODE = 0o600

TOKEN_PATTERN = re.compile(r"^(ghp_|gho_|ghu_|ghs_)[a-zA-Z0-9]{36}$")


class ConfigErrorType(str, Enum):
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    CORRUPTED_FILE = "CORRUPTED_FILE"
    INVALID_FORMAT = "INVALID_FORMAT"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


RECOVERABLE_ERRORS = {
    ConfigErrorType.FILE_NOT_FOUND,
    ConfigErrorType.CORRUPTED_FILE,
    ConfigErrorType.INVALID_FORMAT,
}


class ConfigError(Exception):
    """Raised for any configuration storage or validation failure."""

    def __init__(
        self,
        error_type: ConfigErrorType,
        message: str,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.original_error = original_error


@dataclass
class StoredCredentials:
    token: str
    owner: str
    last_updated: str = ""  # ISO-8601

    def to_dict(self) -> dict:
        return {"token": self.token, "owner": self.owner, "lastUpdated": self.last_updated}

    @classmethod
    def from_dict(cls, data: dict) -> StoredCredentials:
        return cls(
            token=data["token"],
            owner=data["owner"],
            last_updated=data.get("lastUpdated", ""),
        )


@dataclass
class CredentialCheck:
    is_valid: bool
    error: ConfigError | None = None
    login_mismatch: bool = False


@dataclass
class ValidationResult:
    config: StoredCredentials | None
    should_prompt_for_credentials: bool
    preserved_owner: str | None = None


class MigrationOutcome(str, Enum):
    NO_CONFIG = "no_config"
    ALREADY_ENCRYPTED = "already_encrypted"
    MIGRATED = "migrated"
    FAILED = "failed"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_permission_error(exc: OSError) -> bool:
    return isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM)


def _write_private(path: Path, content: str) -> None:
    """Write a file readable only by its owner."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)
    # O_CREAT's mode is ignored for files that already exist
    os.chmod(path, FILE_MODE)


class ConfigStore:
    """Reads, writes, validates and clears the saved credentials."""

    def __init__(
        self,
        config_dir: Path | None = None,
        fallback_path: Path | None = None,
        login_lookup: Callable[[str], str] | None = None,
        api_url: str = DEFAULT_API_URL,
    ) -> None:
        self.config_dir = config_dir or DEFAULT_CONFIG_DIR
        self.config_path = self.config_dir / CONFIG_FILE_NAME
        self.fallback_path = fallback_path or DEFAULT_FALLBACK_CONFIG_PATH
        self._login_lookup = login_lookup or (
            lambda token: fetch_authenticated_login(token, base_url=api_url)
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> ConfigStore:
        return cls(
            config_dir=settings.config_dir,
            fallback_path=settings.fallback_config_path,
            api_url=settings.api_url,
        )

    # -- reading -----------------------------------------------------------

    def load_config(self) -> StoredCredentials | None:
        """Load the first valid config (primary, then fallback), token decrypted."""
        found = self._load_first_raw()
        if found is None:
            return None
        _path, data = found
        return self._decrypted(data)

    def load_raw_token(self) -> str | None:
        """Token exactly as stored on disk, or None when no valid config exists."""
        found = self._load_first_raw()
        if found is None:
            return None
        _path, data = found
        return data["token"]

    def load_config_from_path(self, config_path: Path) -> StoredCredentials:
        """Load and validate one config file. Raises ConfigError."""
        return self._decrypted(self._load_raw(config_path))

    def _decrypted(self, data: dict) -> StoredCredentials:
        credentials = StoredCredentials.from_dict(data)
        credentials.token = decrypt_token(credentials.token)
        return credentials

    def _load_first_raw(self) -> tuple[Path, dict] | None:
        locations = [(self.config_path, "primary"), (self.fallback_path, "fallback")]
        for path, name in locations:
            if not path.exists():
                continue
            try:
                return path, self._load_raw(path)
            except ConfigError as e:
                self._handle_load_error(e, path, name)
        return None

    def _load_raw(self, config_path: Path) -> dict:
        """Read one config file as stored on disk (token still encrypted)."""
        try:
            data = config_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigError(
                ConfigErrorType.FILE_NOT_FOUND,
                f"Configuration file not found: {config_path}",
                e,
            ) from e
        except OSError as e:
            if _is_permission_error(e):
                raise ConfigError(
                    ConfigErrorType.PERMISSION_DENIED,
                    f"Permission denied accessing configuration file: {config_path}",
                    e,
                ) from e
            raise ConfigError(
                ConfigErrorType.UNKNOWN_ERROR,
                f"Unexpected error loading configuration: {e}",
                e,
            ) from e
        except UnicodeDecodeError as e:
            raise ConfigError(
                ConfigErrorType.CORRUPTED_FILE, "Configuration file is not valid UTF-8", e
            ) from e

        if not data.strip():
            raise ConfigError(ConfigErrorType.CORRUPTED_FILE, "Configuration file is empty")

        try:
            config = json.loads(data)
        except json.JSONDecodeError as e:
            raise ConfigError(
                ConfigErrorType.CORRUPTED_FILE,
                "Configuration file contains invalid JSON",
                e,
            ) from e

        if not self.validate_config(config):
            raise ConfigError(
                ConfigErrorType.INVALID_FORMAT,
                "Configuration file has invalid format or missing required fields",
            )
        return config

    def _handle_load_error(self, error: ConfigError, config_path: Path, location: str) -> None:
        if error.error_type == ConfigErrorType.CORRUPTED_FILE:
            logger.warning(
                f"Configuration file at {location} location is corrupted: {error.message} "
                f"({config_path}). It will be ignored and you'll be prompted for credentials."
            )
            self._backup_corrupted_file(config_path)
        elif error.error_type == ConfigErrorType.INVALID_FORMAT:
            logger.warning(
                f"Configuration file at {location} location has invalid format ({config_path}). "
                "It will be ignored and you'll be prompted for credentials."
            )
            self._backup_corrupted_file(config_path)
        elif error.error_type == ConfigErrorType.PERMISSION_DENIED:
            logger.warning(
                f"Permission denied accessing configuration file at {location} location "
                f"({config_path}). Please check file permissions."
            )
        else:
            logger.warning(
                f"Failed to load configuration from {location} location: {error.message} "
                f"({config_path})"
            )

    def _backup_corrupted_file(self, config_path: Path) -> Path | None:
        backup_path = config_path.with_name(
            f"{config_path.name}.backup.{int(time.time() * 1000)}"
        )
        try:
            shutil.copyfile(config_path, backup_path)
        except OSError as e:
            logger.warning(f"Could not backup corrupted file {config_path}: {e}")
            return None
        logger.warning(f"Corrupted file backed up to: {backup_path}")
        return backup_path

    def validate_config(self, config: object) -> bool:
        """Check the shape of a parsed config and the decrypted token format."""
        if not isinstance(config, dict):
            return False
        token = config.get("token")
        owner = config.get("owner")
        if not isinstance(token, str) or not token.strip():
            return False
        if not isinstance(owner, str) or not owner.strip():
            return False
        return bool(TOKEN_PATTERN.match(decrypt_token(token)))

    def config_exists(self) -> bool:
        return self.config_path.exists() or self.fallback_path.exists()

    def get_config_path(self) -> Path:
        if self.config_path.exists():
            return self.config_path
        if self.fallback_path.exists():
            return self.fallback_path
        return self.config_path

    # -- writing -----------------------------------------------------------

    def save_config(self, credentials: StoredCredentials) -> Path:
        """Encrypt and save credentials. Returns the path that was written."""
        stored = StoredCredentials(
            token=encrypt_token(credentials.token),
            owner=credentials.owner,
            last_updated=_now_iso(),
        )
        content = json.dumps(stored.to_dict(), indent=2)

        try:
            self.config_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            _write_private(self.config_path, content)
        except OSError as primary_error:
            if primary_error.errno == errno.ENOSPC:
                raise ConfigError(
                    ConfigErrorType.UNKNOWN_ERROR,
                    "Insufficient disk space to save configuration",
                    primary_error,
                ) from primary_error
            if _is_permission_error(primary_error):
                logger.warning(
                    f"Permission denied writing to primary configuration location "
                    f"({self.config_path}). Trying fallback location..."
                )
            else:
                logger.warning(
                    f"Failed to save configuration to primary location: {primary_error}. "
                    "Trying fallback location..."
                )
            return self._save_fallback(content, primary_error)

        if self.fallback_path.exists():
            try:
                self.fallback_path.unlink()
            except OSError:
                logger.warning(
                    f"Could not remove old fallback configuration file: {self.fallback_path}"
                )
        return self.config_path

    def _save_fallback(self, content: str, primary_error: OSError) -> Path:
        try:
            _write_private(self.fallback_path, content)
        except OSError as e:
            if _is_permission_error(e):
                raise ConfigError(
                    ConfigErrorType.PERMISSION_DENIED,
                    "Permission denied: Cannot save configuration to any location. "
                    "Please check file permissions or run with appropriate privileges.",
                    e,
                ) from e
            if e.errno == errno.ENOSPC:
                raise ConfigError(
                    ConfigErrorType.UNKNOWN_ERROR,
                    "Insufficient disk space to save configuration",
                    e,
                ) from e
            raise ConfigError(
                ConfigErrorType.UNKNOWN_ERROR,
                f"Failed to save configuration to any location. "
                f"Primary error: {primary_error}. Fallback error: {e}",
                e,
            ) from e
        logger.warning(f"Configuration saved to fallback location: {self.fallback_path}")
        return self.fallback_path

    def clear_config(self) -> None:
        """Delete both config files. Missing files are not an error."""
        errors: list[str] = []
        for path, name in ((self.config_path, "primary"), (self.fallback_path, "fallback")):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                if _is_permission_error(e):
                    errors.append(f"Permission denied removing {name} config file: {path}")
                else:
                    errors.append(f"Failed to remove {name} config file: {e}")

        if errors:
            raise ConfigError(
                ConfigErrorType.PERMISSION_DENIED,
                f"Failed to clear configuration: {'; '.join(errors)}",
            )

    def migrate_to_encrypted(self) -> MigrationOutcome:
        """Re-save a plain text config in encrypted form. Never raises."""
        found = self._load_first_raw()
        if found is None:
            return MigrationOutcome.NO_CONFIG

        _path, data = found
        if is_token_encrypted(data["token"]):
            return MigrationOutcome.ALREADY_ENCRYPTED

        try:
            self.save_config(self._decrypted(data))
        except ConfigError as e:
            logger.warning(f"Failed to encrypt existing configuration: {e.message}")
            return MigrationOutcome.FAILED
        return MigrationOutcome.MIGRATED

    # -- validation against the API ----------------------------------------

    def validate_credentials(self, credentials: StoredCredentials) -> CredentialCheck:
        """Check the token against GET /user and compare the login to the owner."""
        try:
            login = self._login_lookup(decrypt_token(credentials.token))
        except GithubException as e:
            if e.status == 401:
                return CredentialCheck(
                    is_valid=False,
                    error=ConfigError(
                        ConfigErrorType.INVALID_FORMAT,
                        "GitHub token is invalid or has expired",
                        e,
                    ),
                )
            if e.status == 403:
                return CredentialCheck(
                    is_valid=False,
                    error=ConfigError(
                        ConfigErrorType.INVALID_FORMAT,
                        "GitHub token has insufficient permissions or rate limit exceeded",
                        e,
                    ),
                )
            return CredentialCheck(
                is_valid=False,
                error=ConfigError(
                    ConfigErrorType.UNKNOWN_ERROR,
                    f"Failed to validate credentials: {e}",
                    e,
                ),
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            return CredentialCheck(
                is_valid=False,
                error=ConfigError(
                    ConfigErrorType.NETWORK_ERROR,
                    "Unable to connect to GitHub API. Please check your internet connection.",
                    e,
                ),
            )
        except requests.RequestException as e:
            return CredentialCheck(
                is_valid=False,
                error=ConfigError(
                    ConfigErrorType.UNKNOWN_ERROR,
                    f"Failed to validate credentials: {e}",
                    e,
                ),
            )

        if login.lower() != credentials.owner.lower():
            return CredentialCheck(
                is_valid=False,
                error=ConfigError(
                    ConfigErrorType.INVALID_FORMAT,
                    f"Token belongs to user '{login}' but configuration is for "
                    f"'{credentials.owner}'",
                ),
                login_mismatch=True,
            )
        return CredentialCheck(is_valid=True)

    def load_validated_config(self) -> ValidationResult:
        """Load the saved config and confirm it still authenticates."""
        config = self.load_config()
        if config is None:
            return ValidationResult(config=None, should_prompt_for_credentials=True)

        check = self.validate_credentials(config)
        if check.is_valid:
            return ValidationResult(config=config, should_prompt_for_credentials=False)

        preserved_owner = None
        if check.error is not None:
            logger.warning(self.get_error_message(check.error))
            if not check.login_mismatch:
                preserved_owner = config.owner
                logger.warning(f"Your GitHub username '{config.owner}' will be preserved.")

        return ValidationResult(
            config=None,
            should_prompt_for_credentials=True,
            preserved_owner=preserved_owner,
        )

    # -- messages ----------------------------------------------------------

    @staticmethod
    def get_error_message(error: ConfigError) -> str:
        """User-facing explanation for a configuration problem."""
        messages = {
            ConfigErrorType.FILE_NOT_FOUND: (
                "Configuration file not found. You will be prompted to enter your credentials."
            ),
            ConfigErrorType.PERMISSION_DENIED: (
                "Permission denied accessing configuration file. Please check file "
                "permissions or run with appropriate privileges."
            ),
            ConfigErrorType.CORRUPTED_FILE: (
                "Configuration file is corrupted or contains invalid data. A backup has "
                "been created and you will be prompted for new credentials."
            ),
            ConfigErrorType.INVALID_FORMAT: (
                f"Configuration is no longer valid ({error.message}). You will be "
                "prompted to enter your credentials again."
            ),
            ConfigErrorType.NETWORK_ERROR: (
                "Network error occurred while validating credentials. Please check "
                "your internet connection."
            ),
        }
        return messages.get(error.error_type, f"An unexpected error occurred: {error.message}")

    @staticmethod
    def is_recoverable_error(error: ConfigError) -> bool:
        return error.error_type in RECOVERABLE_ERRORS
