"""Detects the GitHub owner/repo of the current working directory.

Walks up to the Git root, asks ``git`` for its remotes, prefers ``origin``
and falls back to the first remote git lists. Only github.com remotes are
understood: SSH (``git@github.com:owner/repo.git``), HTTPS and HTTP.

Failures are reported through DetectionResult.error, never raised.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

GIT_COMMAND_TIMEOUT_SECONDS = 5

# Owner and repo are validated separately, these only split the URL
SSH_URL = re.compile(r"^git@github\.com:([^/\s:]+)/([^/\s:]+?)(?:\.git)?$")
HTTPS_URL = re.compile(r"^https://github\.com/([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")
HTTP_URL = re.compile(r"^http://github\.com/([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")

GITHUB_IDENTIFIER = re.compile(r"^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?$")
MAX_IDENTIFIER_LENGTH = 39

NOT_A_GIT_REPOSITORY = "Not a Git repository"
NO_REMOTES = "No remotes configured"
NO_REMOTE_URL = "Could not retrieve remote URL"
UNPARSABLE_REMOTE_URL = "Could not parse remote URL"
GIT_NOT_AVAILABLE = "Git command not available"


@dataclass
class GitRepositoryInfo:
    owner: str
    repo: str
    remote_url: str
    detection_method: str  # "origin" | "first-remote"


@dataclass
class DetectionResult:
    is_git_repository: bool
    repository_info: GitRepositoryInfo | None = None
    error: str | None = None


@dataclass
class RemoteListing:
    remotes: list[str] = field(default_factory=list)
    error: str | None = None


def find_git_root(start_dir: str | Path) -> Path | None:
    """Walk up from start_dir until a directory containing .git is found."""
    current = Path(os.path.abspath(start_dir))
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    return None


def _run_git(args: list[str], git_root: Path) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=git_root,
        capture_output=True,
        text=True,
        timeout=GIT_COMMAND_TIMEOUT_SECONDS,
        check=True,
    )
    return result.stdout


def list_remotes(git_root: Path) -> RemoteListing:
    """List remote names. A missing git binary is reported as an error."""
    try:
        stdout = _run_git(["remote"], git_root)
    except FileNotFoundError:
        return RemoteListing(error=GIT_NOT_AVAILABLE)
    except subprocess.CalledProcessError as e:
        if "not a git repository" in (e.stderr or "").lower():
            return RemoteListing(error=NOT_A_GIT_REPOSITORY)
        logger.debug(f"git remote failed in {git_root}: {e.stderr}")
        return RemoteListing()
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug(f"git remote failed in {git_root}: {e}")
        return RemoteListing()

    return RemoteListing(remotes=[line for line in stdout.strip().splitlines() if line])


def get_remote_url(git_root: Path, remote_name: str) -> str | None:
    try:
        stdout = _run_git(["remote", "get-url", remote_name], git_root)
    except (subprocess.SubprocessError, OSError) as e:
        logger.debug(f"git remote get-url {remote_name} failed: {e}")
        return None
    return stdout.strip() or None


def is_valid_github_identifier(identifier: str) -> bool:
    """GitHub user/repo rule: 1-39 alphanumerics or single inner hyphens."""
    if not identifier or not isinstance(identifier, str):
        return False
    return (
        len(identifier) <= MAX_IDENTIFIER_LENGTH
        and bool(GITHUB_IDENTIFIER.match(identifier))
        and "--" not in identifier
    )


def parse_git_url(url: str) -> tuple[str, str] | None:
    """Extract (owner, repo) from a github.com remote URL."""
    if not url or not isinstance(url, str) or not url.strip():
        return None

    trimmed = url.strip()
    for pattern in (SSH_URL, HTTPS_URL, HTTP_URL):
        match = pattern.match(trimmed)
        if match:
            owner, repo = match.group(1), match.group(2)
            if is_valid_github_identifier(owner) and is_valid_github_identifier(repo):
                return owner, repo
    return None


def detect_repository(cwd: str | Path | None = None) -> DetectionResult:
    """Detect the GitHub repository for cwd (defaults to the process cwd)."""
    git_root = find_git_root(cwd or Path.cwd())
    if git_root is None:
        return DetectionResult(is_git_repository=False, error=NOT_A_GIT_REPOSITORY)

    listing = list_remotes(git_root)
    if listing.error:
        return DetectionResult(is_git_repository=False, error=listing.error)
    if not listing.remotes:
        return DetectionResult(is_git_repository=True, error=NO_REMOTES)

    remote_url = None
    detection_method = "origin"
    if "origin" in listing.remotes:
        remote_url = get_remote_url(git_root, "origin")

    if not remote_url:
        remote_url = get_remote_url(git_root, listing.remotes[0])
        detection_method = "first-remote"

    if not remote_url:
        return DetectionResult(is_git_repository=True, error=NO_REMOTE_URL)

    parsed = parse_git_url(remote_url)
    if parsed is None:
        return DetectionResult(is_git_repository=True, error=UNPARSABLE_REMOTE_URL)

    owner, repo = parsed
    return DetectionResult(
        is_git_repository=True,
        repository_info=GitRepositoryInfo(
            owner=owner,
            repo=repo,
            remote_url=remote_url,
            detection_method=detection_method,
        ),
    )
