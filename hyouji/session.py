"""Session setup: credentials, target repository and the GitHub client.

A Session is created once per run and passed through the menu loop. Setting
it up reuses the saved credentials when they still authenticate, tries to
detect the repository from the working directory, and otherwise prompts.
Saved credentials are checked against GET /user when loaded. Entered
credentials are checked once the client is built; a rejected token sends the
user back to the prompts, at most MAX_CREDENTIAL_ATTEMPTS times.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import requests
from github.GithubException import GithubException
from rich import print as rprint
from rich.markup import escape
from rich.panel import Panel

from hyouji.config import Settings
from hyouji.github.client import GitHubClient
from hyouji.github.detector import detect_repository
from hyouji.github.labels import LabelService
from hyouji.labels.models import RepositoryReference
from hyouji.prompts import ask_confirm, ask_password, ask_text
from hyouji.storage.config_store import (
    ConfigError,
    ConfigStore,
    MigrationOutcome,
    StoredCredentials,
    ValidationResult,
)

logger = logging.getLogger(__name__)

MAX_CREDENTIAL_ATTEMPTS = 3
TOKEN_SETTINGS_URL = "https://github.com/settings/tokens"

DETECTION_METHOD_TEXT = {
    "origin": "origin remote",
    "first-remote": "first available remote",
    "manual": "manual input",
}


@dataclass
class ResolvedConfig:
    token: str
    repository: RepositoryReference
    from_saved_config: bool = False
    auto_detected: bool = False
    # Token already passed GET /user while loading the saved config
    credentials_verified: bool = False


@dataclass
class Session:
    settings: Settings
    store: ConfigStore
    client: GitHubClient | None = None
    repository: RepositoryReference | None = None
    first_start: bool = True
    _labels: LabelService | None = field(default=None, repr=False)

    @property
    def labels(self) -> LabelService:
        if self.client is None:
            raise RuntimeError("Session has no GitHub client; call initialize_session first")
        if self._labels is None:
            self._labels = LabelService(self.client)
        return self._labels

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def print_banner() -> None:
    rprint(
        Panel.fit(
            "[bold magenta]Hyouji[/bold magenta]\nGitHub Label Manager CLI Tool",
            border_style="cyan",
        )
    )


def _check_saved_config(store: ConfigStore) -> ValidationResult:
    if not store.config_exists():
        return ValidationResult(config=None, should_prompt_for_credentials=True)
    return store.load_validated_config()


def _migrate(store: ConfigStore) -> None:
    if not store.config_exists():
        return
    outcome = store.migrate_to_encrypted()
    if outcome == MigrationOutcome.MIGRATED:
        rprint("[green]🔒 Configuration migrated to encrypted format[/green]")
    elif outcome == MigrationOutcome.FAILED:
        rprint("[yellow]⚠️  Failed to encrypt existing configuration[/yellow]")


def _prompt_for_credentials(
    store: ConfigStore, preserved_owner: str | None
) -> ResolvedConfig:
    rprint("Please input your GitHub info")
    token = ask_password("Please type your personal token")
    owner = ask_text("Please type your GitHub account", default=preserved_owner)
    repo = ask_text("Please type your target repo name")

    if token and owner:
        try:
            store.save_config(StoredCredentials(token=token, owner=owner))
        except ConfigError as e:
            rprint(f"[red]❌ {escape(ConfigStore.get_error_message(e))}[/red]")
            if not ConfigStore.is_recoverable_error(e):
                rprint(
                    "[red]   This may affect future sessions. Please resolve the issue "
                    "and try again.[/red]"
                )
        else:
            if preserved_owner and preserved_owner != owner:
                rprint("[green]✓ Configuration updated with new credentials[/green]")
            else:
                rprint("[green]✓ Configuration saved successfully[/green]")

    return ResolvedConfig(
        token=token,
        repository=RepositoryReference(owner=owner, repo=repo, detection_method="manual"),
    )


def resolve_github_config(session: Session, validation: ValidationResult) -> ResolvedConfig:
    """Work out token, owner and repo from saved config, Git remotes or prompts."""
    saved = validation.config
    if saved is None or validation.should_prompt_for_credentials:
        return _prompt_for_credentials(session.store, validation.preserved_owner)

    detection = detect_repository()
    info = detection.repository_info
    if info is not None:
        rprint(f"[green]✓ Detected repository: {info.owner}/{info.repo}[/green]")
        return ResolvedConfig(
            token=saved.token,
            repository=RepositoryReference(
                owner=info.owner, repo=info.repo, detection_method=info.detection_method
            ),
            from_saved_config=True,
            auto_detected=True,
            credentials_verified=True,
        )

    if detection.error:
        rprint(f"[yellow]⚠️  Repository auto-detection failed: {detection.error}[/yellow]")
    rprint("[dim]  Falling back to manual input...[/dim]")
    repo = ask_text("Please type your target repo name")
    return ResolvedConfig(
        token=saved.token,
        repository=RepositoryReference(owner=saved.owner, repo=repo, detection_method="manual"),
        from_saved_config=True,
        credentials_verified=True,
    )


def _report_resolution(resolved: ResolvedConfig) -> None:
    repository = resolved.repository
    if resolved.from_saved_config:
        rprint(f"[green]✓ Using saved configuration for {repository.owner}[/green]")
    if resolved.auto_detected:
        rprint(f"[green]✓ Repository auto-detected: {repository.full_name}[/green]")
        method = DETECTION_METHOD_TEXT.get(repository.detection_method, "manual input")
        rprint(f"[dim]  Detection method: {method}[/dim]")
    else:
        rprint(f"[blue]✓ Repository configured: {repository.full_name}[/blue]")
        rprint("[dim]  Input method: manual[/dim]")


def initialize_session(session: Session) -> bool:
    """Resolve credentials and repository, leaving an authenticated client on the session."""
    if session.first_start:
        _migrate(session.store)

    retry: ValidationResult | None = None
    for attempt in range(1, MAX_CREDENTIAL_ATTEMPTS + 1):
        validation = retry or _check_saved_config(session.store)
        retry = None
        if validation.should_prompt_for_credentials:
            if not ask_confirm("Do you have a personal token?", default=True):
                rprint(
                    f"[bright_red]Please go to {TOKEN_SETTINGS_URL} and generate a "
                    "personal token![/bright_red]"
                )
                return False

        if attempt == 1:
            print_banner()

        resolved = resolve_github_config(session, validation)
        repository = resolved.repository
        if not resolved.token or not repository.owner or not repository.repo:
            rprint("[red]Configuration error: token, owner and repository are all required[/red]")
            return False

        client = GitHubClient(
            resolved.token,
            repository.owner,
            repository.repo,
            base_url=session.settings.api_url,
        )
        if not resolved.credentials_verified:
            try:
                client.authenticated_login()
            except (GithubException, requests.RequestException) as e:
                client.close()
                logger.debug(f"Entered credentials rejected on attempt {attempt}: {e}")
                rprint(
                    f"[red]Configuration error: GitHub API authentication failed: "
                    f"{escape(str(e))}[/red]"
                )
                retry = ValidationResult(
                    config=None,
                    should_prompt_for_credentials=True,
                    preserved_owner=repository.owner,
                )
                continue

        session.client = client
        session.repository = repository
        _report_resolution(resolved)
        return True

    rprint(
        f"[red]Could not obtain valid credentials after {MAX_CREDENTIAL_ATTEMPTS} attempts.[/red]"
    )
    return False
