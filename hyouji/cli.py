"""CLI entry point for hyouji."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

import typer
from rich import print as rprint
from rich.logging import RichHandler
from rich.markup import escape

from hyouji.config import Settings
from hyouji.github.labels import CREATED
from hyouji.labels.importer import import_labels_from_file
from hyouji.labels.models import Label
from hyouji.labels.presets import PRESET_LABELS
from hyouji.labels.samples import generate_sample_json, generate_sample_yaml
from hyouji.prompts import ESCAPE_VALUE, Choice, ask_confirm, ask_select, ask_text
from hyouji.session import Session, initialize_session
from hyouji.storage.config_store import ConfigStore
from hyouji.storage.crypto import decrypt_token, is_token_encrypted, obfuscate_token

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"[0-9a-fA-F]{6}")

app = typer.Typer(
    help="Manage GitHub issue labels for a repository interactively.",
    add_completion=False,
)

(
    CREATE_LABEL,
    CREATE_PRESET_LABELS,
    DELETE_LABEL,
    DELETE_ALL_LABELS,
    IMPORT_LABELS,
    GENERATE_SAMPLE_JSON,
    GENERATE_SAMPLE_YAML,
    DISPLAY_SETTINGS,
    EXIT,
) = range(9)

MENU_CHOICES = [
    Choice("create a label", CREATE_LABEL),
    Choice("create multiple labels", CREATE_PRESET_LABELS),
    Choice("delete a label", DELETE_LABEL),
    Choice("delete all labels", DELETE_ALL_LABELS),
    Choice("import labels from JSON or YAML", IMPORT_LABELS),
    Choice("Generate sample JSON", GENERATE_SAMPLE_JSON),
    Choice("Generate sample YAML", GENERATE_SAMPLE_YAML),
    Choice("Display your settings", DISPLAY_SETTINGS),
    Choice("exit", EXIT),
]

# Actions that talk to GitHub and therefore offer a dry run
MUTATING_ACTIONS = {
    CREATE_LABEL,
    CREATE_PRESET_LABELS,
    DELETE_LABEL,
    DELETE_ALL_LABELS,
    IMPORT_LABELS,
}


@dataclass
class ActionSummary:
    created: int = 0
    deleted: int = 0
    skipped: int = 0
    failed: int = 0
    notes: list[str] = field(default_factory=list)


def print_summary(action: str, summary: ActionSummary, dry_run: bool) -> None:
    rprint(f"\n[cyan]=== {action} summary ===[/cyan]")
    if dry_run:
        rprint("[yellow]Mode: dry run (no API calls executed)[/yellow]")
    rprint(
        f"[green]Created: {summary.created}[/green]"
        f"  [red]Failed: {summary.failed}[/red]"
        f"  [blue]Deleted: {summary.deleted}[/blue]"
        f"  [yellow]Skipped: {summary.skipped}[/yellow]"
    )
    for note in summary.notes:
        rprint(f"[dim]- {escape(note)}[/dim]")
    if summary.failed > 0 and not dry_run:
        rprint(
            "[yellow]Some operations failed. Re-run the command or check your "
            "credentials/permissions.[/yellow]"
        )
    rprint("[cyan]========================[/cyan]\n")


def _ask_new_label() -> Label:
    name = ask_text("Please type new label name")
    while True:
        color = ask_text('Please type label color without "#"').lstrip("#")
        if not color or HEX_COLOR.fullmatch(color):
            break
        rprint("[yellow]Color must be 6 hex digits (e.g. d73a4a).[/yellow]")
    description = ask_text("Please type label description")
    return Label(name=name, color=color or None, description=description)


def create_label_action(session: Session, dry_run: bool) -> ActionSummary:
    summary = ActionSummary()
    label = _ask_new_label()
    if not label.name:
        rprint("[yellow]Label name cannot be empty.[/yellow]")
        summary.skipped += 1
        return summary

    if dry_run:
        rprint(
            f"[yellow]\\[dry-run] Would create label \"{escape(label.name)}\" "
            f"with color \"{label.color or 'N/A'}\"[/yellow]"
        )
        summary.skipped += 1
    elif session.labels.create_label(label) == CREATED:
        summary.created += 1
    else:
        summary.failed += 1
    return summary


def create_preset_labels_action(session: Session, dry_run: bool) -> ActionSummary:
    summary = ActionSummary()
    if dry_run:
        rprint(
            f"[yellow]\\[dry-run] Would create {len(PRESET_LABELS)} preset labels "
            "(no API calls)[/yellow]"
        )
        summary.skipped += len(PRESET_LABELS)
        return summary

    result = session.labels.create_labels(PRESET_LABELS)
    summary.created = result.created
    summary.failed = result.failed
    return summary


def delete_label_action(session: Session, dry_run: bool) -> ActionSummary:
    summary = ActionSummary()
    name = ask_text("Please type label name you want to delete")
    if not name:
        rprint("[yellow]Label name cannot be empty.[/yellow]")
        summary.skipped += 1
        return summary

    if dry_run:
        rprint(f"[yellow]\\[dry-run] Would delete label \"{escape(name)}\"[/yellow]")
        summary.skipped += 1
        return summary

    result = session.labels.delete_labels([name])
    summary.deleted = result.deleted
    summary.failed = result.failed
    return summary


def delete_all_labels_action(session: Session, dry_run: bool) -> ActionSummary:
    summary = ActionSummary()
    if dry_run:
        rprint("[yellow]\\[dry-run] Would delete all labels in the configured repository[/yellow]")
        summary.skipped += 1
        return summary

    result = session.labels.delete_all_labels()
    summary.deleted = result.deleted
    summary.failed = result.failed
    summary.notes.append("All labels processed")
    return summary


def import_labels_action(session: Session, dry_run: bool) -> ActionSummary:
    summary = ActionSummary()
    file_path = ask_text("Please type the path to your JSON or YAML file")
    if not file_path:
        rprint("[yellow]No file path provided. Returning to main menu.[/yellow]")
        summary.skipped += 1
        return summary

    result = import_labels_from_file(session.labels, file_path, dry_run=dry_run)
    summary.created = result.succeeded
    summary.failed = result.failed
    summary.skipped = result.skipped
    summary.notes.append(f"Processed {result.attempted} label entries from file")
    return summary


def generate_sample_json_action(session: Session, dry_run: bool) -> None:
    generate_sample_json()


def generate_sample_yaml_action(session: Session, dry_run: bool) -> None:
    generate_sample_yaml()


def display_settings(store: ConfigStore) -> None:
    rprint("\n[cyan]=== Current Settings ===[/cyan]")
    rprint(f"[blue]Configuration file path: {store.get_config_path()}[/blue]")

    if not store.config_exists():
        rprint(
            "[yellow]No configuration file exists. You will be prompted for credentials "
            "on next action.[/yellow]"
        )
        return

    config = store.load_config()
    if config is None:
        rprint("[yellow]Configuration file exists but contains invalid data.[/yellow]")
        return

    rprint(f"[green]GitHub account: {escape(config.owner)}[/green]")
    stored_token = store.load_raw_token()
    if stored_token:
        status = "✓ Saved and encrypted" if is_token_encrypted(stored_token) else "✓ Saved (plain text)"
        rprint(f"[green]Personal token: {status}[/green]")
        rprint(f"[blue]Token preview: {obfuscate_token(decrypt_token(stored_token))}[/blue]")
    else:
        rprint("[red]Personal token: ✗ Not saved[/red]")

    if config.last_updated:
        try:
            last_updated = datetime.fromisoformat(config.last_updated).astimezone()
            shown = last_updated.strftime("%Y-%m-%d %H:%M:%S %Z")
        except ValueError:
            shown = config.last_updated
        rprint(f"[blue]Last updated: {shown}[/blue]")

    rprint("[cyan]========================[/cyan]\n")


def display_settings_action(session: Session, dry_run: bool) -> None:
    display_settings(session.store)


ActionHandler = Callable[[Session, bool], "ActionSummary | None"]

ACTIONS: dict[int, tuple[str, ActionHandler]] = {
    CREATE_LABEL: ("Create a label", create_label_action),
    CREATE_PRESET_LABELS: ("Create preset labels", create_preset_labels_action),
    DELETE_LABEL: ("Delete a label", delete_label_action),
    DELETE_ALL_LABELS: ("Delete all labels", delete_all_labels_action),
    IMPORT_LABELS: ("Import labels", import_labels_action),
    GENERATE_SAMPLE_JSON: ("Generate sample JSON", generate_sample_json_action),
    GENERATE_SAMPLE_YAML: ("Generate sample YAML", generate_sample_yaml_action),
    DISPLAY_SETTINGS: ("Display settings", display_settings_action),
}


def run_menu(session: Session) -> None:
    """Show the action menu until the user exits."""
    while True:
        selected = ask_select("Please select an action", MENU_CHOICES)
        if selected == ESCAPE_VALUE:
            continue
        if selected == EXIT:
            rprint("exit")
            return

        dry_run = False
        if selected in MUTATING_ACTIONS:
            dry_run = ask_confirm("Run in dry-run mode? (no changes will be made)", default=False)

        title, handler = ACTIONS[selected]
        try:
            summary = handler(session, dry_run)
        except Exception as e:
            logger.exception(f"Action '{title}' failed")
            rprint(f"[red]Error during {title.lower()}: {escape(str(e))}[/red]")
            continue
        finally:
            session.first_start = False

        if summary is not None:
            print_summary(title, summary, dry_run)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, show_time=False)],
    )


@app.command()
def main() -> None:
    """Create, delete and import GitHub labels from an interactive menu."""
    settings = Settings.load()
    issues = settings.validate()
    if issues:
        for issue in issues:
            rprint(f"[red]Config error: {issue}[/red]")
        raise typer.Exit(1)

    _configure_logging(settings.log_level)

    session = Session(settings=settings, store=ConfigStore.from_settings(settings))
    if not initialize_session(session):
        raise typer.Exit(1)

    try:
        run_menu(session)
    finally:
        session.close()


if __name__ == "__main__":
    app()
