"""Label operations against the GitHub Labels API.

Each call is one sequential request with no retry. Batch operations isolate
failures per label so one bad name never stops the rest.
"""

from __future__ import annotations

import logging

import requests
from github.GithubException import GithubException
from github.GithubObject import NotSet
from rich import print as rprint
from rich.markup import escape

from hyouji.github.client import GitHubClient
from hyouji.labels.models import BatchResult, Label

logger = logging.getLogger(__name__)

# GitHub applies this grey itself when a label is created without a color
DEFAULT_LABEL_COLOR = "ededed"

CREATED = 201


class LabelService:
    """Creates, lists and deletes labels in the client's repository."""

    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    def create_label(self, label: Label) -> int | None:
        """Create one label and report the outcome.

        Returns the HTTP status (201 on success) or None when the request
        never got a response.
        """
        color = (label.color or DEFAULT_LABEL_COLOR).lstrip("#")
        description = label.description if label.description is not None else NotSet
        try:
            self._client.repo.create_label(label.name, color, description)
        except GithubException as e:
            if e.status == 404:
                rprint(f"[red]{e.status}: Resource not found[/red]")
            elif e.status == 422:
                rprint(f"[red]{e.status}: Validation failed ({escape(label.name)})[/red]")
            else:
                rprint(f"[yellow]{e.status}: Unexpected response for {escape(label.name)}[/yellow]")
            return e.status
        except requests.RequestException as e:
            rprint(f"[red]Network error creating label \"{escape(label.name)}\": {e}[/red]")
            return None

        rprint(f"[green]{CREATED}: Created {escape(label.name)}[/green]")
        return CREATED

    def create_labels(self, labels: list[Label]) -> BatchResult:
        result = BatchResult()
        for label in labels:
            if self.create_label(label) == CREATED:
                result.created += 1
            else:
                result.failed += 1
        rprint(f"[blue]Processed {len(labels)} labels[/blue]")
        return result

    def list_labels(self) -> list[str]:
        """Return the names of every label in the repository."""
        return [label.name for label in self._client.repo.get_labels()]

    def delete_labels(self, names: list[str]) -> BatchResult:
        result = BatchResult()
        for name in names:
            try:
                self._client.repo.get_label(name).delete()
            except GithubException as e:
                result.failed += 1
                if e.status == 404:
                    rprint(f"[red]404: Label \"{escape(name)}\" not found[/red]")
                else:
                    rprint(f"[red]Error deleting label \"{escape(name)}\": {e.status} {e.data}[/red]")
                continue
            except requests.RequestException as e:
                result.failed += 1
                rprint(f"[red]Error deleting label \"{escape(name)}\": {e}[/red]")
                continue

            result.deleted += 1
            rprint(f"[green]204: Deleted {escape(name)}[/green]")
        return result

    def delete_all_labels(self) -> BatchResult:
        try:
            names = self.list_labels()
        except (GithubException, requests.RequestException) as e:
            logger.debug(f"Listing labels for {self._client.full_name} failed: {e}")
            rprint(f"[red]Could not list labels: {e}[/red]")
            return BatchResult(failed=1)

        if not names:
            rprint("[yellow]No labels found to delete[/yellow]")
            return BatchResult()

        rprint(f"[blue]Deleting {len(names)} labels...[/blue]")
        result = self.delete_labels(names)
        rprint("[blue]Finished deleting labels[/blue]")
        return result
