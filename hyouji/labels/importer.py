"""Import labels from a JSON or YAML file.

The file must hold a top-level array of ``{name, color?, description?}``
objects. Each record is validated on its own; bad records are reported and
skipped while the rest of the batch carries on. Unknown keys are ignored with
a warning.
"""

from __future__ import annotations

from pathlib import Path

from rich import print as rprint
from rich.markup import escape

from hyouji.github.labels import CREATED, LabelService
from hyouji.labels.formats import (
    detect_file_format,
    format_supported_extensions,
    parse_json_content,
    parse_yaml_content,
)
from hyouji.labels.models import BatchValidation, ImportSummary, Label, RecordValidation

KNOWN_FIELDS = ("name", "color", "description")


def validate_label_record(item: object, index: int) -> RecordValidation:
    """Validate one parsed record. Pure: no output, no I/O."""
    if not isinstance(item, dict):
        return RecordValidation(index, error=f"Item at index {index} is not a valid object")

    name = item.get("name")
    if name is None or name == "":
        return RecordValidation(
            index, error=f"Item at index {index} is missing required 'name' field"
        )
    if not isinstance(name, str):
        return RecordValidation(
            index,
            error=f"Item at index {index} has invalid 'name' field (must be a non-empty string)",
        )
    if not name.strip():
        return RecordValidation(
            index,
            error=f"Item at index {index} has empty 'name' field (name cannot be empty)",
        )

    color = item.get("color")
    if "color" in item:
        if not isinstance(color, str):
            return RecordValidation(
                index,
                error=f"Item at index {index} has invalid 'color' field (must be a string)",
            )
        if not color.strip():
            return RecordValidation(
                index,
                error=(
                    f"Item at index {index} has empty 'color' field "
                    "(color cannot be empty if provided)"
                ),
            )

    description = item.get("description")
    # An empty description is allowed
    if "description" in item and not isinstance(description, str):
        return RecordValidation(
            index,
            error=f"Item at index {index} has invalid 'description' field (must be a string)",
        )

    return RecordValidation(
        index,
        label=Label(
            name=name.strip(),
            color=color.strip() if color is not None else None,
            description=description,
        ),
        unknown_fields=[str(key) for key in item if key not in KNOWN_FIELDS],
    )


def validate_label_batch(items: list) -> BatchValidation:
    """Classify every record independently."""
    return BatchValidation(
        results=[validate_label_record(item, index) for index, item in enumerate(items)]
    )


def _report_validation(batch: BatchValidation) -> None:
    for result in batch.results:
        if not result.ok:
            rprint(f"[red]Error: {escape(result.error or '')}[/red]")
        elif result.unknown_fields:
            rprint(
                f"[yellow]Warning: Item at index {result.index} contains unknown fields that "
                f"will be ignored: {escape(', '.join(result.unknown_fields))}[/yellow]"
            )


def import_labels_from_file(
    service: LabelService, file_path: str | Path, dry_run: bool = False
) -> ImportSummary:
    """Validate a label file and create its labels (or report them on a dry run)."""
    summary = ImportSummary()
    path = Path(file_path).expanduser()

    if not path.is_file():
        rprint(f"[red]Error: File not found at path: {escape(str(file_path))}[/red]")
        summary.failed += 1
        return summary

    file_format = detect_file_format(path)
    if file_format is None:
        rprint(
            "[red]Error: Unsupported file format. Supported formats: "
            f"{format_supported_extensions()}[/red]"
        )
        summary.failed += 1
        return summary

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        rprint(f"[red]Error reading file: {escape(str(e))}[/red]")
        summary.failed += 1
        return summary

    try:
        if file_format == "json":
            parsed = parse_json_content(content)
        else:
            parsed = parse_yaml_content(content)
    except ValueError as e:
        rprint(f"[red]Error: Invalid {file_format.upper()} syntax in file: {escape(str(path))}[/red]")
        rprint(f"[red]Parse error: {escape(str(e))}[/red]")
        summary.failed += 1
        return summary

    if not isinstance(parsed, list):
        rprint("[red]Error: File must contain an array of label objects[/red]")
        summary.failed += 1
        return summary

    batch = validate_label_batch(parsed)
    _report_validation(batch)
    labels = batch.valid
    if not labels:
        rprint("[red]Error: No valid labels found in file[/red]")
        summary.failed += 1
        return summary

    summary.attempted = len(labels)

    if dry_run:
        for label in labels:
            summary.skipped += 1
            rprint(f"[yellow]\\[dry-run] Would create label \"{escape(label.name)}\"[/yellow]")
        rprint(f"[blue]Dry run summary: Will create {len(labels)} labels, delete 0.[/blue]")
        return summary

    rprint(f"[blue]Starting import of {len(labels)} labels...[/blue]\n")

    for i, label in enumerate(labels, start=1):
        progress = f"\\[{i}/{len(labels)}]"
        rprint(f"[cyan]{progress} Processing: {escape(label.name)}[/cyan]")
        if service.create_label(label) == CREATED:
            summary.succeeded += 1
        else:
            summary.failed += 1
            rprint(f"[red]{progress} Failed to create label \"{escape(label.name)}\"[/red]")

    rprint("")
    if summary.failed == 0:
        rprint(
            f"[green]✅ Import completed successfully! Created {summary.succeeded} labels.[/green]"
        )
    else:
        rprint("[yellow]⚠️  Import completed with some errors:[/yellow]")
        rprint(f"[green]  • Successfully created: {summary.succeeded} labels[/green]")
        rprint(f"[red]  • Failed to create: {summary.failed} labels[/red]")
        rprint(f"[blue]  • Total processed: {len(labels)} labels[/blue]")

    return summary
