"""Write the sample label set to hyouji.json / hyouji.yaml."""

from __future__ import annotations

import errno
import json
from pathlib import Path

import yaml
from rich import print as rprint

from hyouji.labels.presets import SAMPLE_LABELS

SAMPLE_JSON_NAME = "hyouji.json"
SAMPLE_YAML_NAME = "hyouji.yaml"


def _sample_data() -> list[dict]:
    return [label.to_dict() for label in SAMPLE_LABELS]


def _write_sample(output_path: Path, content: str, kind: str) -> Path | None:
    rprint(f"[blue]Generating sample {kind} file...[/blue]")
    try:
        output_path.write_text(content, encoding="utf-8")
    except PermissionError:
        rprint(
            f"[red]❌ Error generating sample {kind} file: Permission denied. "
            "Please check write permissions for the current directory.[/red]"
        )
        return None
    except OSError as e:
        if e.errno == errno.ENOSPC:
            reason = "Insufficient disk space."
        elif e.errno == errno.EROFS:
            reason = "Read-only file system."
        else:
            reason = str(e)
        rprint(f"[red]❌ Error generating sample {kind} file: {reason}[/red]")
        return None

    rprint(f"[green]✅ Sample {kind} file generated successfully at ./{output_path.name}[/green]")
    return output_path


def generate_sample_json(directory: Path | None = None) -> Path | None:
    """Write hyouji.json, overwriting any existing file. Returns the path or None."""
    content = json.dumps(_sample_data(), indent=2, ensure_ascii=False)
    return _write_sample((directory or Path.cwd()) / SAMPLE_JSON_NAME, content, "JSON")


def generate_sample_yaml(directory: Path | None = None) -> Path | None:
    """Write hyouji.yaml, overwriting any existing file. Returns the path or None."""
    content = yaml.safe_dump(
        _sample_data(),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        indent=2,
        width=4096,
    )
    return _write_sample((directory or Path.cwd()) / SAMPLE_YAML_NAME, content, "YAML")
