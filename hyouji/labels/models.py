"""Core data models for hyouji."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Label:
    name: str  # unique within a repository
    color: str | None = None  # 6 hex digits, no leading "#"
    description: str | None = None

    def to_dict(self) -> dict:
        data: dict = {"name": self.name}
        if self.color is not None:
            data["color"] = self.color
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass
class RepositoryReference:
    owner: str
    repo: str
    detection_method: str  # "origin" | "first-remote" | "manual"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class BatchResult:
    created: int = 0
    deleted: int = 0
    failed: int = 0


@dataclass
class ImportSummary:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


@dataclass
class RecordValidation:
    """Outcome of validating one import record."""

    index: int
    label: Label | None = None
    error: str | None = None
    unknown_fields: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.label is not None


@dataclass
class BatchValidation:
    results: list[RecordValidation] = field(default_factory=list)

    @property
    def valid(self) -> list[Label]:
        return [r.label for r in self.results if r.label is not None]

    @property
    def invalid(self) -> list[RecordValidation]:
        return [r for r in self.results if not r.ok]
