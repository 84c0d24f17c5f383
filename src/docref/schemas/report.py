"""Report models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from docref.schemas.sections import ReferenceKind, SourceLocation
from docref.schemas.validation import StructureProblem, ValidationStatus


class ReportItem(BaseModel):
    """One finding, keyed by where the reference appears."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    location: SourceLocation
    reference: str
    kind: ReferenceKind
    status: ValidationStatus
    detail: str = ""
    from_cache: bool = False


class ReportSummary(BaseModel):
    """Counts per status."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    valid_count: int = 0
    broken_count: int = 0
    unreachable_count: int = 0
    timed_out_count: int = 0
    skipped_count: int = 0
    structure_error_count: int = 0


class ValidationReport(BaseModel):
    """Ordered, deterministic result of a validation run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: list[ReportItem] = Field(default_factory=list)
    summary: ReportSummary = Field(default_factory=ReportSummary)
    structure_errors: list[StructureProblem] = Field(default_factory=list)
    partial: bool = False

    @property
    def ok(self) -> bool:
        """True when the run is complete and nothing needs attention."""
        summary = self.summary
        return not self.partial and not (
            summary.broken_count
            or summary.unreachable_count
            or summary.timed_out_count
            or summary.structure_error_count
        )

    def to_json(self, *, indent: int | None = 2) -> str:
        """Serialize with camelCase keys."""
        return self.model_dump_json(by_alias=True, indent=indent)
