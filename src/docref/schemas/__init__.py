"""Shared schemas for docref."""

from docref.schemas.report import ReportItem, ReportSummary, ValidationReport
from docref.schemas.sections import (
    CodeBlock,
    Entry,
    Reference,
    ReferenceKind,
    SectionNode,
    SectionTree,
    SourceLocation,
)
from docref.schemas.snapshot import RawCodeBlock, RawEntry, RawSection
from docref.schemas.validation import (
    StructureProblem,
    ValidationResult,
    ValidationStatus,
)

__all__ = [
    "CodeBlock",
    "Entry",
    "RawCodeBlock",
    "RawEntry",
    "RawSection",
    "Reference",
    "ReferenceKind",
    "ReportItem",
    "ReportSummary",
    "SectionNode",
    "SectionTree",
    "SourceLocation",
    "StructureProblem",
    "ValidationReport",
    "ValidationResult",
    "ValidationStatus",
]
