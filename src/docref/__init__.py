"""docref: structure validation and cross-reference checking for text corpora."""

from docref.anchors import AnchorRegistry
from docref.cache import FileResultCache, MemoryResultCache, ResultCache
from docref.cancellation import CancellationToken
from docref.exceptions import (
    CacheError,
    DocrefError,
    MalformedStructureError,
    SnapshotError,
)
from docref.external import ExternalRun, validate_external
from docref.parser import ParsedCorpus, parse_snapshot
from docref.pipeline import ValidationOptions, validate_corpus
from docref.references import ResolvedReferences, resolve_references
from docref.report import build_report, format_report
from docref.schemas import ValidationReport, ValidationResult, ValidationStatus
from docref.snapshot import load_snapshot

__all__ = [
    "AnchorRegistry",
    "CacheError",
    "CancellationToken",
    "DocrefError",
    "ExternalRun",
    "FileResultCache",
    "MalformedStructureError",
    "MemoryResultCache",
    "ParsedCorpus",
    "ResolvedReferences",
    "ResultCache",
    "SnapshotError",
    "ValidationOptions",
    "ValidationReport",
    "ValidationResult",
    "ValidationStatus",
    "build_report",
    "format_report",
    "load_snapshot",
    "parse_snapshot",
    "resolve_references",
    "validate_corpus",
    "validate_external",
]
