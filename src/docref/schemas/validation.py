"""Validation result models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from docref.schemas.sections import Reference


class ValidationStatus(str, Enum):
    """Outcome of checking a single reference or target."""

    VALID = "valid"
    BROKEN = "broken"
    UNREACHABLE = "unreachable"
    TIMED_OUT = "timed_out"
    SKIPPED = "skipped"


class ValidationResult(BaseModel):
    """Result of validating one target.

    External results are produced once per distinct target and carry no
    ``reference``; they are fanned out to every referencing location when
    the report is built.

    Attributes:
        target: The literal target string that was checked.
        status: Outcome of the check.
        detail: Free-text explanation, including retry history for
            external checks.
        checked_at: When the check completed; always timezone-aware.
        from_cache: True if reused from the persisted cache.
        attempts: Number of network attempts made (0 when none were needed).
        http_status: Last HTTP status code observed, if any.
        reference: The reference this result belongs to, when known.
    """

    target: str
    status: ValidationStatus
    detail: str = ""
    checked_at: AwareDatetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    from_cache: bool = False
    attempts: int = 0
    http_status: int | None = None
    reference: Reference | None = None


class StructureProblem(BaseModel):
    """A structural defect found while parsing the snapshot.

    Attributes:
        kind: ``level_gap``, ``root_level`` or ``duplicate_section``.
        record_index: Position of the offending record in the snapshot.
        title: Normalized title of the offending record.
        level: Nominal level of the offending record.
        parent_path: Titles of the open ancestors when the record was read.
        detail: Human-readable description.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    kind: Literal["level_gap", "root_level", "duplicate_section"]
    record_index: int
    title: str
    level: int
    parent_path: tuple[str, ...] = ()
    detail: str
