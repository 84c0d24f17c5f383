"""Aggregate validation results into an ordered report."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Mapping

from docref.schemas import (
    Reference,
    ReportItem,
    ReportSummary,
    StructureProblem,
    ValidationReport,
    ValidationResult,
    ValidationStatus,
)


def build_report(
    *,
    internal: Iterable[ValidationResult],
    external: Mapping[str, ValidationResult],
    external_references: Mapping[str, list[Reference]],
    structure_errors: Iterable[StructureProblem] = (),
    partial: bool = False,
) -> ValidationReport:
    """Merge internal and external results into one report in document order.

    Pure aggregation: the order of ``external`` (i.e. check completion order)
    has no effect on the output. External targets without a result, for
    example after a cancelled run, contribute no items.

    Args:
        internal: Per-reference results for internal references.
        external: Per-target results for external references.
        external_references: Reverse index from target to referencing locations.
        structure_errors: Problems reported by the parser.
        partial: True if external validation did not finish.

    Returns:
        The aggregated report.
    """
    items: list[ReportItem] = []
    for result in internal:
        if result.reference is None:
            raise ValueError(f"internal result for {result.target!r} has no reference")
        items.append(_item(result.reference, result))

    for target, references in external_references.items():
        result = external.get(target)
        if result is None:
            continue
        for reference in references:
            items.append(_item(reference, result))

    items.sort(key=lambda item: item.location.sort_key)
    problems = list(structure_errors)
    counts = Counter(item.status for item in items)
    summary = ReportSummary(
        valid_count=counts[ValidationStatus.VALID],
        broken_count=counts[ValidationStatus.BROKEN],
        unreachable_count=counts[ValidationStatus.UNREACHABLE],
        timed_out_count=counts[ValidationStatus.TIMED_OUT],
        skipped_count=counts[ValidationStatus.SKIPPED],
        structure_error_count=len(problems),
    )
    return ValidationReport(
        items=items, summary=summary, structure_errors=problems, partial=partial
    )


def format_report(report: ValidationReport, *, include_valid: bool = False) -> str:
    """Render a plain-text report: summary lines, then one line per finding."""
    summary = report.summary
    lines = [
        f"Valid: {summary.valid_count}",
        f"Broken: {summary.broken_count}",
        f"Unreachable: {summary.unreachable_count}",
        f"Timed out: {summary.timed_out_count}",
        f"Skipped: {summary.skipped_count}",
        f"Structure errors: {summary.structure_error_count}",
    ]
    if report.partial:
        lines.append("Run was cancelled; results are partial.")

    if report.structure_errors:
        lines.append("")
        lines.append("Structure:")
        for problem in report.structure_errors:
            lines.append(f"  [{problem.kind}] record {problem.record_index}: {problem.detail}")

    findings = [
        item for item in report.items if include_valid or item.status is not ValidationStatus.VALID
    ]
    if findings:
        lines.append("")
        lines.append("References:")
        for item in findings:
            cached = " (cached)" if item.from_cache else ""
            lines.append(
                f"  {item.location.describe()}: {item.reference} -> "
                f"{item.status.value}{cached}: {item.detail}"
            )
    return "\n".join(lines)


def _item(reference: Reference, result: ValidationResult) -> ReportItem:
    return ReportItem(
        location=reference.location,
        reference=reference.raw_target,
        kind=reference.kind,
        status=result.status,
        detail=result.detail,
        from_cache=result.from_cache,
    )
