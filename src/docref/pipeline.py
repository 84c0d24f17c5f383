"""Validation pipeline: snapshot -> tree -> anchors -> references -> report."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Sequence

import httpx

from docref.anchors import AnchorRegistry
from docref.cache import FileResultCache, MemoryResultCache, ResultCache
from docref.cancellation import CancellationToken
from docref.config import (
    DOCREF_ATTEMPT_TIMEOUT_S,
    DOCREF_BACKOFF_S,
    DOCREF_CACHE_PATH,
    DOCREF_FRESHNESS_WINDOW_S,
    DOCREF_RETRY_LIMIT,
    DOCREF_WORKER_COUNT,
)
from docref.external import ExternalRun, validate_external
from docref.parser import parse_snapshot
from docref.references import resolve_references
from docref.report import build_report
from docref.schemas import RawSection, ValidationReport, ValidationResult, ValidationStatus
from docref.snapshot import load_snapshot

logger = logging.getLogger(__name__)


@dataclass
class ValidationOptions:
    """Options for a validation run.

    Attributes:
        freshness_window: Maximum age of a cached valid result that may be
            reused without a network check.
        worker_count: Number of concurrent external checks.
        retry_limit: Retries after the first attempt for transient failures.
        per_attempt_timeout: Hard timeout of each attempt, in seconds.
        backoff: Base delay for exponential backoff, in seconds.
        cache_path: Directory of the persisted result cache. None keeps
            results in memory for this run only.
        strict: If True, structural problems abort the run with
            MalformedStructureError before any validation.
        check_external: If False, external references are reported as
            skipped and no network I/O happens.
        extract_body_links: If True, Markdown links in entry bodies are
            validated too.
    """

    freshness_window: timedelta = field(
        default_factory=lambda: timedelta(seconds=DOCREF_FRESHNESS_WINDOW_S)
    )
    worker_count: int = DOCREF_WORKER_COUNT
    retry_limit: int = DOCREF_RETRY_LIMIT
    per_attempt_timeout: float = DOCREF_ATTEMPT_TIMEOUT_S
    backoff: float = DOCREF_BACKOFF_S
    cache_path: Path | None = DOCREF_CACHE_PATH
    strict: bool = False
    check_external: bool = True
    extract_body_links: bool = False


async def validate_corpus(
    snapshot: Sequence[RawSection] | Path,
    *,
    options: ValidationOptions | None = None,
    cache: ResultCache | None = None,
    client: httpx.AsyncClient | None = None,
    token: CancellationToken | None = None,
) -> ValidationReport:
    """Validate structure and every reference of a corpus snapshot.

    Findings (broken references, structural problems) are returned in the
    report; only an unreadable snapshot, or structural problems in strict
    mode, raise.

    Args:
        snapshot: Raw section records, or the path of a JSON snapshot.
        options: Run options. Uses defaults if None.
        cache: Result cache. Defaults to a file cache at
            ``options.cache_path``, or memory if that is None.
        client: Optional httpx.AsyncClient for external checks.
        token: Cancellation token; cancelling yields a partial report.

    Returns:
        The ordered validation report.

    Raises:
        SnapshotError: If the snapshot file cannot be loaded.
        MalformedStructureError: In strict mode, on structural problems.
    """
    opts = options or ValidationOptions()
    records = load_snapshot(snapshot) if isinstance(snapshot, Path) else list(snapshot)

    parsed = parse_snapshot(
        records, strict=opts.strict, extract_body_links=opts.extract_body_links
    )
    registry = AnchorRegistry.from_tree(parsed.tree)
    resolved = resolve_references(parsed.tree, registry)

    logger.info(
        "Validating corpus",
        extra={
            "sections": len(parsed.tree),
            "internal_references": len(resolved.internal),
            "external_targets": len(resolved.external),
        },
    )

    if opts.check_external:
        run = await validate_external(
            resolved.external_targets,
            cache=cache if cache is not None else _default_cache(opts),
            freshness_window=opts.freshness_window,
            worker_count=opts.worker_count,
            retry_limit=opts.retry_limit,
            timeout=opts.per_attempt_timeout,
            backoff=opts.backoff,
            client=client,
            token=token,
        )
    else:
        run = _skipped_run(resolved.external_targets)

    report = build_report(
        internal=resolved.internal,
        external=run.results,
        external_references=resolved.external,
        structure_errors=parsed.problems,
        partial=run.cancelled,
    )
    logger.info(
        "Validation finished",
        extra={"summary": report.summary.model_dump(), "partial": report.partial},
    )
    return report


def _default_cache(opts: ValidationOptions) -> ResultCache:
    if opts.cache_path is None:
        return MemoryResultCache()
    return FileResultCache(opts.cache_path)


def _skipped_run(targets: list[str]) -> ExternalRun:
    return ExternalRun(
        results={
            target: ValidationResult(
                target=target,
                status=ValidationStatus.SKIPPED,
                detail="external checks disabled",
            )
            for target in targets
        }
    )
