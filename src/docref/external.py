"""Concurrent validation of external reference targets."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable

import httpx

from docref.cache import MemoryResultCache, ResultCache, get_async, is_result_fresh, put_async
from docref.cancellation import CancellationToken
from docref.config import (
    DOCREF_ATTEMPT_TIMEOUT_S,
    DOCREF_BACKOFF_S,
    DOCREF_FRESHNESS_WINDOW_S,
    DOCREF_RETRY_LIMIT,
    DOCREF_WORKER_COUNT,
)
from docref.http_utils import check_with_retries, create_client, request_url
from docref.schemas import ValidationResult, ValidationStatus

logger = logging.getLogger(__name__)

_CHECKED_SCHEMES = frozenset({"http", "https"})


@dataclass
class ExternalRun:
    """Results of a validation run keyed by target.

    ``cancelled`` is True when the run stopped before every target had a
    result; ``results`` then holds only the checks that completed.
    """

    results: dict[str, ValidationResult] = field(default_factory=dict)
    cancelled: bool = False


async def validate_external(
    targets: Iterable[str],
    *,
    cache: ResultCache | None = None,
    freshness_window: timedelta = timedelta(seconds=DOCREF_FRESHNESS_WINDOW_S),
    worker_count: int = DOCREF_WORKER_COUNT,
    retry_limit: int = DOCREF_RETRY_LIMIT,
    timeout: float = DOCREF_ATTEMPT_TIMEOUT_S,
    backoff: float = DOCREF_BACKOFF_S,
    client: httpx.AsyncClient | None = None,
    token: CancellationToken | None = None,
) -> ExternalRun:
    """Check every distinct target with a bounded pool of workers.

    Args:
        targets: External targets; duplicates are checked once.
        cache: Result store shared across runs. Defaults to an in-memory one.
        freshness_window: Maximum age of a reusable cached valid result.
        worker_count: Number of concurrent workers.
        retry_limit: Retries after the first attempt for transient failures.
        timeout: Per-attempt timeout in seconds.
        backoff: Base backoff delay in seconds.
        client: Optional httpx.AsyncClient for connection pooling. If not
            provided, one is created for the run.
        token: Cancellation token shared by all workers.

    Returns:
        The completed results; completion order does not matter to callers.
    """
    token = token or CancellationToken()
    store = cache if cache is not None else MemoryResultCache()
    pending = list(dict.fromkeys(targets))
    run = ExternalRun()
    if not pending:
        return run

    queue: asyncio.Queue[str] = asyncio.Queue()
    for target in pending:
        queue.put_nowait(target)

    async def worker(http_client: httpx.AsyncClient) -> None:
        while not token.is_cancelled:
            try:
                target = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                result = await _validate_target(
                    target,
                    client=http_client,
                    cache=store,
                    freshness_window=freshness_window,
                    retry_limit=retry_limit,
                    timeout=timeout,
                    backoff=backoff,
                    token=token,
                )
            except Exception as exc:
                # One failing check must not take the other workers down.
                logger.exception("Check of %s failed", target)
                result = ValidationResult(
                    target=target,
                    status=ValidationStatus.UNREACHABLE,
                    detail=f"check failed: {type(exc).__name__}: {exc}",
                )
            if result is not None:
                run.results[target] = result

    async def run_workers(http_client: httpx.AsyncClient) -> None:
        width = max(1, min(worker_count, len(pending)))
        await asyncio.gather(*(worker(http_client) for _ in range(width)))

    if client is not None:
        await run_workers(client)
    else:
        async with create_client(timeout) as new_client:
            await run_workers(new_client)

    run.cancelled = len(run.results) < len(pending)
    if run.cancelled:
        logger.info(
            "External validation cancelled",
            extra={"completed": len(run.results), "total": len(pending)},
        )
    return run


async def _validate_target(
    target: str,
    *,
    client: httpx.AsyncClient,
    cache: ResultCache,
    freshness_window: timedelta,
    retry_limit: int,
    timeout: float,
    backoff: float,
    token: CancellationToken,
) -> ValidationResult | None:
    cached = await _lookup(cache, target)
    if cached is not None and is_result_fresh(cached, freshness_window):
        logger.debug("Using cached result for %s from %s", target, cached.checked_at)
        return cached.model_copy(update={"from_cache": True})

    precheck = _precheck(target)
    if precheck is not None:
        await _store(cache, target, precheck)
        return precheck

    result = await check_with_retries(
        target,
        client=client,
        retry_limit=retry_limit,
        timeout=timeout,
        backoff=backoff,
        token=token,
    )
    if result is None:
        return None
    await _store(cache, target, result)
    return result


async def _lookup(cache: ResultCache, target: str) -> ValidationResult | None:
    """Read a cached result; a failing cache counts as a miss."""
    try:
        return await get_async(cache, target)
    except Exception:
        logger.warning("Cache lookup failed for %s", target, exc_info=True)
        return None


async def _store(cache: ResultCache, target: str, result: ValidationResult) -> None:
    try:
        await put_async(cache, target, result)
    except Exception:
        logger.warning("Could not cache result for %s", target, exc_info=True)


def _precheck(target: str) -> ValidationResult | None:
    """Classify targets that need no network request."""
    try:
        url = httpx.URL(request_url(target))
    except httpx.InvalidURL as exc:
        return ValidationResult(
            target=target, status=ValidationStatus.BROKEN, detail=f"malformed target: {exc}"
        )
    if url.scheme not in _CHECKED_SCHEMES:
        return ValidationResult(
            target=target,
            status=ValidationStatus.SKIPPED,
            detail=f"scheme '{url.scheme}' is not checked",
        )
    if not url.host:
        return ValidationResult(
            target=target, status=ValidationStatus.BROKEN, detail="malformed target: missing host"
        )
    return None
