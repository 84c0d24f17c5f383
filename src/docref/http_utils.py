"""HTTP checks for external references with retry logic and timeouts."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Final

import httpx

from docref.cancellation import CancellationToken
from docref.config import DOCREF_USER_AGENT
from docref.schemas import ValidationResult, ValidationStatus

logger = logging.getLogger(__name__)

RETRY_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})
# Servers that refuse HEAD get a GET instead.
HEAD_FALLBACK_STATUS_CODES: Final[frozenset[int]] = frozenset({405, 501})

_MAX_REDIRECTS: Final[int] = 5


@dataclass(frozen=True)
class AttemptOutcome:
    """Classified result of a single request attempt."""

    status: ValidationStatus
    detail: str
    transient: bool
    http_status: int | None = None


def create_client(timeout: float) -> httpx.AsyncClient:
    """Create the pooled client shared by all validation workers."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": DOCREF_USER_AGENT},
        follow_redirects=True,
        max_redirects=_MAX_REDIRECTS,
    )


def request_url(target: str) -> str:
    """Return the URL to request for a target; ``//host`` becomes https."""
    if target.startswith("//"):
        return f"https:{target}"
    return target


async def check_with_retries(
    target: str,
    *,
    client: httpx.AsyncClient,
    retry_limit: int,
    timeout: float,
    backoff: float,
    token: CancellationToken | None = None,
) -> ValidationResult | None:
    """Check that an external target is reachable, retrying transient failures.

    Definitive failures (client errors, malformed URLs) end the check at
    once. Transient ones (timeouts, connection errors, 429 and 5xx) are
    retried up to ``retry_limit`` times with exponential backoff and jitter.

    Args:
        target: The literal target string.
        client: Pooled client used for every attempt.
        retry_limit: Maximum number of retries after the first attempt.
        timeout: Hard limit for each attempt, in seconds.
        backoff: Base backoff delay in seconds.
        token: Polled before every attempt and during backoff.

    Returns:
        The validation result, or None if the check was abandoned because
        the run was cancelled.
    """
    token = token or CancellationToken()
    url = request_url(target)
    history: list[AttemptOutcome] = []

    for attempt in range(retry_limit + 1):
        if token.is_cancelled:
            logger.debug("Abandoning %s after %d attempt(s)", target, attempt)
            return None

        outcome = await _attempt(client, url, timeout)
        history.append(outcome)
        logger.debug("Attempt %d for %s: %s", attempt + 1, target, outcome.detail)

        if not outcome.transient:
            break
        if attempt < retry_limit:
            delay = backoff * (2**attempt) + random.uniform(0, backoff)
            if await token.sleep(delay):
                logger.debug("Abandoning %s during backoff", target)
                return None

    final = history[-1]
    return ValidationResult(
        target=target,
        status=final.status,
        detail=_summarize(history),
        attempts=len(history),
        http_status=final.http_status,
    )


async def _request_once(client: httpx.AsyncClient, url: str) -> httpx.Response:
    response = await client.request("HEAD", url)
    if response.status_code in HEAD_FALLBACK_STATUS_CODES:
        response = await client.request("GET", url)
    return response


async def _attempt(client: httpx.AsyncClient, url: str, timeout: float) -> AttemptOutcome:
    # The timeout covers the HEAD request and its GET fallback together.
    try:
        response = await asyncio.wait_for(_request_once(client, url), timeout)
    except (httpx.TimeoutException, asyncio.TimeoutError):
        return AttemptOutcome(ValidationStatus.TIMED_OUT, f"timed out after {timeout:g}s", True)
    except (httpx.UnsupportedProtocol, httpx.InvalidURL) as exc:
        return AttemptOutcome(ValidationStatus.BROKEN, f"malformed target: {exc}", False)
    except httpx.TooManyRedirects as exc:
        return AttemptOutcome(ValidationStatus.BROKEN, f"too many redirects: {exc}", False)
    except httpx.TransportError as exc:
        return AttemptOutcome(
            ValidationStatus.UNREACHABLE, f"{type(exc).__name__}: {exc}", True
        )
    except httpx.RequestError as exc:
        return AttemptOutcome(
            ValidationStatus.BROKEN, f"request failed: {type(exc).__name__}: {exc}", False
        )

    code = response.status_code
    if code < 400:
        return AttemptOutcome(ValidationStatus.VALID, f"HTTP {code}", False, code)
    if code in RETRY_STATUS_CODES or code >= 500:
        return AttemptOutcome(ValidationStatus.UNREACHABLE, f"HTTP {code}", True, code)
    return AttemptOutcome(ValidationStatus.BROKEN, f"HTTP {code}", False, code)


def _summarize(history: list[AttemptOutcome]) -> str:
    final = history[-1]
    if len(history) == 1:
        return final.detail
    steps = "; ".join(
        f"attempt {number}: {outcome.detail}" for number, outcome in enumerate(history, start=1)
    )
    if final.transient:
        return f"gave up after {len(history)} attempts ({steps})"
    return f"{final.detail} after {len(history)} attempts ({steps})"
