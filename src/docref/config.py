"""Local configuration for docref."""

from __future__ import annotations

import os
from pathlib import Path


DEFAULT_CACHE_DIR = ".docref_cache"
DEFAULT_FRESHNESS_WINDOW_S = 7 * 24 * 60 * 60
DEFAULT_WORKER_COUNT = 8
DEFAULT_RETRY_LIMIT = 2
DEFAULT_ATTEMPT_TIMEOUT_S = 10.0
DEFAULT_BACKOFF_S = 0.5
DEFAULT_USER_AGENT = "docref/0.1 (+link checker)"

# Persisted results of external reference checks, one file per target.
DOCREF_CACHE_PATH = Path(os.getenv("DOCREF_CACHE_PATH", DEFAULT_CACHE_DIR)).expanduser().resolve()
DOCREF_FRESHNESS_WINDOW_S = int(os.getenv("DOCREF_FRESHNESS_WINDOW_S", str(DEFAULT_FRESHNESS_WINDOW_S)))
DOCREF_WORKER_COUNT = int(os.getenv("DOCREF_WORKER_COUNT", str(DEFAULT_WORKER_COUNT)))
DOCREF_RETRY_LIMIT = int(os.getenv("DOCREF_RETRY_LIMIT", str(DEFAULT_RETRY_LIMIT)))
DOCREF_ATTEMPT_TIMEOUT_S = float(os.getenv("DOCREF_ATTEMPT_TIMEOUT_S", str(DEFAULT_ATTEMPT_TIMEOUT_S)))
DOCREF_BACKOFF_S = float(os.getenv("DOCREF_BACKOFF_S", str(DEFAULT_BACKOFF_S)))
DOCREF_USER_AGENT = os.getenv("DOCREF_USER_AGENT", DEFAULT_USER_AGENT)
