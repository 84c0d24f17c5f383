"""Load raw snapshots of the corpus."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from docref.exceptions import SnapshotError
from docref.schemas import RawSection

_RECORDS_ADAPTER = TypeAdapter(list[RawSection])


def parse_records(data: Any) -> list[RawSection]:
    """Validate decoded snapshot data.

    Accepts either a list of section records or an object with a
    ``sections`` list.

    Raises:
        SnapshotError: If the data does not describe section records.
    """
    if isinstance(data, dict):
        if "sections" not in data:
            raise SnapshotError("snapshot object has no 'sections' list")
        data = data["sections"]
    try:
        return _RECORDS_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise SnapshotError(f"invalid snapshot: {exc}") from exc


def load_snapshot(path: Path) -> list[RawSection]:
    """Read a JSON snapshot from ``path``.

    Raises:
        SnapshotError: If the file cannot be read or decoded.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SnapshotError(f"cannot read snapshot {path}: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"snapshot {path} is not valid JSON: {exc}") from exc
    return parse_records(data)
