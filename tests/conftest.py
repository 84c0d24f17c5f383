"""Test setup for docref."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from docref.schemas import RawEntry, RawSection  # noqa: E402


def section(level: int, title: str, *entries: RawEntry) -> RawSection:
    """Build a raw section record."""
    return RawSection(level=level, title=title, entries=list(entries))


def entry(title: str, *references: str, body: str = "", **extra: Any) -> RawEntry:
    """Build a raw entry record."""
    return RawEntry(title=title, body=body, references=list(references), **extra)


@pytest.fixture
def guide_snapshot() -> list[RawSection]:
    """A small consistent corpus with internal and external references."""
    return [
        section(1, "Guide"),
        section(
            2,
            "Setup",
            entry("Install", "#configuration", "https://example.com/install"),
        ),
        section(
            2,
            "Configuration",
            entry("Options", "setup", "https://example.com/options"),
            entry("Missing", "#nowhere", "https://example.com/install"),
        ),
        section(1, "Reference"),
        section(2, "Setup", entry("Again", "setup-2")),
    ]
