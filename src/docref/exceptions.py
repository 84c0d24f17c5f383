"""Custom exceptions for docref."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docref.schemas import StructureProblem


class DocrefError(Exception):
    """Base exception for docref operations."""


class SnapshotError(DocrefError):
    """Input snapshot cannot be read or parsed at all."""


class MalformedStructureError(DocrefError):
    """Section hierarchy violates the level rules.

    Raised in strict mode after the whole snapshot has been scanned, so
    ``problems`` lists every structural issue, not only the first one.
    """

    def __init__(self, problems: list[StructureProblem]) -> None:
        self.problems = problems
        details = "; ".join(problem.detail for problem in problems)
        super().__init__(f"{len(problems)} structural problem(s): {details}")


class CacheError(DocrefError):
    """Error reading or writing a cached validation result."""
