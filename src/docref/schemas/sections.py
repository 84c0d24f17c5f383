"""Section tree models."""

from __future__ import annotations

from enum import Enum
from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReferenceKind(str, Enum):
    """Syntactic class of a reference target."""

    INTERNAL = "internal"
    EXTERNAL = "external"


class CodeBlock(BaseModel):
    """An embedded code sample. The language tag is advisory only."""

    language: str = ""
    content: str = ""


class SourceLocation(BaseModel):
    """Where a reference appears in the document.

    Attributes:
        section_index: Pre-order index of the owning section in the tree.
        section_path: Titles from the root section down to the owning one.
        entry_index: Position of the entry within its section.
        reference_index: Position of the reference within its entry.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    section_index: int
    section_path: tuple[str, ...]
    entry_index: int
    reference_index: int

    @property
    def sort_key(self) -> tuple[int, int, int]:
        """Document-order key."""
        return (self.section_index, self.entry_index, self.reference_index)

    def describe(self) -> str:
        """Human-readable location, e.g. ``Guide > Setup [entry 0, ref 1]``."""
        path = " > ".join(self.section_path)
        return f"{path} [entry {self.entry_index}, ref {self.reference_index}]"


class Reference(BaseModel):
    """A cross-reference found in an entry."""

    kind: ReferenceKind
    raw_target: str
    location: SourceLocation
    resolved_slug: str | None = None


class Entry(BaseModel):
    """A titled unit of prose owned by exactly one section."""

    title: str
    body: str = ""
    code_blocks: list[CodeBlock] = Field(default_factory=list)
    references: list[Reference] = Field(default_factory=list)


class SectionNode(BaseModel):
    """A hierarchical section node stored in a :class:`SectionTree` arena."""

    index: int
    title: str
    level: int = Field(..., ge=1)
    slug: str | None = None
    parent: int | None = None
    children: list[int] = Field(default_factory=list)
    entries: list[Entry] = Field(default_factory=list)


class SectionTree(BaseModel):
    """Arena of sections in document (pre-order) order.

    Children and parents are referenced by index into ``nodes`` so the tree
    has no ownership cycles while paths can still be rebuilt for reporting.
    """

    nodes: list[SectionNode] = Field(default_factory=list)
    roots: list[int] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def walk(self) -> Iterator[SectionNode]:
        """Yield sections in pre-order."""
        stack = list(reversed(self.roots))
        while stack:
            node = self.nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.children))

    def children_of(self, node: SectionNode) -> list[SectionNode]:
        """Return the direct children of ``node`` in document order."""
        return [self.nodes[index] for index in node.children]

    def path(self, index: int) -> list[SectionNode]:
        """Return the sections from the root down to ``index``."""
        chain: list[SectionNode] = []
        current: int | None = index
        while current is not None:
            node = self.nodes[current]
            chain.append(node)
            current = node.parent
        chain.reverse()
        return chain
