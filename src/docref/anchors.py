"""Deterministic slug assignment for sections."""

from __future__ import annotations

from typing import Iterator

from docref.schemas import SectionNode, SectionTree
from docref.sections import SLUG_SEPARATOR, base_slug


class AnchorRegistry:
    """Mapping from unique slug to section.

    Slugs are assigned in pre-order. A base slug that is already taken gets
    the smallest unused integer suffix, starting at 2, so an unchanged
    section keeps its slug when unrelated sections are edited later in the
    document.
    """

    def __init__(self) -> None:
        self._sections: dict[str, SectionNode] = {}
        self._next_suffix: dict[str, int] = {}

    @classmethod
    def from_tree(cls, tree: SectionTree) -> AnchorRegistry:
        """Assign a slug to every section of ``tree`` and register it."""
        registry = cls()
        for node in tree.walk():
            node.slug = registry.register(node)
        return registry

    def register(self, node: SectionNode) -> str:
        """Register ``node`` under a fresh slug and return it."""
        base = base_slug(node.title)
        slug = base
        if slug in self._sections:
            suffix = self._next_suffix.get(base, 2)
            while f"{base}{SLUG_SEPARATOR}{suffix}" in self._sections:
                suffix += 1
            slug = f"{base}{SLUG_SEPARATOR}{suffix}"
            self._next_suffix[base] = suffix + 1
        self._sections[slug] = node
        return slug

    def resolve(self, slug: str) -> SectionNode | None:
        """Return the section registered under ``slug``, or None."""
        return self._sections.get(slug)

    def location(self, slug: str, tree: SectionTree) -> tuple[str, ...] | None:
        """Return the title path of the section registered under ``slug``."""
        node = self.resolve(slug)
        if node is None:
            return None
        return tuple(section.title for section in tree.path(node.index))

    def slugs(self) -> list[str]:
        """Registered slugs in document order."""
        return list(self._sections)

    def __contains__(self, slug: object) -> bool:
        return slug in self._sections

    def __iter__(self) -> Iterator[str]:
        return iter(self._sections)

    def __len__(self) -> int:
        return len(self._sections)
