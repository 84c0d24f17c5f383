"""Parse raw snapshot records into a section tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from docref.exceptions import MalformedStructureError
from docref.schemas import (
    CodeBlock,
    Entry,
    RawEntry,
    RawSection,
    Reference,
    SectionNode,
    SectionTree,
    SourceLocation,
    StructureProblem,
)
from docref.sections import classify_target, find_body_links, normalize_title

logger = logging.getLogger(__name__)


@dataclass
class ParsedCorpus:
    """Section tree plus the structural problems found while building it."""

    tree: SectionTree
    problems: list[StructureProblem] = field(default_factory=list)


def parse_snapshot(
    records: Iterable[RawSection],
    *,
    strict: bool = False,
    extract_body_links: bool = False,
) -> ParsedCorpus:
    """Build a section tree from records in document order.

    Level gaps, non-level-1 roots and duplicated sibling sections are
    reported, never repaired: the offending record and its subtree are
    dropped while the rest of the snapshot keeps parsing.

    Args:
        records: Raw section records as authored.
        strict: If True, raise once parsing finishes and problems were found.
        extract_body_links: If True, Markdown links in entry bodies are added
            after the entry's explicit references.

    Returns:
        The parsed corpus.

    Raises:
        MalformedStructureError: In strict mode, if any problem was found.
    """
    builder = _TreeBuilder(extract_body_links=extract_body_links)
    for position, record in enumerate(records):
        builder.add(position, record)

    if builder.problems and strict:
        raise MalformedStructureError(builder.problems)
    return ParsedCorpus(tree=builder.tree, problems=builder.problems)


class _TreeBuilder:
    def __init__(self, *, extract_body_links: bool) -> None:
        self.tree = SectionTree()
        self.problems: list[StructureProblem] = []
        self._extract_body_links = extract_body_links
        self._stack: list[int] = []
        self._skip_level: int | None = None
        self._signatures: dict[int, tuple[str, tuple[str, ...]]] = {}

    def add(self, position: int, record: RawSection) -> None:
        title = normalize_title(record.title)
        level = record.level

        # Records below a dropped heading belong to the dropped subtree.
        if self._skip_level is not None:
            if level > self._skip_level:
                return
            self._skip_level = None

        nodes = self.tree.nodes
        while self._stack and nodes[self._stack[-1]].level >= level:
            self._stack.pop()
        parent = nodes[self._stack[-1]] if self._stack else None
        parent_path = tuple(nodes[index].title for index in self._stack)

        if parent is None and level != 1:
            self._reject(
                "root_level",
                position,
                title,
                level,
                parent_path,
                f"top-level section '{title}' has level {level}, expected 1",
            )
            return
        if parent is not None and level != parent.level + 1:
            self._reject(
                "level_gap",
                position,
                title,
                level,
                parent_path,
                f"section '{title}' has level {level} directly under "
                f"level-{parent.level} section '{parent.title}'",
            )
            return

        siblings = parent.children if parent is not None else self.tree.roots
        signature = (title, _content_signature(record.entries))
        if any(self._signatures[sibling] == signature for sibling in siblings):
            self._reject(
                "duplicate_section",
                position,
                title,
                level,
                parent_path,
                f"section '{title}' duplicates an earlier sibling with identical content",
            )
            return

        index = len(nodes)
        path = parent_path + (title,)
        node = SectionNode(
            index=index,
            title=title,
            level=level,
            parent=parent.index if parent is not None else None,
            entries=[
                self._build_entry(raw, index, path, entry_index)
                for entry_index, raw in enumerate(record.entries)
            ],
        )
        nodes.append(node)
        siblings.append(index)
        self._signatures[index] = signature
        self._stack.append(index)

    def _reject(
        self,
        kind: str,
        position: int,
        title: str,
        level: int,
        parent_path: tuple[str, ...],
        detail: str,
    ) -> None:
        logger.warning("Malformed structure at record %d: %s", position, detail)
        self.problems.append(
            StructureProblem(
                kind=kind,
                record_index=position,
                title=title,
                level=level,
                parent_path=parent_path,
                detail=detail,
            )
        )
        self._skip_level = level

    def _build_entry(
        self,
        raw: RawEntry,
        section_index: int,
        section_path: tuple[str, ...],
        entry_index: int,
    ) -> Entry:
        targets = [target.strip() for target in raw.references]
        if self._extract_body_links:
            targets.extend(find_body_links(raw.body))

        references = [
            Reference(
                kind=classify_target(target),
                raw_target=target,
                location=SourceLocation(
                    section_index=section_index,
                    section_path=section_path,
                    entry_index=entry_index,
                    reference_index=reference_index,
                ),
            )
            for reference_index, target in enumerate(targets)
        ]
        return Entry(
            title=normalize_title(raw.title),
            body=raw.body,
            code_blocks=[
                CodeBlock(language=block.language.strip(), content=block.content)
                for block in raw.code_blocks
            ],
            references=references,
        )


def _content_signature(entries: list[RawEntry]) -> tuple[str, ...]:
    return tuple(entry.model_dump_json() for entry in entries)
