"""Tests for slug assignment."""

from __future__ import annotations

import pytest

from conftest import entry, section
from docref.anchors import AnchorRegistry
from docref.parser import parse_snapshot
from docref.schemas import RawSection
from docref.sections import base_slug


def numbered(titles: list[str]) -> list[RawSection]:
    """Top-level sections whose content differs, so none is a duplicate."""
    return [
        section(1, title, entry("Body", body=str(number)))
        for number, title in enumerate(titles)
    ]


class TestBaseSlug:
    """Tests for base_slug function."""

    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Setup", "setup"),
            ("  Getting   Started ", "getting-started"),
            ("C++ / Rust: FFI!", "c-rust-ffi"),
            ("Café Crème", "cafe-creme"),
            ("--Edge--Case--", "edge-case"),
            ("???", "section"),
        ],
    )
    def test_derives_base_slug(self, title: str, expected: str) -> None:
        """Lower-cases, collapses separators and trims them."""
        assert base_slug(title) == expected

    def test_cosmetic_whitespace_does_not_change_slug(self) -> None:
        """Whitespace differences never produce distinct slugs."""
        assert base_slug("Getting Started") == base_slug(" Getting\t\tStarted ")


class TestAnchorRegistry:
    """Tests for AnchorRegistry."""

    def test_duplicate_titles_get_suffix_in_document_order(self) -> None:
        """Two 'Setup' sections become setup and setup-2."""
        tree = parse_snapshot(
            [section(1, "Guide"), section(2, "Setup"), section(1, "Other"), section(2, "Setup")]
        ).tree

        AnchorRegistry.from_tree(tree)

        assert [node.slug for node in tree.nodes] == ["guide", "setup", "other", "setup-2"]

    def test_smallest_unused_suffix_skips_taken_slugs(self) -> None:
        """A literal 'Setup 2' title takes its slug; the next duplicate skips it."""
        tree = parse_snapshot(numbered(["Setup", "Setup 2", "Setup"])).tree

        AnchorRegistry.from_tree(tree)

        assert [node.slug for node in tree.nodes] == ["setup", "setup-2", "setup-3"]

    def test_slugs_are_pairwise_unique(self) -> None:
        """Every section gets a distinct slug."""
        titles = ["Intro", "intro", "INTRO!", "Intro 2", "Intro", "Intro-2"]
        tree = parse_snapshot(numbered(titles)).tree

        registry = AnchorRegistry.from_tree(tree)

        slugs = [node.slug for node in tree.nodes]
        assert len(set(slugs)) == len(slugs)
        assert len(registry) == len(titles)

    def test_assignment_is_deterministic(self, guide_snapshot) -> None:
        """Re-running on identical input reproduces identical slugs."""
        first = parse_snapshot(guide_snapshot).tree
        second = parse_snapshot(guide_snapshot).tree

        AnchorRegistry.from_tree(first)
        AnchorRegistry.from_tree(second)

        assert [node.slug for node in first.nodes] == [node.slug for node in second.nodes]

    def test_edits_after_a_section_keep_its_slug(self) -> None:
        """Adding a duplicate later in the document does not renumber earlier ones."""
        before = parse_snapshot(numbered(["Setup", "Usage", "Setup"])).tree
        after = parse_snapshot(numbered(["Setup", "Usage", "Setup", "Setup"])).tree
        AnchorRegistry.from_tree(before)
        AnchorRegistry.from_tree(after)

        assert [node.slug for node in after.nodes[:3]] == [node.slug for node in before.nodes]
        assert after.nodes[3].slug == "setup-3"

    def test_resolve_and_location(self, guide_snapshot) -> None:
        """resolve() returns the section; unknown slugs return None."""
        tree = parse_snapshot(guide_snapshot).tree
        registry = AnchorRegistry.from_tree(tree)

        assert registry.resolve("configuration") is tree.nodes[2]
        assert registry.resolve("nowhere") is None
        assert registry.location("setup-2", tree) == ("Reference", "Setup")
        assert registry.location("nowhere", tree) is None
        assert "setup-2" in registry
        assert registry.slugs() == list(registry)
