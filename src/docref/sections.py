"""Section title normalization, slugs and reference-target helpers."""

from __future__ import annotations

import re
import unicodedata

from docref.schemas import ReferenceKind, SectionTree

_WHITESPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^0-9a-z]+")
# scheme://, protocol-relative //host, or mailto:
_EXTERNAL_RE = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.\-]*://|//|mailto:)", re.IGNORECASE)
_MARKDOWN_LINK_RE = re.compile(r"(?<!!)\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+\"[^\"]*\")?\s*\)")
_AUTOLINK_RE = re.compile(r"<([A-Za-z][A-Za-z0-9+.\-]*://[^>\s]+)>")

SLUG_SEPARATOR = "-"
EMPTY_SLUG = "section"


def normalize_title(title: str) -> str:
    """Trim and collapse internal whitespace runs."""
    return _WHITESPACE_RE.sub(" ", title).strip()


def base_slug(title: str) -> str:
    """Derive the un-suffixed slug for a section title.

    Accented characters are folded to ASCII; every run of other characters
    becomes a single separator.
    """
    folded = unicodedata.normalize("NFKD", normalize_title(title))
    ascii_title = folded.encode("ascii", "ignore").decode("ascii").lower()
    slug = _NON_ALNUM_RE.sub(SLUG_SEPARATOR, ascii_title).strip(SLUG_SEPARATOR)
    return slug or EMPTY_SLUG


def classify_target(raw_target: str) -> ReferenceKind:
    """Classify a reference target by its syntactic shape."""
    if _EXTERNAL_RE.match(raw_target.strip()):
        return ReferenceKind.EXTERNAL
    return ReferenceKind.INTERNAL


def anchor_of(raw_target: str) -> str:
    """Strip the optional leading ``#`` from an internal target."""
    return raw_target.strip().removeprefix("#")


def find_body_links(body: str) -> list[str]:
    """Collect Markdown inline link and autolink targets in order of appearance."""
    found: list[tuple[int, str]] = []
    for match in _MARKDOWN_LINK_RE.finditer(body):
        found.append((match.start(), match.group(1)))
    for match in _AUTOLINK_RE.finditer(body):
        found.append((match.start(), match.group(1)))
    found.sort(key=lambda item: item[0])
    return [target for _, target in found]


def format_sections_tree(tree: SectionTree, *, with_slugs: bool = True) -> str:
    """Render the tree as indented lines, one section per line."""
    lines: list[str] = []
    for node in tree.walk():
        label = node.title
        if with_slugs and node.slug:
            label = f"{label} (#{node.slug})"
        lines.append(" " * ((node.level - 1) * 4) + label)
    return "\n".join(lines)
