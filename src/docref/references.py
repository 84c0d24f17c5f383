"""Split references into internal and external, resolving internal ones."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from docref.anchors import AnchorRegistry
from docref.schemas import (
    Reference,
    ReferenceKind,
    SectionTree,
    ValidationResult,
    ValidationStatus,
)
from docref.sections import anchor_of

logger = logging.getLogger(__name__)


@dataclass
class ResolvedReferences:
    """Output of a resolver pass.

    Attributes:
        internal: One result per internal reference, in document order.
        external: Distinct external targets mapped to every reference that
            points at them, in order of first appearance.
    """

    internal: list[ValidationResult] = field(default_factory=list)
    external: dict[str, list[Reference]] = field(default_factory=dict)

    @property
    def external_targets(self) -> list[str]:
        return list(self.external)


def resolve_references(tree: SectionTree, registry: AnchorRegistry) -> ResolvedReferences:
    """Walk every entry once and classify its references.

    Internal references are resolved against ``registry`` immediately; this
    path performs no I/O. External references are only collected.
    """
    resolved = ResolvedReferences()
    for node in tree.walk():
        for entry in node.entries:
            for reference in entry.references:
                if reference.kind is ReferenceKind.EXTERNAL:
                    resolved.external.setdefault(reference.raw_target, []).append(reference)
                else:
                    resolved.internal.append(resolve_internal(reference, registry))

    logger.debug(
        "Resolved %d internal references; %d distinct external targets",
        len(resolved.internal),
        len(resolved.external),
    )
    return resolved


def resolve_internal(reference: Reference, registry: AnchorRegistry) -> ValidationResult:
    """Resolve one internal reference against the registry."""
    slug = anchor_of(reference.raw_target)
    section = registry.resolve(slug)
    if section is None:
        return ValidationResult(
            target=reference.raw_target,
            status=ValidationStatus.BROKEN,
            detail=f"unresolved anchor '{slug}' referenced from {reference.location.describe()}",
            reference=reference,
        )
    return ValidationResult(
        target=reference.raw_target,
        status=ValidationStatus.VALID,
        detail=f"resolves to section '{section.title}'",
        reference=reference.model_copy(update={"resolved_slug": slug}),
    )
