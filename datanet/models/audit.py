"""Scrub audit trail types."""

from __future__ import annotations

from dataclasses import dataclass, field

from datanet.models.types import ScrubbingLevel


@dataclass
class ScrubAuditEntry:
    """Record of which fields scrubbing touched.

    Holds field paths only (e.g. "properties.contact.email"), never values.
    """

    entity_type: str
    level: ScrubbingLevel
    pattern_version: str
    removed_fields: list[str] = field(default_factory=list)
    tokenized_fields: list[str] = field(default_factory=list)
    generalized_fields: list[str] = field(default_factory=list)
    failed_fields: list[str] = field(default_factory=list)

    @property
    def fields_changed(self) -> int:
        """Total number of fields removed, tokenised, generalised or dropped on error."""
        return (
            len(self.removed_fields)
            + len(self.tokenized_fields)
            + len(self.generalized_fields)
            + len(self.failed_fields)
        )
