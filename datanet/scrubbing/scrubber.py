"""PiiScrubber: graduated, schema-blind PII scrubbing for entities.

Satisfies the Scrubber protocol. Classifies property keys with the
configured pattern tables, then removes, tokenises or generalises values
according to the tenant's scrubbing level. Works on a deep copy; the
caller's entity is never touched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from datanet.core.errors import InvalidArgumentError, InvalidEntityError, ScrubError
from datanet.models.audit import ScrubAuditEntry
from datanet.models.entity import (
    ENTITY_TYPE_KEY,
    ORIGINAL_TENANT_HASH_KEY,
    PATTERN_VERSION_KEY,
    PROVENANCE_KEYS,
    SCRUBBED_AT_KEY,
    SCRUBBED_KEY,
    SCRUBBING_LEVEL_KEY,
    Entity,
    PropertyValue,
    ScrubbedEntity,
    check_property_value,
)
from datanet.models.types import PiiCategory, ScrubbingLevel
from datanet.scrubbing.classifier import FieldClassifier
from datanet.scrubbing.dates import generalize_date, is_date_value, month_start
from datanet.scrubbing.hashing import IdentifierHasher
from datanet.scrubbing.secrets import contains_secret

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _ScrubContext:
    """Per-call state: level, audit trail and raw identifiers to purge."""

    level: ScrubbingLevel
    audit: ScrubAuditEntry
    forbidden_values: frozenset[str]


class PiiScrubber:
    """PII scrubber driven by key-name classification.

    Satisfies the Scrubber protocol:
        def scrub_entity(self, entity, entity_type, level) -> ScrubbedEntity

    Per field:
    1. Always-remove, derived-secret and tenant-reference keys: dropped
    2. Strings containing the raw entity/tenant id: dropped
    3. String values carrying credentials: dropped
    4. PII keys: Strict drops, Moderate tokenises, Minimal keeps
    5. Nested mappings and lists: scrubbed recursively
    6. Date values under date-like keys at Strict: generalised to the month

    A field whose transform raises is dropped and recorded, never passed
    through.
    """

    def __init__(
        self,
        hasher: IdentifierHasher,
        classifier: FieldClassifier | None = None,
        scan_values: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the scrubber.

        Args:
            hasher: Keyed hasher for ids, tenant ids and PII tokens
            classifier: Key classifier (defaults to the configured tables)
            scan_values: Run the credential scanner over string values
            clock: Source of the scrubbed_at timestamp
        """
        self._hasher = hasher
        self._classifier = classifier or FieldClassifier()
        self._scan_values = scan_values
        self._clock = clock

    def scrub_entity(
        self, entity: Entity, entity_type: str, level: ScrubbingLevel
    ) -> ScrubbedEntity:
        """Return a scrubbed, independent copy of entity.

        Args:
            entity: Tenant entity (not modified)
            entity_type: Entity type recorded in provenance metadata
            level: Scrubbing strength from the tenant's consent

        Returns:
            ScrubbedEntity with hashed id, no tenant id and scrubbed fields

        Raises:
            InvalidEntityError: entity is None or entity_type is empty
            InvalidArgumentError: level is not a ScrubbingLevel
            ScrubError: entity has no usable structure
        """
        if not isinstance(entity, Entity):
            raise InvalidEntityError("an Entity is required")
        if not entity_type:
            raise InvalidEntityError("entity type is required")
        if not isinstance(level, ScrubbingLevel):
            raise InvalidArgumentError("level", "must be a ScrubbingLevel")
        if not isinstance(entity.properties, Mapping):
            raise ScrubError(entity_type, "properties is not a mapping")
        if entity.metadata is not None and not isinstance(entity.metadata, Mapping):
            raise ScrubError(entity_type, "metadata is not a mapping")

        try:
            source = entity.clone()
        except Exception as e:
            raise ScrubError(entity_type, f"entity could not be copied ({type(e).__name__})") from e

        ctx = _ScrubContext(
            level=level,
            audit=ScrubAuditEntry(
                entity_type=entity_type,
                level=level,
                pattern_version=self._classifier.version,
            ),
            forbidden_values=frozenset(
                v.strip().casefold()
                for v in (entity.id, entity.tenant_id)
                if isinstance(v, str) and v.strip()
            ),
        )

        properties = self._scrub_mapping(source.properties, "properties", ctx)
        metadata = self._scrub_mapping(
            {k: v for k, v in (source.metadata or {}).items() if k not in PROVENANCE_KEYS},
            "metadata",
            ctx,
        )
        metadata.update({
            SCRUBBED_KEY: True,
            SCRUBBING_LEVEL_KEY: level.value,
            ENTITY_TYPE_KEY: entity_type,
            SCRUBBED_AT_KEY: self._clock().isoformat(),
            ORIGINAL_TENANT_HASH_KEY: self._hasher.hash_tenant(entity.tenant_id),
            PATTERN_VERSION_KEY: self._classifier.version,
        })

        strict = level is ScrubbingLevel.STRICT
        scrubbed = ScrubbedEntity(
            id=self._hasher.hash_identifier(entity.id, tenant_salt=entity.tenant_id),
            type=source.type,
            properties=properties,
            metadata=metadata,
            audit=ctx.audit,
            version=source.version,
            source=None if self._references_identity(source.source, ctx) else source.source,
            created_at=self._base_timestamp(source.created_at, strict),
            updated_at=self._base_timestamp(source.updated_at, strict),
            is_deleted=source.is_deleted,
            deleted_at=self._base_timestamp(source.deleted_at, strict),
        )

        logger.debug(
            "scrubbed_entity entity_type=%s level=%s fields_changed=%d failed=%d",
            entity_type,
            level.value,
            ctx.audit.fields_changed,
            len(ctx.audit.failed_fields),
        )
        return scrubbed

    @property
    def classifier(self) -> FieldClassifier:
        """Access the classifier for inspection."""
        return self._classifier

    def _scrub_mapping(
        self, mapping: Mapping[str, Any], path: str, ctx: _ScrubContext
    ) -> dict[str, PropertyValue]:
        """Scrub every field of a mapping, isolating per-field failures."""
        out: dict[str, PropertyValue] = {}
        for key, value in mapping.items():
            field_path = f"{path}.{key}"
            try:
                keep, new_value = self._scrub_field(str(key), value, field_path, ctx)
            except Exception as e:
                logger.warning(
                    "field_scrub_failed entity_type=%s field=%s error=%s",
                    ctx.audit.entity_type,
                    field_path,
                    type(e).__name__,
                )
                ctx.audit.failed_fields.append(field_path)
                continue
            if keep:
                out[key] = new_value
        return out

    def _scrub_field(
        self, key: str, value: Any, path: str, ctx: _ScrubContext
    ) -> tuple[bool, PropertyValue]:
        """Apply key classification, then value-level rules."""
        category = self._classifier.classify(key)

        if category.stripped_at_every_level:
            ctx.audit.removed_fields.append(path)
            return False, None

        if category.is_pii:
            if ctx.level is ScrubbingLevel.STRICT:
                ctx.audit.removed_fields.append(path)
                return False, None
            if ctx.level is ScrubbingLevel.MODERATE:
                if self._is_unsafe_scalar(value, ctx):
                    ctx.audit.removed_fields.append(path)
                    return False, None
                ctx.audit.tokenized_fields.append(path)
                return True, self._hasher.tokenize(value)
            # Minimal: PII passes through, nested structure is still scrubbed

        return self._scrub_value(key, value, path, ctx)

    def _scrub_value(
        self, key: str, value: Any, path: str, ctx: _ScrubContext
    ) -> tuple[bool, PropertyValue]:
        """Value-level rules shared by fields and list items."""
        if self._is_unsafe_scalar(value, ctx):
            ctx.audit.removed_fields.append(path)
            return False, None

        if isinstance(value, Mapping):
            return True, self._scrub_mapping(value, path, ctx)

        if isinstance(value, list):
            items: list[PropertyValue] = []
            for i, item in enumerate(value):
                keep, new_item = self._scrub_value(key, item, f"{path}[{i}]", ctx)
                if keep:
                    items.append(new_item)
            return True, items

        check_property_value(value, path)

        if (
            ctx.level is ScrubbingLevel.STRICT
            and self._classifier.is_date_field(key)
            and is_date_value(value, epoch_seconds=self._classifier.is_epoch_field(key))
        ):
            generalized = generalize_date(value, path)
            ctx.audit.generalized_fields.append(path)
            return True, generalized

        return True, value

    def _is_unsafe_scalar(self, value: Any, ctx: _ScrubContext) -> bool:
        """Raw identifier back-reference or embedded credential."""
        if not isinstance(value, str):
            return False
        if self._references_identity(value, ctx):
            return True
        return self._scan_values and contains_secret(value)

    @staticmethod
    def _references_identity(value: Any, ctx: _ScrubContext) -> bool:
        if not isinstance(value, str):
            return False
        text = value.casefold()
        return any(raw in text for raw in ctx.forbidden_values)

    @staticmethod
    def _base_timestamp(value: datetime | None, strict: bool) -> datetime | None:
        if value is None or not strict:
            return value
        return month_start(value)
