"""Entity dataclasses representing pipeline stages.

Entity -> ScrubbedEntity (+ ContributionMetadata) -> data network store

The type system enforces that scrubbing happens before storage.
The store accepts ScrubbedEntity, not Entity.

Property dictionaries are open-ended but their values are not: every
value is one of the PropertyValue shapes below, and typed access goes
through explicit decode helpers that raise PropertyDecodeError.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Union

from datanet.core.errors import InvalidEntityError, PropertyDecodeError
from datanet.models.audit import ScrubAuditEntry
from datanet.models.types import ScrubbingLevel

PropertyValue = Union[
    None,
    bool,
    int,
    float,
    Decimal,
    str,
    date,
    datetime,
    list["PropertyValue"],
    dict[str, "PropertyValue"],
]

_SCALAR_TYPES = (bool, int, float, Decimal, str, date)

# Provenance keys written into ScrubbedEntity.metadata
SCRUBBED_KEY = "scrubbed"
SCRUBBING_LEVEL_KEY = "scrubbing_level"
ENTITY_TYPE_KEY = "entity_type"
SCRUBBED_AT_KEY = "scrubbed_at"
ORIGINAL_TENANT_HASH_KEY = "original_tenant_id_hash"
PATTERN_VERSION_KEY = "pattern_version"

PROVENANCE_KEYS = frozenset({
    SCRUBBED_KEY,
    SCRUBBING_LEVEL_KEY,
    ENTITY_TYPE_KEY,
    SCRUBBED_AT_KEY,
    ORIGINAL_TENANT_HASH_KEY,
    PATTERN_VERSION_KEY,
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _json_default(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"{type(value).__name__} is not a PropertyValue")


def to_json(value: PropertyValue) -> str:
    """Canonical JSON (sorted keys, ISO dates, Decimal as string)."""
    return json.dumps(value, sort_keys=True, default=_json_default, separators=(",", ":"))


def check_property_value(value: Any, key: str) -> None:
    """Verify that value is a supported PropertyValue, recursively.

    Raises:
        PropertyDecodeError: If value (or anything nested in it) is unsupported
    """
    if value is None or isinstance(value, _SCALAR_TYPES):
        return
    if isinstance(value, list):
        for i, item in enumerate(value):
            check_property_value(item, f"{key}[{i}]")
        return
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise PropertyDecodeError(f"{key}.<key>", "str", type(k).__name__)
            check_property_value(v, f"{key}.{k}")
        return
    raise PropertyDecodeError(key, "PropertyValue", type(value).__name__)


def decode_datetime(value: Any, key: str) -> datetime:
    """Convert a date-like property value to a datetime.

    Accepts datetime, date, ISO-8601 strings and epoch seconds.

    Raises:
        PropertyDecodeError: If the value is not date-like
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise PropertyDecodeError(key, "datetime", "str") from None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise PropertyDecodeError(key, "datetime", type(value).__name__) from None
    raise PropertyDecodeError(key, "datetime", type(value).__name__)


def _optional_datetime(payload: Mapping[str, Any], name: str) -> datetime | None:
    value = payload.get(name)
    if value is None:
        return None
    return decode_datetime(value, name)


@dataclass
class Entity:
    """A tenant domain entity. May contain PII. Cannot be stored in the network.

    Only `properties` carries domain data; the other attributes are
    structural.
    """

    id: str
    type: str
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    metadata: dict[str, PropertyValue] | None = None
    tenant_id: str | None = None
    version: str = "1.0"
    source: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    created_by: str | None = None
    updated_by: str | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Entity:
        """Build an Entity from the JSON shape upstream services emit.

        Keys are camelCase (id, type, properties, metadata, tenantId,
        source, version, createdAt, updatedAt, createdBy, updatedBy,
        isDeleted, deletedAt, deletedBy).

        Raises:
            InvalidEntityError: If the payload cannot form an entity
        """
        if not isinstance(payload, Mapping):
            raise InvalidEntityError("payload must be a mapping")

        entity_type = payload.get("type")
        if not isinstance(entity_type, str) or not entity_type.strip():
            raise InvalidEntityError("type must be a non-empty string")

        properties = payload.get("properties") or {}
        metadata = payload.get("metadata")
        if not isinstance(properties, dict):
            raise InvalidEntityError("properties must be an object")
        if metadata is not None and not isinstance(metadata, dict):
            raise InvalidEntityError("metadata must be an object")

        try:
            check_property_value(properties, "properties")
            if metadata is not None:
                check_property_value(metadata, "metadata")
            created_at = _optional_datetime(payload, "createdAt") or _utcnow()
            updated_at = _optional_datetime(payload, "updatedAt") or created_at
            deleted_at = _optional_datetime(payload, "deletedAt")
        except PropertyDecodeError as e:
            raise InvalidEntityError(str(e)) from e

        return cls(
            id=str(payload.get("id") or ""),
            type=entity_type,
            properties=dict(properties),
            metadata=dict(metadata) if metadata is not None else None,
            tenant_id=payload.get("tenantId"),
            version=str(payload.get("version") or "1.0"),
            source=payload.get("source"),
            created_at=created_at,
            updated_at=updated_at,
            created_by=payload.get("createdBy"),
            updated_by=payload.get("updatedBy"),
            is_deleted=bool(payload.get("isDeleted", False)),
            deleted_at=deleted_at,
            deleted_by=payload.get("deletedBy"),
        )

    def clone(self) -> Entity:
        """Deep copy. Scrubbing works on clones, never on the caller's entity."""
        return copy.deepcopy(self)

    # -- Typed property access --

    def get_str(self, key: str, default: str | None = None) -> str | None:
        value = self.properties.get(key)
        if value is None:
            return default
        if isinstance(value, str):
            return value
        if isinstance(value, _SCALAR_TYPES):
            return value.isoformat() if isinstance(value, date) else str(value)
        raise PropertyDecodeError(key, "str", type(value).__name__)

    def get_int(self, key: str, default: int | None = None) -> int | None:
        value = self.properties.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            raise PropertyDecodeError(key, "int", "bool")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
        raise PropertyDecodeError(key, "int", type(value).__name__)

    def get_datetime(self, key: str, default: datetime | None = None) -> datetime | None:
        value = self.properties.get(key)
        if value is None:
            return default
        return decode_datetime(value, key)


@dataclass
class ScrubbedEntity:
    """Output of the PII scrubber. Guaranteed safe to contribute.

    The id is a one-way hash, the tenant is gone (only its hash survives
    in metadata), and properties/metadata have been scrubbed.
    """

    id: str
    type: str
    properties: dict[str, PropertyValue]
    metadata: dict[str, PropertyValue]
    audit: ScrubAuditEntry
    version: str = "1.0"
    source: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None

    @property
    def tenant_id(self) -> None:
        """Always None: tenant identity never leaves the tenant store."""
        return None

    @property
    def original_tenant_hash(self) -> str:
        value = self.metadata.get(ORIGINAL_TENANT_HASH_KEY)
        return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class ContributionMetadata:
    """Provenance stored alongside (not inside) a scrubbed entity."""

    domain: str
    entity_type: str
    original_tenant_hash: str
    scrubbing_level: ScrubbingLevel
    consent_version: str
    ingested_at: datetime
