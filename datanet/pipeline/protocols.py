"""Pipeline stage protocols (structural interfaces).

Each collaborator of the contribution pipeline is defined by a Protocol --
a structural interface that any implementation must satisfy. No base
classes, no inheritance.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from datanet.models.entity import ContributionMetadata, Entity, ScrubbedEntity
from datanet.models.types import ConsentRecord, ConsentResult, ScrubbingLevel


class ConsentSource(Protocol):
    """Tenant administration's read side for data network consent.

    Returns None when the tenant has no consent record. May return the
    raw administration payload (a mapping) instead of a ConsentRecord.
    May raise on lookup failure; callers fail closed.
    """

    async def get_tenant_consent(
        self, tenant_id: str
    ) -> ConsentRecord | Mapping[str, Any] | None:
        """Fetch the tenant's current consent record."""
        ...


class ConsentValidator(Protocol):
    """Decides whether a tenant's entity type may be contributed."""

    async def validate_consent(
        self, tenant_id: str | None, entity_type: str
    ) -> ConsentResult:
        """Return the consent decision. Never raises on lookup failure."""
        ...


class Scrubber(Protocol):
    """Removes or obfuscates PII from an entity copy."""

    def scrub_entity(
        self, entity: Entity, entity_type: str, level: ScrubbingLevel
    ) -> ScrubbedEntity:
        """Return a scrubbed copy; the input entity is not modified."""
        ...


class ContributionStore(Protocol):
    """The shared, cross-tenant analytics store.

    Must be a storage namespace distinct from tenant production storage.
    """

    async def store(self, entity: ScrubbedEntity, metadata: ContributionMetadata) -> None:
        """Durably write one contribution. Raises StorageError on failure."""
        ...
