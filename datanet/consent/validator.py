"""TenantConsentValidator: fail-closed consent decisions.

Satisfies the ConsentValidator protocol. Every path that cannot positively
establish consent (no tenant, no record, lookup error, malformed record)
returns a denied result; nothing here raises except on programming errors.
"""

from __future__ import annotations

import logging
from typing import Mapping

from datanet.consent.cache import ConsentCache
from datanet.core.errors import ConsentLookupError, InvalidArgumentError, InvalidConsentError
from datanet.models.types import ConsentRecord, ConsentResult
from datanet.pipeline.protocols import ConsentSource

logger = logging.getLogger(__name__)


class TenantConsentValidator:
    """Checks a tenant's opt-in, scrubbing level and category scope."""

    def __init__(self, source: ConsentSource, cache: ConsentCache | None = None) -> None:
        """Initialize the validator.

        Args:
            source: Tenant administration read interface
            cache: Optional consent cache; None means every call hits source
        """
        self._source = source
        self._cache = cache

    async def validate_consent(
        self, tenant_id: str | None, entity_type: str
    ) -> ConsentResult:
        """Decide whether tenant_id may contribute entities of entity_type.

        Args:
            tenant_id: Tenant owning the entity; empty means no consent
            entity_type: Entity type being contributed (e.g. "Client")

        Returns:
            ConsentResult; denied on any failure

        Raises:
            InvalidArgumentError: If entity_type is empty
        """
        if not isinstance(entity_type, str) or not entity_type.strip():
            raise InvalidArgumentError("entity_type", "must be a non-empty string")

        if not isinstance(tenant_id, str) or not tenant_id.strip():
            logger.debug("consent_denied reason=no_tenant entity_type=%s", entity_type)
            return ConsentResult.denied()

        try:
            record = await self._lookup(tenant_id)
        except Exception as e:
            logger.warning(
                "consent_lookup_failed tenant_id=%s entity_type=%s error=%s retryable=%s",
                tenant_id,
                entity_type,
                type(e).__name__,
                getattr(e, "retryable", False),
            )
            return ConsentResult.denied()

        if record is None:
            logger.debug(
                "consent_denied reason=no_record tenant_id=%s entity_type=%s",
                tenant_id,
                entity_type,
            )
            return ConsentResult.denied()

        if not record.has_consent:
            logger.debug(
                "consent_denied reason=opted_out tenant_id=%s entity_type=%s",
                tenant_id,
                entity_type,
            )
            return ConsentResult.denied(record.consent_version)

        includes = record.allows(entity_type)
        if not includes:
            logger.debug(
                "consent_out_of_scope tenant_id=%s entity_type=%s categories=%s",
                tenant_id,
                entity_type,
                ",".join(sorted(record.allowed_categories)),
            )

        return ConsentResult(
            has_consent=True,
            scrubbing_level=record.scrubbing_level,
            consent_version=record.consent_version,
            includes_entity_type=includes,
        )

    def invalidate(self, tenant_id: str) -> None:
        """Forget cached consent for a tenant (consent-change signal)."""
        if self._cache is not None:
            self._cache.invalidate(tenant_id)

    async def _lookup(self, tenant_id: str) -> ConsentRecord | None:
        generation: int | None = None
        if self._cache is not None:
            hit, cached = self._cache.get(tenant_id)
            if hit:
                return cached
            generation = self._cache.generation

        try:
            payload = await self._source.get_tenant_consent(tenant_id)
        except ConsentLookupError:
            raise
        except Exception as e:
            raise ConsentLookupError(tenant_id, type(e).__name__) from e
        record = self._coerce(payload)

        if self._cache is not None:
            self._cache.put(tenant_id, record, generation=generation)
        return record

    @staticmethod
    def _coerce(payload: object) -> ConsentRecord | None:
        if payload is None or isinstance(payload, ConsentRecord):
            return payload
        if isinstance(payload, Mapping):
            return ConsentRecord.from_mapping(payload)
        raise InvalidConsentError(f"unsupported consent payload {type(payload).__name__}")
