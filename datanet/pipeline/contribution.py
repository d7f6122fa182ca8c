"""DataNetworkPipeline: consent -> scrub -> store, one entity at a time.

REJECTED_NO_CONSENT   -> tenant not opted in (or consent unknowable)
REJECTED_OUT_OF_SCOPE -> tenant opted in, but not for this entity type
ACCEPTED              -> scrubbed copy written to the data network
FAILED                -> scrubbing or storage raised; nothing was written
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from datanet.core.errors import InvalidEntityError
from datanet.models.entity import ContributionMetadata, Entity
from datanet.models.types import ContributionOutcome
from datanet.pipeline.domain import infer_domain
from datanet.pipeline.protocols import ConsentValidator, ContributionStore, Scrubber

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DataNetworkPipeline:
    """Contributes tenant entities to the data network.

    Stateless between calls: safe to share across asyncio tasks. The
    caller's entity is never modified.
    """

    def __init__(
        self,
        consent_validator: ConsentValidator,
        scrubber: Scrubber,
        store: ContributionStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the pipeline.

        Args:
            consent_validator: Decides whether the tenant may contribute
            scrubber: Produces the scrubbed copy
            store: Data network store (never the tenant production store)
            clock: Source of ingested_at timestamps
        """
        self._consent = consent_validator
        self._scrubber = scrubber
        self._store = store
        self._clock = clock

    async def process_entity(self, entity: Entity) -> bool:
        """Contribute one entity. True only if it was written to the network.

        Raises:
            InvalidEntityError: If entity is None or has no type
        """
        outcome = await self.contribute(entity)
        return outcome is ContributionOutcome.ACCEPTED

    async def contribute(self, entity: Entity) -> ContributionOutcome:
        """Run one entity through the pipeline and report how it ended.

        Raises:
            InvalidEntityError: If entity is None or has no type
        """
        if not isinstance(entity, Entity):
            raise InvalidEntityError("an Entity is required")
        if not isinstance(entity.type, str) or not entity.type.strip():
            raise InvalidEntityError("entity type is required")

        entity_type = entity.type
        domain = infer_domain(entity)

        try:
            consent = await self._consent.validate_consent(entity.tenant_id, entity_type)

            if not consent.permits_contribution:
                if consent.has_consent:
                    event, outcome = (
                        "contribution_rejected_out_of_scope",
                        ContributionOutcome.REJECTED_OUT_OF_SCOPE,
                    )
                else:
                    event, outcome = (
                        "contribution_rejected_no_consent",
                        ContributionOutcome.REJECTED_NO_CONSENT,
                    )
                logger.info("%s entity_type=%s domain=%s", event, entity_type, domain)
                return outcome

            scrubbed = self._scrubber.scrub_entity(entity, entity_type, consent.scrubbing_level)

            metadata = ContributionMetadata(
                domain=domain,
                entity_type=entity_type,
                original_tenant_hash=scrubbed.original_tenant_hash,
                scrubbing_level=consent.scrubbing_level,
                consent_version=consent.consent_version,
                ingested_at=self._clock(),
            )

            await self._store.store(scrubbed, metadata)
        except Exception as e:
            logger.error(
                "contribution_failed entity_type=%s domain=%s tenant_id=%s error=%s",
                entity_type,
                domain,
                entity.tenant_id,
                type(e).__name__,
            )
            return ContributionOutcome.FAILED

        logger.info(
            "contribution_accepted entity_type=%s domain=%s scrubbing_level=%s",
            entity_type,
            domain,
            consent.scrubbing_level.value,
        )
        return ContributionOutcome.ACCEPTED
