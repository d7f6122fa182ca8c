"""Business-domain inference for contribution metadata."""

from __future__ import annotations

from typing import Mapping

from datanet import config
from datanet.models.entity import Entity

DOMAIN_METADATA_KEY = "domain"


def infer_domain(entity: Entity) -> str:
    """Best-effort business domain of an entity.

    Order:
    1. metadata["domain"] when metadata is a mapping and the value is a
       non-blank string
    2. first "."-separated segment of entity.source ("Billing.Invoices" -> "Billing")
    3. UNKNOWN_DOMAIN
    """
    if isinstance(entity.metadata, Mapping):
        domain = entity.metadata.get(DOMAIN_METADATA_KEY)
        if isinstance(domain, str) and domain.strip():
            return domain.strip()

    if isinstance(entity.source, str) and entity.source.strip():
        head = entity.source.strip().split(".", 1)[0].strip()
        if head:
            return head

    return config.UNKNOWN_DOMAIN
