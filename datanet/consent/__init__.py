"""Consent validation: cache, sources and the fail-closed validator."""

from datanet.consent.cache import ConsentCache
from datanet.consent.sources import ConsentChangeListener, StaticConsentSource
from datanet.consent.validator import TenantConsentValidator

__all__ = [
    "ConsentCache",
    "ConsentChangeListener",
    "StaticConsentSource",
    "TenantConsentValidator",
]
