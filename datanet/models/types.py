"""Core type definitions: enums, consent record and consent decision."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from datanet.core.errors import InvalidConsentError

DEFAULT_CONSENT_VERSION = "1.0"


class ScrubbingLevel(Enum):
    """Strength of PII removal applied before contribution.

    Strict > Moderate > Minimal. Chosen per tenant, never per entity.
    """

    STRICT = "Strict"
    MODERATE = "Moderate"
    MINIMAL = "Minimal"

    @classmethod
    def parse(cls, text: str) -> ScrubbingLevel:
        """Parse a level name as tenant administration sends it.

        Args:
            text: "Strict", "Moderate" or "Minimal" (case-insensitive)

        Returns:
            The matching ScrubbingLevel

        Raises:
            InvalidConsentError: If text is not a known level
        """
        if isinstance(text, str):
            for level in cls:
                if level.value.lower() == text.strip().lower():
                    return level
        raise InvalidConsentError(
            f"scrubbing level must be Strict, Moderate, or Minimal (got {text!r})"
        )


class PiiCategory(Enum):
    """What a property key was classified as."""

    ALWAYS_REMOVE = "always_remove"
    DERIVED_SECRET = "derived_secret"
    TENANT_REFERENCE = "tenant_reference"
    PERSONAL_IDENTIFIER = "personal_identifier"
    CONTACT = "contact"
    PERSONAL_DETAIL = "personal_detail"
    FINANCIAL = "financial"
    DEVICE = "device"
    NONE = "none"

    @property
    def stripped_at_every_level(self) -> bool:
        """True for categories no scrubbing level may let through."""
        return self in (
            PiiCategory.ALWAYS_REMOVE,
            PiiCategory.DERIVED_SECRET,
            PiiCategory.TENANT_REFERENCE,
        )

    @property
    def is_pii(self) -> bool:
        """True for the level-dependent PII categories."""
        return self not in (
            PiiCategory.ALWAYS_REMOVE,
            PiiCategory.DERIVED_SECRET,
            PiiCategory.TENANT_REFERENCE,
            PiiCategory.NONE,
        )


class ContributionOutcome(Enum):
    """Terminal state of one ProcessEntity call."""

    ACCEPTED = "accepted"
    REJECTED_NO_CONSENT = "rejected_no_consent"
    REJECTED_OUT_OF_SCOPE = "rejected_out_of_scope"
    FAILED = "failed"


@dataclass(frozen=True)
class ConsentRecord:
    """A tenant's data network consent, owned by tenant administration.

    An empty allowed_categories set means every entity type is allowed.
    """

    has_consent: bool
    scrubbing_level: ScrubbingLevel = ScrubbingLevel.STRICT
    consent_version: str = DEFAULT_CONSENT_VERSION
    allowed_categories: frozenset[str] = field(default_factory=frozenset)
    consent_date: datetime | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> ConsentRecord:
        """Build a record from a tenant administration consent payload.

        Reads the camelCase response shape: dataNetworkConsent,
        piiScrubbingLevel, dataNetworkCategories, consentVersion and
        consentDate.

        Raises:
            InvalidConsentError: If the payload is malformed
        """
        if not isinstance(payload, Mapping):
            raise InvalidConsentError("payload must be a mapping")

        has_consent = payload.get("dataNetworkConsent", False)
        if not isinstance(has_consent, bool):
            raise InvalidConsentError("consent flag must be a boolean")

        raw_level = payload.get("piiScrubbingLevel", "Strict")
        level = raw_level if isinstance(raw_level, ScrubbingLevel) else ScrubbingLevel.parse(raw_level)

        version = payload.get("consentVersion", DEFAULT_CONSENT_VERSION)
        if not isinstance(version, str) or not version.strip():
            raise InvalidConsentError("consent version must be a non-empty string")

        categories = payload.get("dataNetworkCategories")
        if categories is None:
            categories = ()
        if not isinstance(categories, (list, tuple, set, frozenset)) or not all(
            isinstance(c, str) for c in categories
        ):
            raise InvalidConsentError("categories must be a list of entity type names")

        consent_date = payload.get("consentDate")
        if isinstance(consent_date, str):
            try:
                consent_date = datetime.fromisoformat(consent_date.replace("Z", "+00:00"))
            except ValueError as e:
                raise InvalidConsentError(f"consent date is not ISO-8601: {e}") from e
        elif consent_date is not None and not isinstance(consent_date, datetime):
            raise InvalidConsentError("consent date must be a datetime or ISO-8601 string")

        return cls(
            has_consent=has_consent,
            scrubbing_level=level,
            consent_version=version,
            allowed_categories=frozenset(categories),
            consent_date=consent_date,
        )

    def allows(self, entity_type: str) -> bool:
        """Whether entity_type falls inside this tenant's consent scope."""
        return not self.allowed_categories or entity_type in self.allowed_categories


@dataclass(frozen=True)
class ConsentResult:
    """Outcome of validating consent for one (tenant, entity type) pair."""

    has_consent: bool
    scrubbing_level: ScrubbingLevel = ScrubbingLevel.STRICT
    consent_version: str = DEFAULT_CONSENT_VERSION
    includes_entity_type: bool = False

    @classmethod
    def denied(cls, consent_version: str = DEFAULT_CONSENT_VERSION) -> ConsentResult:
        """The fail-closed answer: no consent, Strict, type not included."""
        return cls(
            has_consent=False,
            scrubbing_level=ScrubbingLevel.STRICT,
            consent_version=consent_version,
            includes_entity_type=False,
        )

    @property
    def permits_contribution(self) -> bool:
        """True only when the tenant opted in AND the type is in scope."""
        return self.has_consent and self.includes_entity_type
