"""Key-name classification for PII scrubbing.

Classification is deliberately schema-blind: it looks only at property
key names, never at values, so the scrubber works for any tenant ontology.
The pattern tables live in datanet.config; this module only compiles and
applies them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, Mapping

from datanet import config
from datanet.models.types import PiiCategory

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s\-.]+")
_REPEATED_UNDERSCORES = re.compile(r"_+")


@lru_cache(maxsize=4096)
def normalize_key(key: str) -> str:
    """Normalise a property key for matching.

    "firstName", "First-Name" and "first_name" all become "first_name";
    "IPAddress" becomes "ip_address".
    """
    text = _ACRONYM_BOUNDARY.sub(r"\1_\2", key.strip())
    text = _CAMEL_BOUNDARY.sub(r"\1_\2", text)
    text = _SEPARATORS.sub("_", text.lower())
    return _REPEATED_UNDERSCORES.sub("_", text).strip("_")


def _compile(patterns: Iterable[str]) -> re.Pattern[str]:
    return re.compile("|".join(f"(?:{p})" for p in patterns))


@dataclass
class FieldClassifier:
    """Map property keys to PII categories using the configured tables.

    Precedence: always-remove > tenant reference > derived secret > PII
    categories > none. The first match wins, so the always-remove table and
    the PII tables never both claim a key.
    """

    always_remove: frozenset[str] = config.ALWAYS_REMOVE_FIELDS
    pii_patterns: Mapping[PiiCategory, tuple[str, ...]] = field(
        default_factory=lambda: dict(config.PII_FIELD_PATTERNS)
    )
    derived_secret_substrings: tuple[str, ...] = config.DERIVED_SECRET_SUBSTRINGS
    tenant_patterns: tuple[str, ...] = config.TENANT_REFERENCE_PATTERNS
    date_substrings: tuple[str, ...] = config.DATE_FIELD_SUBSTRINGS
    epoch_substrings: tuple[str, ...] = config.EPOCH_FIELD_SUBSTRINGS
    version: str = config.PATTERN_TABLE_VERSION

    def __post_init__(self) -> None:
        self._always_remove = frozenset(normalize_key(k) for k in self.always_remove)
        self._pii = [
            (category, _compile(patterns))
            for category, patterns in self.pii_patterns.items()
            if patterns
        ]
        self._tenant = _compile(self.tenant_patterns) if self.tenant_patterns else None

    def classify(self, key: str) -> PiiCategory:
        """Return the category for a property key (case-insensitive)."""
        normalized = normalize_key(key)

        if normalized in self._always_remove:
            return PiiCategory.ALWAYS_REMOVE
        if self._tenant is not None and self._tenant.fullmatch(normalized):
            return PiiCategory.TENANT_REFERENCE
        if any(s in normalized for s in self.derived_secret_substrings):
            return PiiCategory.DERIVED_SECRET
        for category, pattern in self._pii:
            if pattern.fullmatch(normalized):
                return category
        return PiiCategory.NONE

    def is_date_field(self, key: str) -> bool:
        """Whether a key names a date-like field (generalised at Strict)."""
        normalized = normalize_key(key)
        return any(s in normalized for s in self.date_substrings)

    def is_epoch_field(self, key: str) -> bool:
        """Whether numeric values under key are epoch seconds."""
        normalized = normalize_key(key)
        return any(s in normalized for s in self.epoch_substrings)
