"""PII Scrubbing module.

Provides the PiiScrubber implementation that satisfies the Scrubber protocol.
Classifies property keys against the configured pattern tables, detects
credentials in values with detect-secrets, and hashes or tokenises
identifiers with a keyed HMAC.
"""

from __future__ import annotations

from datanet.scrubbing.classifier import FieldClassifier, normalize_key
from datanet.scrubbing.dates import generalize_date, is_date_value, month_start
from datanet.scrubbing.hashing import IdentifierHasher, canonical_text
from datanet.scrubbing.scrubber import PiiScrubber
from datanet.scrubbing.secrets import SecretFinding, contains_secret, detect_secrets_in_text

__all__ = [
    "FieldClassifier",
    "IdentifierHasher",
    "PiiScrubber",
    "SecretFinding",
    "canonical_text",
    "contains_secret",
    "detect_secrets_in_text",
    "generalize_date",
    "is_date_value",
    "month_start",
    "normalize_key",
]
