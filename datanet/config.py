"""Field classification tables and pipeline constants.

These tables ARE the scrubbing policy. Adding a PII field name means adding
one entry here; the scrubber never hard-codes a schema. Bump
PATTERN_TABLE_VERSION whenever a table changes so contributions can be
audited against the rules that produced them.
"""

from __future__ import annotations

from datanet.models.types import PiiCategory

PATTERN_TABLE_VERSION: str = "2"

# Stripped at every scrubbing level, no exceptions.
# Matched against the normalised key (snake_case, lowercase).
ALWAYS_REMOVE_FIELDS: frozenset[str] = frozenset({
    # Credentials
    "password",
    "password_hash",
    "passwd",
    "secret",
    "api_key",
    "apikey",
    "access_token",
    "refresh_token",
    "private_key",
    # Government tax identifiers
    "ssn",
    "ssn_tin",
    "tin",
    "tax_id",
    "taxid",
    "social_security_number",
})

# Regexes are full-matched against the normalised key.
PII_FIELD_PATTERNS: dict[PiiCategory, tuple[str, ...]] = {
    # -- Personal identifiers --
    PiiCategory.PERSONAL_IDENTIFIER: (
        r"passport(_number|_no)?",
        r"drivers?_licen[cs]e(_number|_no)?",
        r"licen[cs]e_number",
        r"national_id(_number)?",
    ),
    # -- Contact information --
    PiiCategory.CONTACT: (
        r"(primary_|secondary_|work_|home_|personal_)?e_?mail(_address)?",
        r"(primary_|work_|home_)?phone(_number)?",
        r"mobile(_phone|_number)?",
        r"fax(_number)?",
        r"(street_|home_|mailing_|billing_|shipping_)?address(_line_?\d)?",
        r"postal_code|postcode|zip_code|zip",
    ),
    # -- Personal details --
    PiiCategory.PERSONAL_DETAIL: (
        r"(first|last|full|middle|given|family|maiden|display)_name",
        r"(user|customer|client|contact)_?name",
        r"name",
        r"date_of_birth|dob|birth_date|birthdate|birthday",
        r"age",
        r"gender|sex",
    ),
    # -- Financial identifiers --
    PiiCategory.FINANCIAL: (
        r"(bank_)?account_(number|no)",
        r"bank_account",
        r"credit_card(_number)?|card_number",
        r"routing_number",
        r"iban",
        r"swift(_code)?|bic",
    ),
    # -- Device identifiers --
    PiiCategory.DEVICE: (
        r"ip(_address)?",
        r"mac(_address)?",
        r"device_id",
    ),
}

# Any key containing one of these is treated as a derived secret and
# stripped at every level (e.g. "email_hash", "session_token", "kms_key").
DERIVED_SECRET_SUBSTRINGS: tuple[str, ...] = (
    "encrypted",
    "hash",
    "token",
    "secret",
    "key",
)

# Back-references to the contributing tenant never leave the tenant store.
TENANT_REFERENCE_PATTERNS: tuple[str, ...] = (
    r"tenant(_id|_name|_slug)?",
)

# Keys containing one of these are generalised at the Strict level.
DATE_FIELD_SUBSTRINGS: tuple[str, ...] = (
    "date",
    "timestamp",
    "created_at",
    "updated_at",
    "deleted_at",
)

# Of those, keys whose numeric values are epoch seconds. A number under any
# other date key ("candidateScore", "validatedCount") is left alone.
EPOCH_FIELD_SUBSTRINGS: tuple[str, ...] = (
    "timestamp",
    "created_at",
    "updated_at",
    "deleted_at",
)

# Consent cache
CONSENT_CACHE_TTL_SECONDS: float = 300.0
CONSENT_CACHE_MAX_ENTRIES: int = 10_000

# Contribution
UNKNOWN_DOMAIN: str = "Unknown"

# Hashing / tokenisation
HASH_LENGTH: int = 32  # hex chars of the HMAC-SHA256 digest
TOKEN_PREFIX: str = "TOKEN_"
HASH_SALT_ENV_VAR: str = "DATANET_HASH_SALT"

# Storage (never the tenant production database)
DATA_NETWORK_DB_PATH: str = "./data/data-network"
DATA_NETWORK_TABLE: str = "data_network"
