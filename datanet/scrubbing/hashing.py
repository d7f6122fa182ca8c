"""Deterministic one-way hashing and tokenisation.

Same (value, salt) -> same output, across processes and tenants. This
keeps repeated contributions of one record joinable and deduplicable in
the data network, while HMAC keying means nobody without the network salt
can rebuild the mapping by hashing guesses.
"""

from __future__ import annotations

import hashlib
import hmac
import os
from datetime import date
from typing import Any

from datanet import config
from datanet.core.errors import ConfigurationError
from datanet.models.entity import to_json


def canonical_text(value: Any) -> str:
    """Stable text form of a property value for hashing.

    Strings are stripped and lowercased so that "Ann@X.com" and
    "ann@x.com " share a token. Structured values use sorted-key JSON.
    """
    if isinstance(value, str):
        return value.strip().lower()
    if isinstance(value, (dict, list)):
        return to_json(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class IdentifierHasher:
    """Keyed hashing for entity ids, tenant ids and PII tokens.

    Thread-safe: holds only the immutable salt.
    """

    def __init__(self, salt: str | bytes, length: int = config.HASH_LENGTH) -> None:
        """Initialize with the network-wide secret salt.

        Args:
            salt: Secret key for HMAC-SHA256. Must be non-empty.
            length: Number of hex characters kept from each digest.

        Raises:
            ConfigurationError: If the salt is empty or length is out of range
        """
        if not salt:
            raise ConfigurationError("hash salt must be a non-empty string")
        if not 8 <= length <= 64:
            raise ConfigurationError(f"hash length must be between 8 and 64 (got {length})")
        self._key = salt.encode() if isinstance(salt, str) else bytes(salt)
        self._length = length

    @classmethod
    def from_env(cls, var: str = config.HASH_SALT_ENV_VAR) -> IdentifierHasher:
        """Build a hasher from the salt in environment variable `var`.

        Raises:
            ConfigurationError: If the variable is unset or empty
        """
        salt = os.environ.get(var, "")
        if not salt:
            raise ConfigurationError(f"environment variable {var} is not set")
        return cls(salt)

    def _digest(self, text: str) -> str:
        mac = hmac.new(self._key, text.encode("utf-8"), hashlib.sha256)
        return mac.hexdigest()[: self._length]

    def hash_identifier(self, value: str, tenant_salt: str | None = None) -> str:
        """One-way hash of an identifier, optionally salted with a tenant id.

        Returns "" for an empty value so that absent ids stay absent.
        """
        if not value:
            return ""
        text = f"{value}:{tenant_salt}" if tenant_salt else value
        return self._digest(text)

    def hash_tenant(self, tenant_id: str | None) -> str:
        """Hash a tenant id for provenance. Empty or missing tenant -> ""."""
        return self.hash_identifier(tenant_id or "")

    def tokenize(self, value: Any) -> Any:
        """Replace a PII value with a deterministic opaque token.

        None stays None. Raises TypeError for values with no stable text form.
        """
        if value is None:
            return None
        return f"{config.TOKEN_PREFIX}{self._digest(canonical_text(value))}"
