"""Error hierarchy for the data network pipeline.

All errors include retry semantics to enable graceful failure handling.
Check the .retryable attribute to determine if an operation can be retried.

Error messages carry field names, types and identifiers that are already
safe to log. They never carry raw property values.
"""

from __future__ import annotations


class DataNetworkError(Exception):
    """Base error for the data network pipeline.

    All pipeline-specific errors inherit from this.
    """

    retryable: bool = False


# =============================================================================
# Programming Errors
# =============================================================================


class InvalidArgumentError(DataNetworkError, ValueError):
    """A caller passed an argument that can never succeed.

    Attributes:
        argument: Name of the offending argument
        reason: Human-readable error description

    Retry: Never retryable - fix the caller.
    """

    def __init__(self, argument: str, reason: str) -> None:
        self.argument = argument
        self.reason = reason
        super().__init__(f"Invalid {argument}: {reason}")


class InvalidEntityError(InvalidArgumentError):
    """Entity is missing or structurally unusable (no type, wrong shape).

    Retry: Never retryable - fix the upstream producer.
    """

    def __init__(self, reason: str) -> None:
        super().__init__("entity", reason)


class PropertyDecodeError(DataNetworkError, TypeError):
    """A property value could not be converted to the requested type.

    Attributes:
        key: Property key that failed to decode
        expected: Name of the requested type
        actual: Name of the stored value's type

    Retry: Never retryable - the stored value has the wrong shape.
    """

    def __init__(self, key: str, expected: str, actual: str) -> None:
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Property '{key}' cannot be decoded as {expected} (found {actual})"
        )


# =============================================================================
# Consent Errors
# =============================================================================


class InvalidConsentError(DataNetworkError):
    """Consent payload from tenant administration is malformed.

    Attributes:
        reason: Human-readable error description

    Retry: Never retryable - fix the consent record.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid consent record: {reason}")


class ConsentLookupError(DataNetworkError):
    """Tenant administration could not answer a consent lookup.

    Sources may raise it directly; the validator wraps any other source
    failure in it. Either way the answer is "no consent" (fail closed).

    Attributes:
        tenant_id: Tenant whose consent was requested
        reason: Human-readable error description

    Retry: Retryable - the administration service may be briefly unavailable.
    """

    retryable = True

    def __init__(self, tenant_id: str, reason: str) -> None:
        self.tenant_id = tenant_id
        self.reason = reason
        super().__init__(f"Consent lookup for tenant {tenant_id} failed: {reason}")


# =============================================================================
# Scrubbing Errors
# =============================================================================


class ScrubError(DataNetworkError):
    """The entity as a whole could not be scrubbed.

    Per-field failures never raise; they drop the field. This is only
    raised when the entity has no usable structure.

    Attributes:
        entity_type: Type of the entity that failed to scrub
        reason: Human-readable error description

    Retry: Never retryable - fix the entity shape.
    """

    def __init__(self, entity_type: str, reason: str) -> None:
        self.entity_type = entity_type
        self.reason = reason
        super().__init__(f"Failed to scrub {entity_type} entity: {reason}")


class ConfigurationError(DataNetworkError):
    """Pipeline component is misconfigured (e.g. missing hash salt).

    Retry: Never retryable - fix deployment configuration.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Configuration error: {reason}")


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(DataNetworkError):
    """Storage operation failed.

    Attributes:
        operation: The operation that failed (store, count, health)
        reason: Human-readable error description
        retryable: Whether the operation can be retried
        retry_after_seconds: Suggested wait time before retry (None if not retryable)

    Retry: Check .retryable - True for transient failures like timeouts.
    Retrying a store may produce a duplicate contribution.
    """

    def __init__(
        self,
        operation: str,
        reason: str,
        retryable: bool = False,
        retry_after_seconds: int | None = None,
    ) -> None:
        self.operation = operation
        self.reason = reason
        self.retryable = retryable
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Storage {operation} failed: {reason}")


class IsolationError(StorageError):
    """Data network store would overlap the tenant production store.

    Attributes:
        network_uri: Location configured for the data network
        production_uri: Location of the tenant production store

    Retry: Never retryable - point the data network at separate storage.
    """

    def __init__(self, network_uri: str, production_uri: str) -> None:
        self.network_uri = network_uri
        self.production_uri = production_uri
        super().__init__(
            operation="open",
            reason=(
                f"data network location {network_uri} overlaps "
                f"production store {production_uri}"
            ),
            retryable=False,
        )
