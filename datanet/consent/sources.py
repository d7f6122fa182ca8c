"""In-memory ConsentSource.

Stands in for tenant administration when the pipeline is embedded in a
batch job or a test. Changes notify subscribers, which is how a validator's
cache learns it must re-fetch.
"""

from __future__ import annotations

import threading
from typing import Callable, Mapping

from datanet.models.types import ConsentRecord

ConsentChangeListener = Callable[[str], None]


class StaticConsentSource:
    """Dictionary-backed implementation of the ConsentSource protocol."""

    def __init__(self, records: Mapping[str, ConsentRecord] | None = None) -> None:
        self._records: dict[str, ConsentRecord] = dict(records or {})
        self._listeners: list[ConsentChangeListener] = []
        self._lock = threading.Lock()

    async def get_tenant_consent(self, tenant_id: str) -> ConsentRecord | None:
        with self._lock:
            return self._records.get(tenant_id)

    def set_consent(self, tenant_id: str, record: ConsentRecord) -> None:
        """Create or replace a tenant's consent and notify subscribers."""
        with self._lock:
            self._records[tenant_id] = record
            listeners = list(self._listeners)
        for listener in listeners:
            listener(tenant_id)

    def remove_consent(self, tenant_id: str) -> None:
        """Delete a tenant's consent record and notify subscribers."""
        with self._lock:
            self._records.pop(tenant_id, None)
            listeners = list(self._listeners)
        for listener in listeners:
            listener(tenant_id)

    def subscribe(self, listener: ConsentChangeListener) -> None:
        """Register a callback invoked with the tenant id on every change."""
        with self._lock:
            self._listeners.append(listener)
