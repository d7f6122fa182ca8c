"""Storage backends for the data network."""

from datanet.storage.lance_store import CONTRIBUTIONS_SCHEMA, DataNetworkStore, ensure_isolated

__all__ = [
    "CONTRIBUTIONS_SCHEMA",
    "DataNetworkStore",
    "ensure_isolated",
]
