"""LanceDB storage layer for the data network.

Writes scrubbed entities plus contribution metadata to a LanceDB table
that lives in its own database location, never the tenant production
store. Open-ended properties and metadata are kept as canonical JSON
columns; everything the analytics side filters on is a typed column.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import lancedb
import pyarrow as pa
from lancedb.table import Table

from datanet import config
from datanet.core.errors import InvalidArgumentError, IsolationError, StorageError
from datanet.models.entity import ContributionMetadata, ScrubbedEntity, to_json

logger = logging.getLogger(__name__)

_TIMESTAMP = pa.timestamp("us", tz="UTC")

# PyArrow schema: provenance columns + ScrubbedEntity fields
CONTRIBUTIONS_SCHEMA = pa.schema([
    pa.field("id", pa.string(), nullable=False),
    pa.field("type", pa.string()),
    pa.field("entity_type", pa.string()),
    pa.field("domain", pa.string()),
    pa.field("original_tenant_hash", pa.string()),
    pa.field("scrubbing_level", pa.string()),
    pa.field("consent_version", pa.string()),
    pa.field("ingested_at", _TIMESTAMP),
    pa.field("scrubbed", pa.bool_()),
    pa.field("version", pa.string()),
    pa.field("source", pa.string()),
    pa.field("created_at", _TIMESTAMP),
    pa.field("updated_at", _TIMESTAMP),
    pa.field("is_deleted", pa.bool_()),
    pa.field("deleted_at", _TIMESTAMP),
    pa.field("properties", pa.string()),
    pa.field("metadata", pa.string()),
])


def _normalize_location(uri: str) -> str:
    if "://" in uri:
        return uri.rstrip("/")
    return str(Path(uri).expanduser().resolve())


def ensure_isolated(network_uri: str, production_uri: str) -> None:
    """Refuse a data network location that overlaps production storage.

    Raises:
        IsolationError: If the locations are equal or one contains the other
    """
    network = _normalize_location(network_uri)
    production = _normalize_location(production_uri)
    if (
        network == production
        or network.startswith(production.rstrip("/") + "/")
        or production.startswith(network.rstrip("/") + "/")
    ):
        raise IsolationError(network_uri, production_uri)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _quote(value: str) -> str:
    return value.replace("'", "''")


class DataNetworkStore:
    """LanceDB implementation of the ContributionStore protocol.

    Uses a separate LanceDB database for complete isolation from
    production data. Writes are append-only and not idempotent: callers
    that retry should check contains() on the hashed id first.
    """

    def __init__(
        self,
        db_path: str = config.DATA_NETWORK_DB_PATH,
        *,
        production_db_path: str | None = None,
        table_name: str = config.DATA_NETWORK_TABLE,
    ) -> None:
        """Initialize connection to the data network database.

        Args:
            db_path: Path or URI of the data network LanceDB database
            production_db_path: Tenant production store location; checked
                for overlap before anything is opened
            table_name: Contributions table name

        Raises:
            IsolationError: If db_path overlaps production_db_path
        """
        if production_db_path is not None:
            ensure_isolated(db_path, production_db_path)
        self._table_name = table_name
        self._db: lancedb.DBConnection = lancedb.connect(db_path)
        self._table: Table | None = None
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()

    def _open_table(self) -> Table:
        """Create the contributions table if it doesn't exist, or open existing."""
        with self._lock:
            if self._table is None:
                self._table = self._db.create_table(
                    self._table_name,
                    schema=CONTRIBUTIONS_SCHEMA,
                    exist_ok=True,
                )
            return self._table

    async def store(self, entity: ScrubbedEntity, metadata: ContributionMetadata) -> None:
        """Append one scrubbed entity with its provenance.

        Args:
            entity: Scrubbed entity (raw Entity objects are rejected)
            metadata: Contribution provenance

        Raises:
            InvalidArgumentError: If entity is not a ScrubbedEntity
            StorageError: If the write fails
        """
        if not isinstance(entity, ScrubbedEntity):
            raise InvalidArgumentError(
                "entity", "only scrubbed entities may be written to the data network"
            )
        if not isinstance(metadata, ContributionMetadata):
            raise InvalidArgumentError("metadata", "must be ContributionMetadata")

        try:
            record = self._to_record(entity, metadata)
        except (TypeError, ValueError) as e:
            raise StorageError("store", f"record could not be encoded ({type(e).__name__})") from e

        try:
            await asyncio.to_thread(self._append, record)
        except Exception as e:
            logger.error(
                "data_network_store_failed entity_type=%s domain=%s error=%s",
                metadata.entity_type,
                metadata.domain,
                type(e).__name__,
            )
            raise StorageError("store", type(e).__name__, retryable=True) from e

        logger.info(
            "stored_contribution entity_type=%s domain=%s scrubbing_level=%s",
            metadata.entity_type,
            metadata.domain,
            metadata.scrubbing_level.value,
        )

    def _append(self, record: dict[str, Any]) -> None:
        """Blocking write; runs in a worker thread, one writer at a time."""
        with self._write_lock:
            self._open_table().add([record])

    def contains(self, entity_id: str) -> bool:
        """Whether a contribution with this hashed id was already stored."""
        try:
            return self._open_table().count_rows(f"id = '{_quote(entity_id)}'") > 0
        except Exception as e:
            raise StorageError("contains", type(e).__name__, retryable=True) from e

    def count(self) -> int:
        """Return the number of stored contributions."""
        try:
            count: int = self._open_table().count_rows()
        except Exception as e:
            raise StorageError("count", type(e).__name__, retryable=True) from e
        return count

    def all_records(self) -> list[dict[str, Any]]:
        """Retrieve all contributions with JSON columns decoded.

        Intended for audits and tests, not analytics queries.
        """
        try:
            rows: list[dict[str, Any]] = self._open_table().to_arrow().to_pylist()
        except Exception as e:
            raise StorageError("read", type(e).__name__, retryable=True) from e
        for row in rows:
            row["properties"] = json.loads(row["properties"] or "{}")
            row["metadata"] = json.loads(row["metadata"] or "{}")
        return rows

    async def health(self) -> dict[str, Any]:
        """Report connectivity of the data network database."""
        try:
            self._open_table().count_rows()
        except Exception as e:
            logger.error("data_network_health_failed error=%s", type(e).__name__)
            return {"configured": True, "connected": False, "error": type(e).__name__}
        return {"configured": True, "connected": True}

    def _to_record(
        self, entity: ScrubbedEntity, metadata: ContributionMetadata
    ) -> dict[str, Any]:
        """Convert a scrubbed entity and its metadata to a LanceDB record.

        Returns:
            Dictionary matching CONTRIBUTIONS_SCHEMA.
        """
        return {
            "id": entity.id,
            "type": entity.type,
            "entity_type": metadata.entity_type,
            "domain": metadata.domain,
            "original_tenant_hash": metadata.original_tenant_hash,
            "scrubbing_level": metadata.scrubbing_level.value,
            "consent_version": metadata.consent_version,
            "ingested_at": _as_utc(metadata.ingested_at),
            "scrubbed": True,
            "version": entity.version,
            "source": entity.source,
            "created_at": _as_utc(entity.created_at),
            "updated_at": _as_utc(entity.updated_at),
            "is_deleted": entity.is_deleted,
            "deleted_at": _as_utc(entity.deleted_at),
            "properties": to_json(entity.properties),
            "metadata": to_json(entity.metadata),
        }
