"""End-to-end tests for DataNetworkPipeline with real components.

These tests wire the consent validator, PiiScrubber and a LanceDB-backed
DataNetworkStore together and check the contribution guarantees from
tenant entity to stored row.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import lancedb
import pytest

from datanet.consent.cache import ConsentCache
from datanet.consent.sources import StaticConsentSource
from datanet.consent.validator import TenantConsentValidator
from datanet.models.entity import to_json
from datanet.models.types import ContributionOutcome, ScrubbingLevel
from datanet.pipeline.contribution import DataNetworkPipeline
from datanet.scrubbing.hashing import IdentifierHasher
from datanet.scrubbing.scrubber import PiiScrubber
from datanet.storage.lance_store import DataNetworkStore
from tests.fixtures.entities import (
    TEST_SALT,
    make_client_entity,
    make_consent,
    make_transaction_entity,
)

PII_KEYS = ("firstName", "lastName", "email", "phone", "ssn")


@pytest.fixture
def consent_source() -> StaticConsentSource:
    return StaticConsentSource()


@pytest.fixture
def store(tmp_path: Path) -> DataNetworkStore:
    prod = tmp_path / "tenant-prod"
    prod.mkdir()
    return DataNetworkStore(str(tmp_path / "data-network"), production_db_path=str(prod))


@pytest.fixture
def pipeline(consent_source: StaticConsentSource, store: DataNetworkStore) -> DataNetworkPipeline:
    validator = TenantConsentValidator(consent_source, cache=ConsentCache())
    consent_source.subscribe(validator.invalidate)
    scrubber = PiiScrubber(IdentifierHasher(TEST_SALT))
    return DataNetworkPipeline(validator, scrubber, store)


class TestContributionScenarios:
    @pytest.mark.asyncio
    async def test_strict_contribution(
        self,
        pipeline: DataNetworkPipeline,
        consent_source: StaticConsentSource,
        store: DataNetworkStore,
    ) -> None:
        """Strict consent: balance kept, name and email gone, level recorded."""
        consent_source.set_consent("tenant-acme", make_consent(level=ScrubbingLevel.STRICT))
        entity = make_client_entity()

        assert await pipeline.process_entity(entity) is True

        [row] = store.all_records()
        assert row["properties"]["accountBalance"] == "1500.25"
        for key in PII_KEYS:
            assert key not in row["properties"]
        assert row["metadata"]["scrubbing_level"] == "Strict"
        assert row["scrubbing_level"] == "Strict"
        assert row["domain"] == "Wealth"
        assert row["id"] != entity.id
        assert "tenant-acme" not in to_json(row["properties"]) + to_json(row["metadata"])

    @pytest.mark.asyncio
    async def test_no_consent_never_stores(
        self, pipeline: DataNetworkPipeline, store: DataNetworkStore
    ) -> None:
        assert await pipeline.process_entity(make_client_entity()) is False
        assert store.count() == 0

    @pytest.mark.asyncio
    async def test_opted_out_never_stores(
        self,
        pipeline: DataNetworkPipeline,
        consent_source: StaticConsentSource,
        store: DataNetworkStore,
    ) -> None:
        consent_source.set_consent("tenant-acme", make_consent(has_consent=False))

        outcome = await pipeline.contribute(make_client_entity())

        assert outcome is ContributionOutcome.REJECTED_NO_CONSENT
        assert store.count() == 0

    @pytest.mark.asyncio
    async def test_category_scoping(
        self,
        pipeline: DataNetworkPipeline,
        consent_source: StaticConsentSource,
        store: DataNetworkStore,
    ) -> None:
        consent_source.set_consent("tenant-acme", make_consent(categories={"Client"}))

        assert await pipeline.contribute(make_transaction_entity()) is (
            ContributionOutcome.REJECTED_OUT_OF_SCOPE
        )
        assert await pipeline.contribute(make_client_entity()) is ContributionOutcome.ACCEPTED
        assert [row["entity_type"] for row in store.all_records()] == ["Client"]

    @pytest.mark.asyncio
    async def test_moderate_tokens_and_ids_are_deterministic(
        self,
        pipeline: DataNetworkPipeline,
        consent_source: StaticConsentSource,
        store: DataNetworkStore,
    ) -> None:
        consent_source.set_consent("tenant-acme", make_consent(level=ScrubbingLevel.MODERATE))
        entity = make_client_entity(email="ann.lee@example.com")

        await pipeline.process_entity(entity)
        await pipeline.process_entity(entity.clone())

        first, second = store.all_records()
        assert first["id"] == second["id"]
        assert first["properties"]["email"] == second["properties"]["email"]
        assert first["properties"]["email"].startswith("TOKEN_")
        assert store.contains(first["id"])

    @pytest.mark.asyncio
    async def test_always_remove_at_minimal(
        self,
        pipeline: DataNetworkPipeline,
        consent_source: StaticConsentSource,
        store: DataNetworkStore,
    ) -> None:
        consent_source.set_consent("tenant-acme", make_consent(level=ScrubbingLevel.MINIMAL))

        await pipeline.process_entity(make_client_entity(password="pw-not-real"))

        [row] = store.all_records()
        assert "ssn" not in row["properties"]
        assert "password" not in row["properties"]
        assert "email" in row["properties"]

    @pytest.mark.asyncio
    async def test_consent_withdrawal_takes_effect(
        self,
        pipeline: DataNetworkPipeline,
        consent_source: StaticConsentSource,
        store: DataNetworkStore,
    ) -> None:
        consent_source.set_consent("tenant-acme", make_consent())
        assert await pipeline.process_entity(make_client_entity()) is True

        consent_source.set_consent("tenant-acme", make_consent(has_consent=False))
        assert await pipeline.process_entity(make_client_entity()) is False

        assert store.count() == 1

    @pytest.mark.asyncio
    async def test_malformed_metadata_fails_without_raising(
        self,
        pipeline: DataNetworkPipeline,
        consent_source: StaticConsentSource,
        store: DataNetworkStore,
    ) -> None:
        consent_source.set_consent("tenant-acme", make_consent())
        entity = make_client_entity()
        entity.metadata = [("domain", "Finance")]  # type: ignore[assignment]

        assert await pipeline.contribute(entity) is ContributionOutcome.FAILED
        assert store.count() == 0

    @pytest.mark.asyncio
    async def test_input_entity_untouched(
        self, pipeline: DataNetworkPipeline, consent_source: StaticConsentSource
    ) -> None:
        consent_source.set_consent("tenant-acme", make_consent())
        entity = make_client_entity()
        before = entity.clone()

        await pipeline.process_entity(entity)

        assert entity == before


class TestIsolation:
    @pytest.mark.asyncio
    async def test_production_database_untouched(
        self,
        tmp_path: Path,
        pipeline: DataNetworkPipeline,
        consent_source: StaticConsentSource,
    ) -> None:
        prod_db = lancedb.connect(str(tmp_path / "tenant-prod"))
        consent_source.set_consent("tenant-acme", make_consent())

        await pipeline.process_entity(make_client_entity())

        assert list(prod_db.table_names()) == []


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_parallel_contributions(
        self,
        pipeline: DataNetworkPipeline,
        consent_source: StaticConsentSource,
        store: DataNetworkStore,
    ) -> None:
        consent_source.set_consent("tenant-a", make_consent())
        consent_source.set_consent("tenant-b", make_consent(level=ScrubbingLevel.MODERATE))
        entities = [
            make_client_entity(entity_id=f"client-{i}", tenant_id=tenant)
            for i in range(10)
            for tenant in ("tenant-a", "tenant-b", "tenant-c")
        ]

        results = await asyncio.gather(*(pipeline.process_entity(e) for e in entities))

        assert results.count(True) == 20
        assert results.count(False) == 10
        assert store.count() == 20
        levels = {row["scrubbing_level"] for row in store.all_records()}
        assert levels == {"Strict", "Moderate"}
