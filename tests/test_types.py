"""Tests for consent types and enums."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from datanet.core.errors import InvalidConsentError
from datanet.models.types import (
    ConsentRecord,
    ConsentResult,
    PiiCategory,
    ScrubbingLevel,
)


class TestScrubbingLevel:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Strict", ScrubbingLevel.STRICT),
            ("moderate", ScrubbingLevel.MODERATE),
            (" MINIMAL ", ScrubbingLevel.MINIMAL),
        ],
    )
    def test_parse(self, text: str, expected: ScrubbingLevel) -> None:
        assert ScrubbingLevel.parse(text) is expected

    @pytest.mark.parametrize("text", ["", "None", "Lenient", None])
    def test_parse_rejects_unknown(self, text: object) -> None:
        with pytest.raises(InvalidConsentError):
            ScrubbingLevel.parse(text)  # type: ignore[arg-type]


class TestPiiCategory:
    def test_stripped_categories_are_not_level_dependent(self) -> None:
        for category in PiiCategory:
            assert not (category.stripped_at_every_level and category.is_pii)

    def test_none_is_neither(self) -> None:
        assert not PiiCategory.NONE.is_pii
        assert not PiiCategory.NONE.stripped_at_every_level


class TestConsentRecordFromMapping:
    def test_admin_payload(self) -> None:
        record = ConsentRecord.from_mapping({
            "dataNetworkConsent": True,
            "piiScrubbingLevel": "Moderate",
            "dataNetworkCategories": ["Client", "Portfolio"],
            "consentVersion": "3.1",
            "consentDate": "2024-05-01T00:00:00Z",
        })

        assert record.has_consent is True
        assert record.scrubbing_level is ScrubbingLevel.MODERATE
        assert record.allowed_categories == frozenset({"Client", "Portfolio"})
        assert record.consent_version == "3.1"
        assert record.consent_date == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_defaults(self) -> None:
        record = ConsentRecord.from_mapping({"dataNetworkConsent": True})

        assert record.scrubbing_level is ScrubbingLevel.STRICT
        assert record.consent_version == "1.0"
        assert record.allowed_categories == frozenset()

    def test_missing_flag_means_no_consent(self) -> None:
        assert ConsentRecord.from_mapping({}).has_consent is False

    @pytest.mark.parametrize(
        "payload",
        [
            {"dataNetworkConsent": "yes"},
            {"dataNetworkConsent": True, "piiScrubbingLevel": "Off"},
            {"dataNetworkConsent": True, "dataNetworkCategories": "Client"},
            {"dataNetworkConsent": True, "dataNetworkCategories": [1, 2]},
            {"dataNetworkConsent": True, "consentVersion": ""},
            {"dataNetworkConsent": True, "consentDate": "someday"},
        ],
    )
    def test_malformed_payloads(self, payload: dict) -> None:
        with pytest.raises(InvalidConsentError):
            ConsentRecord.from_mapping(payload)

    def test_allows_empty_scope_means_all(self) -> None:
        record = ConsentRecord(has_consent=True)
        assert record.allows("Anything")

    def test_allows_respects_scope(self) -> None:
        record = ConsentRecord(has_consent=True, allowed_categories=frozenset({"Client"}))
        assert record.allows("Client")
        assert not record.allows("Transaction")


class TestConsentResult:
    def test_denied_defaults(self) -> None:
        result = ConsentResult.denied()

        assert result.has_consent is False
        assert result.scrubbing_level is ScrubbingLevel.STRICT
        assert result.consent_version == "1.0"
        assert result.includes_entity_type is False
        assert result.permits_contribution is False

    def test_permits_requires_scope(self) -> None:
        assert not ConsentResult(has_consent=True, includes_entity_type=False).permits_contribution
        assert ConsentResult(has_consent=True, includes_entity_type=True).permits_contribution
