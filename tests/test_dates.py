"""Tests for month-level date generalisation."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from datanet.core.errors import PropertyDecodeError
from datanet.scrubbing.dates import generalize_date, is_date_value, month_start


def test_month_start_keeps_tz() -> None:
    value = datetime(2024, 7, 19, 13, 45, 12, 999, tzinfo=timezone.utc)
    assert month_start(value) == datetime(2024, 7, 1, tzinfo=timezone.utc)


class TestGeneralizeDate:
    def test_datetime(self) -> None:
        result = generalize_date(datetime(2023, 6, 17, 9, 30), "d")
        assert result == datetime(2023, 6, 1)

    def test_date(self) -> None:
        assert generalize_date(date(2023, 12, 31), "d") == date(2023, 12, 1)

    @pytest.mark.parametrize(
        "text", ["2024-02-11", "2024-02-11T10:15:00Z", "2024-02-29T23:59:59+02:00"]
    )
    def test_iso_string(self, text: str) -> None:
        assert generalize_date(text, "d") == "2024-02"

    def test_epoch_seconds(self) -> None:
        mid_month = int(datetime(2024, 3, 20, 12, tzinfo=timezone.utc).timestamp())
        expected = int(datetime(2024, 3, 1, tzinfo=timezone.utc).timestamp())
        assert generalize_date(mid_month, "d") == expected

    def test_none(self) -> None:
        assert generalize_date(None, "d") is None

    @pytest.mark.parametrize("value", ["not a date", True, [2024, 1]])
    def test_rejects_non_dates(self, value: object) -> None:
        with pytest.raises(PropertyDecodeError):
            generalize_date(value, "d")


class TestIsDateValue:
    @pytest.mark.parametrize(
        "value", [datetime(2024, 1, 2), date(2024, 1, 2), "2024-01-02", "2024-01-02T03:04:05Z"]
    )
    def test_dates(self, value: object) -> None:
        assert is_date_value(value)

    @pytest.mark.parametrize("value", [87, 1710676800, 2.5, True, "M-7", "soon", None, [1]])
    def test_non_dates(self, value: object) -> None:
        assert not is_date_value(value)

    def test_numbers_only_as_epoch_seconds(self) -> None:
        assert is_date_value(1710676800, epoch_seconds=True)
        assert not is_date_value(True, epoch_seconds=True)
