"""감시 등록 입력 검증 테스트"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_details
from seatwatch.skills.validation import ValidationSkill

NOW = datetime(2026, 11, 1, 12, 0, tzinfo=timezone.utc)


def _request(**overrides) -> dict:
    data = {
        "station_from_id": "372825000",
        "station_to_id": "372842002",
        "route_id": "5400543021",
        "webhook_url": "https://discord.example/api/webhooks/1/abc",
    }
    data.update(overrides)
    return data


class TestValidateRequest:
    def test_valid_request_normalized(self) -> None:
        result = ValidationSkill().validate_request(_request(route_id=" 5400543021 "))
        assert result["route_id"] == "5400543021"

    @pytest.mark.parametrize("field", ["station_from_id", "station_to_id", "route_id"])
    def test_missing_field(self, field) -> None:
        with pytest.raises(ValueError):
            ValidationSkill().validate_request(_request(**{field: ""}))

    def test_non_numeric_id(self) -> None:
        with pytest.raises(ValueError, match="숫자"):
            ValidationSkill().validate_request(_request(route_id="abc"))

    def test_same_station(self) -> None:
        with pytest.raises(ValueError):
            ValidationSkill().validate_request(_request(station_to_id="372825000"))

    @pytest.mark.parametrize("url", ["ftp://x/y", "not a url", "https://"])
    def test_bad_webhook(self, url) -> None:
        with pytest.raises(ValueError):
            ValidationSkill().validate_request(_request(webhook_url=url))

    def test_webhook_optional(self) -> None:
        assert ValidationSkill().validate_request(_request(webhook_url=""))["webhook_url"] == ""


class TestBuildWatch:
    def test_expiry_is_departure(self) -> None:
        details = make_details(0)
        watch = ValidationSkill().build_watch(
            ValidationSkill().validate_request(_request()), details, NOW,
        )
        assert watch.expires_at == details.departure
        assert watch.expires_at.tzinfo == timezone.utc
        assert watch.created_at == NOW
        assert len(watch.watch_id) == 32

    def test_departed_route_rejected(self) -> None:
        details = make_details(0, departure=NOW - timedelta(minutes=1))
        with pytest.raises(ValueError, match="이미 출발"):
            ValidationSkill.validate_departure(details, NOW)

    def test_unknown_departure_rejected(self) -> None:
        details = make_details(0)
        details = replace(details, departure=None)
        with pytest.raises(ValueError):
            ValidationSkill.validate_departure(details, NOW)
