"""설정 모델 테스트"""

from __future__ import annotations

import pytest

from seatwatch.models.config import WatchdogConfig


class TestWatchdogConfig:
    def test_defaults(self) -> None:
        config = WatchdogConfig()
        assert config.scan_interval == 60.0
        assert config.max_parallel_probes == 1
        assert config.max_route_transfers == 0
        assert config.notification_methods == ["webhook"]
        assert config.max_ticks is None

    @pytest.mark.parametrize("kwargs", [
        {"scan_interval": 0},
        {"max_parallel_probes": 0},
        {"max_route_transfers": -1},
        {"requests_per_second": 0},
    ])
    def test_invalid_values(self, kwargs) -> None:
        with pytest.raises(ValueError):
            WatchdogConfig(**kwargs)


class TestFromEnv:
    def test_env_overlay(self) -> None:
        config = WatchdogConfig.from_env({
            "SEATWATCH_SCAN_INTERVAL": "120",
            "SEATWATCH_NOTIFICATION_METHODS": "webhook, log",
            "SEATWATCH_MAX_TICKS": "3",
            "SEATWATCH_WEBHOOK_URL": " https://hooks.example/x ",
            "UNRELATED": "1",
        })
        assert config.scan_interval == 120.0
        assert config.notification_methods == ["webhook", "log"]
        assert config.max_ticks == 3
        assert config.webhook_url == "https://hooks.example/x"

    def test_overrides_win_and_none_ignored(self) -> None:
        config = WatchdogConfig.from_env(
            {"SEATWATCH_MAX_PARALLEL_PROBES": "2"},
            max_parallel_probes=4,
            scan_interval=None,
        )
        assert config.max_parallel_probes == 4
        assert config.scan_interval == 60.0

    def test_bad_number(self) -> None:
        with pytest.raises(ValueError, match="SEATWATCH_REQUEST_BURST"):
            WatchdogConfig.from_env({"SEATWATCH_REQUEST_BURST": "many"})

    def test_empty_value_ignored(self) -> None:
        assert WatchdogConfig.from_env({"SEATWATCH_CURRENCY": ""}).currency == "CZK"
