"""스캐너 상태 머신 / 스캔 주기 / 메트릭 테스트"""

import logging

import pytest

from seatwatch.agent.metrics import ScanMetrics
from seatwatch.agent.state import ScannerState, validate_transition
from seatwatch.skills.poller import PollerSkill
from seatwatch.utils.logging_config import ColorFormatter, setup_logging

pytestmark = pytest.mark.usefixtures("restore_root_logger")


class TestStateTransitions:
    def test_idle_to_scanning(self):
        assert validate_transition(ScannerState.IDLE, ScannerState.SCANNING)

    def test_idle_to_stopped(self):
        assert validate_transition(ScannerState.IDLE, ScannerState.STOPPED)

    def test_scanning_to_waiting(self):
        assert validate_transition(ScannerState.SCANNING, ScannerState.WAITING)

    def test_scanning_to_stopped(self):
        assert validate_transition(ScannerState.SCANNING, ScannerState.STOPPED)

    def test_waiting_to_scanning(self):
        assert validate_transition(ScannerState.WAITING, ScannerState.SCANNING)

    def test_waiting_to_stopped(self):
        assert validate_transition(ScannerState.WAITING, ScannerState.STOPPED)


class TestInvalidTransitions:
    def test_idle_to_waiting(self):
        assert not validate_transition(ScannerState.IDLE, ScannerState.WAITING)

    def test_stopped_is_terminal(self):
        for target in ScannerState:
            assert not validate_transition(ScannerState.STOPPED, target)


class TestPollerSkill:
    def test_subtracts_scan_time(self):
        assert PollerSkill(interval=60.0).next_delay(15.0) == 45.0

    def test_slow_scan_starts_immediately(self):
        assert PollerSkill(interval=60.0).next_delay(75.0) == 0.0

    def test_jitter_bounds(self):
        poller = PollerSkill(interval=10.0, jitter_range=2.0)
        for _ in range(50):
            assert 10.0 <= poller.next_delay(0.0) <= 12.0

    @pytest.mark.parametrize("kwargs", [{"interval": 0}, {"jitter_range": -1}])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            PollerSkill(**kwargs)


class TestScanMetrics:
    def test_counters_and_summary(self):
        metrics = ScanMetrics()
        metrics.record_tick(1.5, evaluated=3, malformed=1)
        metrics.record_tick(0.5, evaluated=2)
        metrics.record_direct()
        metrics.record_alternatives()
        metrics.record_failure()
        metrics.record_notification(True)
        metrics.record_notification(False)

        assert metrics.ticks == 2
        assert metrics.watches_evaluated == 5
        assert metrics.malformed_records == 1
        assert metrics.avg_scan_time_s == pytest.approx(1.0)
        assert metrics.notifications_sent == 1
        assert metrics.notifications_failed == 1
        summary = metrics.summary()
        assert "스캔: 2회" in summary
        assert "감시 평가: 6건" in summary

    def test_scan_failure_counts_as_tick(self):
        metrics = ScanMetrics()
        metrics.record_scan_failure()
        metrics.record_tick(0.5, evaluated=1)

        assert metrics.ticks == 2
        assert metrics.failed_scans == 1
        assert "실패한 스캔: 1회" in metrics.summary()


class TestLogging:
    def test_color_formatter_restores_levelname(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hi", None, None)
        ColorFormatter("%(levelname)s %(message)s").format(record)
        assert record.levelname == "INFO"

    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        setup_logging("DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert not isinstance(root.handlers[0].formatter, ColorFormatter)
        assert logging.getLogger("aiohttp").level == logging.WARNING

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "seatwatch.log"
        setup_logging("INFO", log_file=log_file, color=False)
        logging.getLogger("seatwatch.test").info("기록")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "기록" in log_file.read_text(encoding="utf-8")

