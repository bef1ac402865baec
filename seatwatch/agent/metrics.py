"""스캔 런타임 메트릭 수집"""

from __future__ import annotations

from time import monotonic


class ScanMetrics:
    """런타임 메트릭 수집"""

    __slots__ = (
        "ticks", "watches_evaluated", "malformed_records",
        "failed_checks", "failed_scans", "direct_hits", "alternatives_found",
        "notifications_sent", "notifications_failed", "probes",
        "_scan_times", "_start_time",
    )

    def __init__(self) -> None:
        self.ticks: int = 0
        self.watches_evaluated: int = 0
        self.malformed_records: int = 0
        self.failed_checks: int = 0
        self.failed_scans: int = 0
        self.direct_hits: int = 0
        self.alternatives_found: int = 0
        self.notifications_sent: int = 0
        self.notifications_failed: int = 0
        self.probes: int = 0
        self._scan_times: list[float] = []
        self._start_time: float = monotonic()

    @property
    def avg_scan_time_s(self) -> float:
        if not self._scan_times:
            return 0.0
        return sum(self._scan_times) / len(self._scan_times)

    @property
    def session_duration_s(self) -> float:
        return monotonic() - self._start_time

    def record_tick(self, elapsed_s: float, evaluated: int = 0, malformed: int = 0) -> None:
        self.ticks += 1
        self.watches_evaluated += evaluated
        self.malformed_records += malformed
        self._scan_times.append(elapsed_s)
        # 최근 100개만 유지
        if len(self._scan_times) > 100:
            self._scan_times = self._scan_times[-50:]

    def record_direct(self) -> None:
        self.direct_hits += 1

    def record_alternatives(self) -> None:
        self.alternatives_found += 1

    def record_failure(self) -> None:
        self.failed_checks += 1

    def record_scan_failure(self) -> None:
        self.ticks += 1
        self.failed_scans += 1

    def record_notification(self, delivered: bool) -> None:
        if delivered:
            self.notifications_sent += 1
        else:
            self.notifications_failed += 1

    def summary(self) -> str:
        duration = self.session_duration_s
        checks = self.watches_evaluated + self.failed_checks
        success_rate = self.watches_evaluated / max(checks, 1) * 100
        return (
            f"=== 세션 요약 ===\n"
            f"  경과 시간: {duration / 60:.1f}분\n"
            f"  스캔: {self.ticks}회 (평균 {self.avg_scan_time_s:.1f}초)\n"
            f"  감시 평가: {checks}건 (성공률: {success_rate:.1f}%)\n"
            f"  손상된 레코드: {self.malformed_records}건\n"
            f"  실패한 스캔: {self.failed_scans}회\n"
            f"  직통 좌석: {self.direct_hits}회 / 대체 여정: {self.alternatives_found}회\n"
            f"  구간 조회: {self.probes}회\n"
            f"  알림 발송: {self.notifications_sent}회 (실패 {self.notifications_failed}회)"
        )
