"""스캐너 에이전트 (ScannerAgent)

고정 주기로 저장소의 활성 감시 목록을 읽고 감시를 하나씩 평가한다.
직통 좌석 / 대체 여정이 있으면 이벤트를 발행한다.

상태 머신: IDLE → SCANNING → WAITING → SCANNING ... → STOPPED
스캔은 겹치지 않는다. 스캔이 느리면 다음 스캔이 늦어질 뿐이다.
감시 1건의 실패(손상 레코드, 조회 실패)는 나머지 스캔을 중단하지 않는다.
스캔 자체의 실패(저장소 읽기 오류 등)도 루프를 멈추지 않고 다음 주기에 다시 스캔한다.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from time import monotonic
from typing import Callable, Optional

from seatwatch.agent.state import ScannerState, validate_transition
from seatwatch.agents.base import BaseAgent
from seatwatch.models.config import WatchdogConfig
from seatwatch.models.events import AgentEvent
from seatwatch.models.watch import Watch, WatchReport
from seatwatch.skills.poller import PollerSkill
from seatwatch.skills.watch_check import WatchCheckSkill
from seatwatch.utils.watch_store import WatchStore

logger = logging.getLogger("seatwatch.agent.scanner")


class ScannerAgent(BaseAgent):
    """감시 스캔 에이전트

    스캔 1회 = 저장소 스냅샷 1개. 스캔 도중 추가된 감시는 다음 스캔에서 평가된다.
    """

    def __init__(
        self,
        config: WatchdogConfig,
        store: WatchStore,
        checker: WatchCheckSkill,
        event_bus: Optional[asyncio.Queue] = None,  # type: ignore[type-arg]
        clock: Optional[Callable[[], datetime]] = None,  # 테스트용 의존성 주입
    ) -> None:
        super().__init__("scanner_agent", event_bus)
        self._config = config
        self._store = store
        self._checker = checker
        self._poller = PollerSkill(interval=config.scan_interval)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._state = ScannerState.IDLE
        self._tick = 0

    @property
    def scanner_state(self) -> ScannerState:
        return self._state

    @property
    def tick(self) -> int:
        return self._tick

    def _transition(self, target: ScannerState) -> None:
        if self._state == target:
            return
        if not validate_transition(self._state, target):
            raise RuntimeError(
                f"잘못된 스캐너 상태 전이: {self._state.name} → {target.name}"
            )
        self._state = target

    async def setup(self) -> None:
        logger.info(
            "ScannerAgent 초기화 완료 (주기: %.0fs, 최대 스캔: %s)",
            self._config.scan_interval,
            self._config.max_ticks or "무제한",
        )

    async def run(self) -> None:
        """스캔 루프 실행"""
        max_ticks = self._config.max_ticks
        while not self._stop_event.is_set():
            self._transition(ScannerState.SCANNING)
            t0 = monotonic()
            try:
                await self.scan_once()
            except Exception as e:
                logger.warning("스캔 #%d 실패 - 다음 주기에 재시도: %s", self._tick, e)
                await self.emit(
                    AgentEvent.SCAN_FAILED, "orchestrator",
                    {"error": str(e)}, tick=self._tick,
                )
            elapsed = monotonic() - t0

            if max_ticks is not None and self._tick >= max_ticks:
                logger.info("최대 스캔 횟수 도달: %d", self._tick)
                break

            self._transition(ScannerState.WAITING)
            delay = self._poller.next_delay(elapsed)
            if elapsed >= self._config.scan_interval:
                logger.warning(
                    "스캔이 주기보다 오래 걸림 (%.1fs ≥ %.0fs)",
                    elapsed, self._config.scan_interval,
                )
            logger.debug("다음 스캔까지 %.1f초 대기", delay)
            if await self._sleep_or_stop(delay):
                break

        self._transition(ScannerState.STOPPED)
        await self.emit(
            AgentEvent.SESSION_STOP, "orchestrator",
            {"ticks": self._tick}, tick=self._tick,
        )

    async def teardown(self) -> None:
        logger.info("ScannerAgent 정리 완료 (총 %d회 스캔)", self._tick)

    async def scan_once(self) -> list[WatchReport]:
        """스캔 1회: 스냅샷의 감시를 순차 평가"""
        self._tick += 1
        tick = self._tick
        t0 = monotonic()
        now = self._clock()

        entries = self._store.snapshot(now)
        await self.emit(
            AgentEvent.SCAN_START, "orchestrator",
            {"watches": len(entries)}, tick=tick,
        )
        logger.info("스캔 #%d 시작: 감시 %d건", tick, len(entries))

        reports: list[WatchReport] = []
        malformed = 0
        failed = 0
        for key, value in entries:
            if self._stop_event.is_set():
                logger.info("중지 요청 - 남은 감시 평가 생략")
                break

            try:
                watch = Watch.from_record(value)
            except ValueError as e:
                malformed += 1
                logger.warning("손상된 감시 레코드 건너뜀 (%s): %s", key, e)
                continue

            if watch.is_expired(now):
                logger.debug("만료된 감시 건너뜀: %s", watch.summary())
                continue

            report = await self._evaluate(watch, tick)
            if report is None:
                failed += 1
                continue
            reports.append(report)

        elapsed = monotonic() - t0
        await self.emit(
            AgentEvent.SCAN_COMPLETE, "orchestrator",
            {
                "elapsed_s": elapsed,
                "evaluated": len(reports),
                "failed": failed,
                "malformed": malformed,
                "probes": self._checker.probe_count,
            },
            tick=tick,
        )
        logger.info(
            "스캔 #%d 완료: 평가 %d건, 실패 %d건, 손상 %d건 (%.1fs)",
            tick, len(reports), failed, malformed, elapsed,
        )
        return reports

    async def _evaluate(self, watch: Watch, tick: int) -> Optional[WatchReport]:
        """감시 1건 평가 + 이벤트 발행. 실패 시 None."""
        try:
            report = await self._checker.evaluate(watch)
        except Exception as e:
            logger.warning("감시 평가 실패 %s: %s", watch.summary(), e)
            await self.emit(
                AgentEvent.WATCH_FAILED, "orchestrator",
                {"watch_id": watch.watch_id, "error": str(e)}, tick=tick,
            )
            return None

        if report.kind == "direct":
            await self.emit(AgentEvent.DIRECT_AVAILABLE, "orchestrator", report, tick=tick)
        elif report.kind == "alternatives":
            await self.emit(AgentEvent.ALTERNATIVES_FOUND, "orchestrator", report, tick=tick)
        return report
