"""오케스트레이터 에이전트 (OrchestratorAgent)

감시 서비스 한 세션을 구성하고 종료까지 책임진다:
  역 목록 로드 → ScannerAgent (주기 스캔) ⇄ event_bus ⇄ NotifierAgent (알림)

스캐너와 알림 에이전트는 서로를 모른다. 스캐너가 버스에 올린 평가 결과를
오케스트레이터가 받아 메트릭에 반영하고 알림 에이전트의 inbox로 넘긴다.

상태: IDLE → RUNNING → STOPPING → STOPPED
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from time import monotonic
from typing import Awaitable, Callable, Optional

from seatwatch.agent.metrics import ScanMetrics
from seatwatch.agents.notifier_agent import NotifierAgent
from seatwatch.agents.scanner_agent import ScannerAgent
from seatwatch.models.config import WatchdogConfig
from seatwatch.models.errors import LookupFailure
from seatwatch.models.events import AgentEvent, AgentMessage
from seatwatch.models.watch import WatchReport
from seatwatch.skills.notifier import NotifierSkill
from seatwatch.skills.route_client import RouteClientSkill
from seatwatch.skills.station_data import StationDirectory
from seatwatch.skills.watch_check import WatchCheckSkill
from seatwatch.utils.watch_store import WatchStore

logger = logging.getLogger("seatwatch.agent.orchestrator")

Handler = Callable[[AgentMessage], Awaitable[None]]


class OrchestratorState(Enum):
    IDLE = auto()
    RUNNING = auto()
    STOPPING = auto()
    STOPPED = auto()


async def load_stations(client: RouteClientSkill) -> StationDirectory:
    """역 목록 로드. 실패해도 빈 목록으로 계속한다 (감시 평가 때 다시 시도)."""
    try:
        names = await client.fetch_stations()
    except LookupFailure as e:
        logger.warning("역 목록 로드 실패 - 역 이름 없이 계속: %s", e)
        names = {}
    logger.info("역 목록 로드: %d개", len(names))
    return StationDirectory(names)


class OrchestratorAgent:
    """감시 세션 총괄

    프로세스당 하나. run()이 끝나면 공유 HTTP 세션도 닫힌다.
    """

    SHUTDOWN_TIMEOUT = 10.0  # 에이전트별 종료 대기 (초)
    BUS_POLL_INTERVAL = 1.0

    def __init__(
        self,
        config: Optional[WatchdogConfig] = None,
        store: Optional[WatchStore] = None,
        client: Optional[RouteClientSkill] = None,
        stations: Optional[StationDirectory] = None,
        notifier: Optional[NotifierSkill] = None,  # 테스트용 의존성 주입
    ) -> None:
        self._config = config or WatchdogConfig()
        self._state = OrchestratorState.IDLE
        self._metrics = ScanMetrics()
        self._store = store or WatchStore(self._config.store_path or None)
        self._client = client or RouteClientSkill.from_config(self._config)
        self._stations = stations
        self._stop_requested = False

        self._bus: asyncio.Queue[AgentMessage] = asyncio.Queue()
        self._notifier_agent = NotifierAgent(
            config=self._config,
            event_bus=self._bus,
            notifier=notifier,
        )
        # 역 목록을 받은 뒤 run()에서 만든다
        self._scanner_agent: Optional[ScannerAgent] = None
        self._scanner_task: Optional[asyncio.Task] = None  # type: ignore[type-arg]
        self._notifier_task: Optional[asyncio.Task] = None  # type: ignore[type-arg]

        self._handlers: dict[str, Handler] = {
            AgentEvent.SCAN_COMPLETE: self._on_scan_complete,
            AgentEvent.SCAN_FAILED: self._on_scan_failed,
            AgentEvent.DIRECT_AVAILABLE: self._on_report,
            AgentEvent.ALTERNATIVES_FOUND: self._on_report,
            AgentEvent.WATCH_FAILED: self._on_watch_failed,
            AgentEvent.NOTIFY_COMPLETE: self._on_notify_complete,
            AgentEvent.NOTIFY_FAILED: self._on_notify_failed,
            AgentEvent.SESSION_STOP: self._on_session_stop,
        }

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def metrics(self) -> ScanMetrics:
        return self._metrics

    def stop(self) -> None:
        """안전 종료 요청 (시그널 핸들러에서 호출). run() 전에 불러도 된다."""
        self._stop_requested = True
        if self._state != OrchestratorState.RUNNING:
            return
        logger.info("종료 요청 수신 - 진행 중인 감시 평가 후 멈춤")
        self._state = OrchestratorState.STOPPING
        if self._scanner_agent is not None:
            self._scanner_agent.request_stop()

    async def run(self) -> ScanMetrics:
        """세션 실행 (blocking). 종료 후 메트릭 반환."""
        self._state = OrchestratorState.RUNNING
        started = monotonic()
        logger.info(
            "설정: 주기=%.0fs, 동시 조회=%d, 알림=%s, 저장소=%s",
            self._config.scan_interval,
            self._config.max_parallel_probes,
            ",".join(self._config.notification_methods),
            self._config.store_path or "(메모리)",
        )

        try:
            if self._stations is None:
                self._stations = await load_stations(self._client)
            self._scanner_agent = ScannerAgent(
                config=self._config,
                store=self._store,
                checker=WatchCheckSkill(
                    self._client,
                    self._stations,
                    max_parallel_probes=self._config.max_parallel_probes,
                ),
                event_bus=self._bus,
            )
            if self._stop_requested:
                self._scanner_agent.request_stop()

            self._scanner_task = asyncio.create_task(
                self._scanner_agent.start(), name="scanner_agent",
            )
            self._notifier_task = asyncio.create_task(
                self._notifier_agent.start(), name="notifier_agent",
            )
            await self._pump(self._scanner_task)
        finally:
            await self._shutdown()
            await RouteClientSkill.close()
            self._state = OrchestratorState.STOPPED
            logger.info("세션 종료 (%.1f분 경과)", (monotonic() - started) / 60)

        return self._metrics

    async def _pump(self, scanner_task: asyncio.Task) -> None:  # type: ignore[type-arg]
        """스캐너가 끝날 때까지 버스 메시지를 처리"""
        while not scanner_task.done():
            try:
                msg = await asyncio.wait_for(
                    self._bus.get(), timeout=self.BUS_POLL_INTERVAL,
                )
            except asyncio.TimeoutError:
                continue
            await self._dispatch(msg)
        logger.info("ScannerAgent 종료 → 세션 정리")
        await self._drain_bus()

    async def _drain_bus(self) -> None:
        while not self._bus.empty():
            await self._dispatch(self._bus.get_nowait())

    async def _dispatch(self, msg: AgentMessage) -> None:
        logger.debug("이벤트 %s ← %s (스캔 #%d)", msg.event, msg.source, msg.tick)
        handler = self._handlers.get(msg.event)
        if handler is not None:
            await handler(msg)

    # ── 이벤트 핸들러 ──

    async def _on_scan_complete(self, msg: AgentMessage) -> None:
        payload = msg.payload if isinstance(msg.payload, dict) else {}
        self._metrics.record_tick(
            payload.get("elapsed_s", 0.0),
            evaluated=payload.get("evaluated", 0),
            malformed=payload.get("malformed", 0),
        )
        self._metrics.probes = payload.get("probes", self._metrics.probes)

    async def _on_scan_failed(self, msg: AgentMessage) -> None:
        self._metrics.record_scan_failure()

    async def _on_report(self, msg: AgentMessage) -> None:
        report = msg.payload
        if not isinstance(report, WatchReport):
            return
        if report.kind == "direct":
            self._metrics.record_direct()
        else:
            self._metrics.record_alternatives()
        await self._notifier_agent.notify(report)

    async def _on_watch_failed(self, msg: AgentMessage) -> None:
        self._metrics.record_failure()

    async def _on_notify_complete(self, msg: AgentMessage) -> None:
        self._metrics.record_notification(True)
        payload = msg.payload if isinstance(msg.payload, dict) else {}
        logger.info(
            "알림 완료: 감시 %s (%s), 누적 %d회",
            str(payload.get("watch_id", ""))[:8],
            payload.get("kind", ""),
            payload.get("notification_number", 0),
        )

    async def _on_notify_failed(self, msg: AgentMessage) -> None:
        self._metrics.record_notification(False)

    async def _on_session_stop(self, msg: AgentMessage) -> None:
        payload = msg.payload if isinstance(msg.payload, dict) else {}
        logger.info("스캐너 세션 종료 신호 (스캔 %d회)", payload.get("ticks", 0))
        self.stop()

    # ── 종료 ──

    async def _shutdown(self) -> None:
        """스캐너 종료 → 남은 평가 결과 위임 → 알림 inbox 비우고 종료 → 결과 반영"""
        self._state = OrchestratorState.STOPPING
        if self._scanner_agent is not None:
            self._scanner_agent.request_stop()

        tasks = [t for t in (self._scanner_task, self._notifier_task) if t is not None]
        if not tasks:
            return

        try:
            if self._scanner_task is not None:
                await asyncio.wait_for(
                    asyncio.gather(self._scanner_task, return_exceptions=True),
                    timeout=self.SHUTDOWN_TIMEOUT,
                )
            await self._drain_bus()

            self._notifier_agent.request_stop()
            if self._notifier_task is not None:
                await asyncio.wait_for(
                    asyncio.gather(self._notifier_task, return_exceptions=True),
                    timeout=self.SHUTDOWN_TIMEOUT,
                )
            await self._drain_bus()
            logger.debug("모든 에이전트 정상 종료")
        except asyncio.TimeoutError:
            logger.warning("강제 종료 (%.0fs 타임아웃)", self.SHUTDOWN_TIMEOUT)
            self._notifier_agent.request_stop()
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
