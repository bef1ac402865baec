"""알림 에이전트 (NotifierAgent)

감시 평가 결과(WatchReport)를 수신하여 알림을 발송한다.
감시별 쿨다운으로 같은 감시의 같은 종류 알림이 매 스캔마다 반복되는 것을 막는다.

상태: IDLE → SENDING → COOLDOWN → IDLE
스킬 구성: NotifierSkill (webhook / log)
"""

from __future__ import annotations

import asyncio
import logging
from time import monotonic
from typing import Callable, Optional

from seatwatch.agents.base import BaseAgent
from seatwatch.models.config import WatchdogConfig
from seatwatch.models.events import AgentEvent
from seatwatch.models.watch import WatchReport
from seatwatch.skills.notifier import NotifierSkill

logger = logging.getLogger("seatwatch.agent.notifier")


class NotifierAgent(BaseAgent):
    """알림 에이전트

    알림 요청 수신 → 채널 병렬 발송.
    쿨다운 키는 (감시 ID, 알림 종류)이다.
    """

    def __init__(
        self,
        config: WatchdogConfig,
        event_bus: Optional[asyncio.Queue] = None,  # type: ignore[type-arg]
        notifier: Optional[NotifierSkill] = None,  # 테스트용 의존성 주입
        clock: Callable[[], float] = monotonic,
    ) -> None:
        super().__init__("notifier_agent", event_bus)
        self._config = config
        self._clock = clock
        self._last_sent: dict[tuple[str, str], float] = {}
        self._notifications_sent: int = 0
        self._inbox: asyncio.Queue[WatchReport] = asyncio.Queue()

        self._notifier = notifier or NotifierSkill(
            methods=config.notification_methods,
            webhook_url=config.webhook_url,
            currency=config.currency,
        )

    @property
    def notifications_sent(self) -> int:
        return self._notifications_sent

    @property
    def cooldown_entries(self) -> int:
        """쿨다운 중인 (감시, 종류) 수"""
        return len(self._last_sent)

    @property
    def inbox(self) -> asyncio.Queue[WatchReport]:
        return self._inbox

    async def setup(self) -> None:
        logger.info(
            "NotifierAgent 초기화 완료 (채널: %s, 쿨다운: %.0fs)",
            ",".join(self._config.notification_methods),
            self._config.notification_cooldown,
        )

    async def run(self) -> None:
        """알림 요청 처리 루프"""
        while not self._stop_event.is_set():
            try:
                report = await asyncio.wait_for(
                    self._inbox.get(),
                    timeout=1.0,
                )
                await self._handle_notification(report)
            except asyncio.TimeoutError:
                continue

    async def teardown(self) -> None:
        # 종료 전 받은 요청은 모두 처리
        while not self._inbox.empty():
            await self._handle_notification(self._inbox.get_nowait())
        logger.info("NotifierAgent 정리 완료 (알림 %d회 발송)", self._notifications_sent)

    async def notify(self, report: WatchReport) -> None:
        """Orchestrator가 직접 호출하는 알림 요청"""
        await self._inbox.put(report)

    def _prune_cooldowns(self, now: float) -> None:
        cooldown = self._config.notification_cooldown
        expired = [k for k, sent in self._last_sent.items() if now - sent >= cooldown]
        for key in expired:
            del self._last_sent[key]

    def _in_cooldown(self, key: tuple[str, str], now: float) -> bool:
        last = self._last_sent.get(key)
        if last is None:
            return False
        remaining = self._config.notification_cooldown - (now - last)
        if remaining > 0:
            logger.debug("알림 쿨다운 중 %s (잔여 %.0fs)", key, remaining)
            return True
        return False

    async def _handle_notification(self, report: WatchReport) -> None:
        """쿨다운 확인 후 알림 발송"""
        if not report.should_notify:
            return

        key = (report.watch.watch_id, report.kind)
        now = self._clock()
        self._prune_cooldowns(now)
        if self._in_cooldown(key, now):
            return

        logger.info("알림 발송 시작: %s (%s)", report.watch.summary(), report.kind)

        try:
            delivered = await self._notifier.send(report)
        except Exception as e:
            logger.warning("알림 발송 실패: %s", e)
            delivered = False

        payload = {
            "watch_id": report.watch.watch_id,
            "kind": report.kind,
        }
        if not delivered:
            await self.emit(AgentEvent.NOTIFY_FAILED, "orchestrator", payload)
            return

        self._last_sent[key] = now
        self._notifications_sent += 1
        logger.info("알림 발송 완료 (#%d)", self._notifications_sent)
        payload["notification_number"] = self._notifications_sent
        await self.emit(AgentEvent.NOTIFY_COMPLETE, "orchestrator", payload)
