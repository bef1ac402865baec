"""에이전트 공통 기반

ScannerAgent / NotifierAgent / InputAgent가 공유하는 라이프사이클과 이벤트 발행.

라이프사이클: INIT → READY → ACTIVE → DRAINING → OFF
run()이 예외로 끝나면 DRAINING 전에 FAILED를 거치고 예외는 호출자에게 올라간다.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Optional

from seatwatch.models.events import AgentMessage


class AgentLifecycle(Enum):
    INIT = auto()
    READY = auto()
    ACTIVE = auto()
    DRAINING = auto()
    FAILED = auto()
    OFF = auto()


class BaseAgent(ABC):
    """에이전트 추상 클래스

    하위 클래스는 setup() / run() / teardown()을 구현하고,
    외부에서는 start()로 전체 라이프사이클을 돌린다.
    teardown()은 run()이 정상 종료하든 예외로 끝나든 항상 호출된다.
    """

    def __init__(
        self,
        agent_id: str,
        event_bus: Optional[asyncio.Queue[AgentMessage]] = None,
    ) -> None:
        self._id = agent_id
        self._event_bus = event_bus
        self._lifecycle = AgentLifecycle.INIT
        self._stop_event = asyncio.Event()
        self._last_error: Optional[BaseException] = None
        self._logger = logging.getLogger(f"seatwatch.agent.{agent_id}")

    @property
    def agent_id(self) -> str:
        return self._id

    @property
    def lifecycle(self) -> AgentLifecycle:
        return self._lifecycle

    @property
    def is_active(self) -> bool:
        return self._lifecycle == AgentLifecycle.ACTIVE

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    @property
    def last_error(self) -> Optional[BaseException]:
        """run()을 중단시킨 마지막 예외 (없으면 None)"""
        return self._last_error

    def _enter(self, state: AgentLifecycle) -> None:
        if state != self._lifecycle:
            self._logger.debug("%s → %s", self._lifecycle.name, state.name)
        self._lifecycle = state

    async def emit(
        self,
        event: str,
        target: str,
        payload: object = None,
        tick: int = 0,
    ) -> None:
        """이벤트 버스로 메시지 발행. 버스가 없으면 (단독 실행) 버린다."""
        if self._event_bus is None:
            return
        await self._event_bus.put(AgentMessage(
            event=event,
            source=self._id,
            target=target,
            payload=payload,
            tick=tick,
        ))

    def request_stop(self) -> None:
        """다음 확인 지점(감시 사이, 대기 중)에서 멈추도록 요청"""
        self._stop_event.set()

    async def _sleep_or_stop(self, delay: float) -> bool:
        """delay초 대기. 그 사이 중지 요청이 오면 바로 True."""
        if self._stop_event.is_set():
            return True
        try:
            # 타임아웃이면 wait_for가 Event.wait()를 취소한다 (대기자 누적 없음)
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    @abstractmethod
    async def setup(self) -> None:
        """run() 전 준비 작업"""

    @abstractmethod
    async def run(self) -> None:
        """메인 루프. request_stop() 이후 적당한 시점에 반환해야 한다."""

    @abstractmethod
    async def teardown(self) -> None:
        """남은 작업 정리"""

    async def start(self) -> None:
        """setup → run → teardown"""
        self._enter(AgentLifecycle.INIT)
        try:
            await self.setup()
            self._enter(AgentLifecycle.READY)
            self._enter(AgentLifecycle.ACTIVE)
            await self.run()
        except Exception as e:
            self._last_error = e
            self._logger.error("%s 실행 중 오류로 중단: %s", self._id, e)
            self._enter(AgentLifecycle.FAILED)
            raise
        finally:
            self._enter(AgentLifecycle.DRAINING)
            await self.teardown()
            self._enter(AgentLifecycle.OFF)
