"""입력 처리 에이전트 (InputAgent)

감시 등록 요청을 검증하고, 노선 상세로 출발 시각을 확인한 뒤
만료 시각(= 출발 시각)과 함께 저장소에 넣는다.
스킬 구성: StationDirectory → ValidationSkill → RouteClientSkill
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional

from seatwatch.agents.base import BaseAgent
from seatwatch.models.events import AgentEvent
from seatwatch.models.watch import Watch
from seatwatch.skills.route_client import RouteClientSkill
from seatwatch.skills.station_data import StationDirectory
from seatwatch.skills.validation import ValidationSkill
from seatwatch.utils.watch_store import WatchStore

logger = logging.getLogger("seatwatch.agent.input")


class InputAgent(BaseAgent):
    """입력 처리 에이전트 (Stateless: 요청-응답 방식)"""

    def __init__(
        self,
        client: RouteClientSkill,
        store: WatchStore,
        stations: Optional[StationDirectory] = None,
        default_webhook: str = "",
        event_bus: Optional[asyncio.Queue] = None,  # type: ignore[type-arg]
    ) -> None:
        super().__init__("input_agent", event_bus)
        self._client = client
        self._store = store
        self._stations = stations
        self._default_webhook = default_webhook
        self._validator = ValidationSkill()

    async def setup(self) -> None:
        logger.debug("InputAgent 초기화 완료")

    async def run(self) -> None:
        """요청-응답 방식이라 루프가 없다. register()를 직접 호출한다."""
        pass

    async def teardown(self) -> None:
        logger.debug("InputAgent 정리 완료")

    def _resolve_station(self, value: object) -> str:
        text = str(value or "").strip()
        if self._stations is None or not text:
            return text
        return self._stations.resolve(text)

    async def register(
        self,
        data: dict[str, object],
        now: Optional[datetime] = None,
    ) -> Watch:
        """등록 요청 dict → 저장된 Watch

        발생 가능한 예외: ValueError (검증 실패), LookupFailure (노선 조회 실패)
        """
        data = dict(data)
        data["station_from_id"] = self._resolve_station(data.get("station_from_id"))
        data["station_to_id"] = self._resolve_station(data.get("station_to_id"))
        request = self._validator.validate_request(data)
        if not request["webhook_url"]:
            request["webhook_url"] = self._default_webhook

        details = await self._client.get_route_details(
            request["route_id"], request["station_from_id"], request["station_to_id"],
        )
        watch = self._validator.build_watch(request, details, now)
        key = self._store.put(watch)

        logger.info("감시 등록 완료: %s", watch.summary())
        await self.emit(AgentEvent.WATCH_REGISTERED, "orchestrator", {"key": key})
        return watch
