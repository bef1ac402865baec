"""구간 가용성 Oracle 스킬

두 정차역과 날짜가 주어지면 해당 구간을 직통으로 갈 수 있는지 확인한다.
  1. 구간 검색 결과 중 출발 시각이 출발역 시간표 시각과 같은 노선만 인정
     (같은 두 역 사이의 다른 열차를 잡지 않기 위함)
  2. 노선 상세의 freeSeatsCount가 기준값, 0보다 커야 Leg 생성
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Protocol

from seatwatch.models.errors import LookupFailure
from seatwatch.models.itinerary import Leg
from seatwatch.models.route import RouteDetails, RouteOffer, Stop
from seatwatch.skills.parser import same_minute

logger = logging.getLogger("seatwatch.skill.segment_oracle")


class RouteSource(Protocol):
    """Oracle이 의존하는 업스트림 조회 인터페이스 (RouteClientSkill)"""

    async def fetch_routes(
        self, station_from_id: str, station_to_id: str, travel_date: date,
    ) -> list[RouteOffer]: ...

    async def get_route_details(
        self, route_id: str, station_from_id: str, station_to_id: str,
    ) -> RouteDetails: ...


class SegmentOracleSkill:
    """후보 구간 → Leg | None"""

    __slots__ = ("_source", "_probe_count")

    def __init__(self, source: RouteSource) -> None:
        self._source = source
        self._probe_count = 0

    @property
    def probe_count(self) -> int:
        return self._probe_count

    async def check_leg(
        self,
        from_stop: Stop,
        to_stop: Stop,
        travel_date: date,
    ) -> Optional[Leg]:
        """좌석 있는 구간이면 Leg, 아니면 None.

        구간 검색 자체가 실패하면 LookupFailure를 그대로 올린다.
        노선 상세 실패는 해당 노선만 건너뛴다.
        """
        self._probe_count += 1
        if from_stop.scheduled_departure is None:
            logger.debug("출발 시각 없는 정차역에서는 구간 불가: %s", from_stop.display())
            return None

        offers = await self._source.fetch_routes(
            from_stop.station_id, to_stop.station_id, travel_date,
        )
        for offer in offers:
            if not same_minute(offer.departure_time, from_stop.scheduled_departure):
                logger.debug(
                    "출발 시각 불일치: %s != %s (%s→%s)",
                    f"{offer.departure_time:%H:%M}",
                    f"{from_stop.scheduled_departure:%H:%M}",
                    from_stop.station_id, to_stop.station_id,
                )
                continue

            try:
                details = await self._source.get_route_details(
                    offer.route_id, from_stop.station_id, to_stop.station_id,
                )
            except LookupFailure as e:
                logger.warning("노선 %s 상세 조회 실패: %s", offer.route_id, e)
                continue

            if details.free_seats > 0:
                return Leg(
                    from_stop=from_stop,
                    to_stop=to_stop,
                    travel_date=travel_date,
                    route_id=offer.route_id,
                    free_seats=details.free_seats,
                    price=details.price_from,
                    departure_time=details.departure.time() if details.departure else None,
                    arrival_time=details.arrival.time() if details.arrival else None,
                )

        logger.debug(
            "빈 좌석 없음: %s→%s (%s)",
            from_stop.station_id, to_stop.station_id, travel_date,
        )
        return None
