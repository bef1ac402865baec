"""감시 평가 스킬 (감시 1건 = 독립 작업 단위)

  1. 감시 노선의 직통 좌석 확인 (노선 상세 freeSeatsCount)
  2. 좌석 있음 → direct 보고 (차량별 잔여석 포함)
  3. 좌석 없음 → 시간표 → 정차역 그래프 → 여정 탐색 → 표시 변환
     → alternatives 보고 (여정이 없으면 none)

직통 알림과 대체 여정 알림은 같은 스캔에서 동시에 나가지 않는다.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Mapping

from seatwatch.models.errors import LookupFailure
from seatwatch.models.itinerary import ItineraryView
from seatwatch.models.watch import Watch, WatchReport
from seatwatch.skills.formatter import ItineraryFormatterSkill
from seatwatch.skills.itinerary_search import ItineraryDiscoverySkill
from seatwatch.skills.route_client import RouteClientSkill
from seatwatch.skills.segment_oracle import SegmentOracleSkill
from seatwatch.skills.station_data import StationDirectory
from seatwatch.skills.stop_graph import build_stop_graph, parse_timetable

logger = logging.getLogger("seatwatch.skill.watch_check")


class WatchCheckSkill:
    """감시 1건 평가"""

    def __init__(
        self,
        client: RouteClientSkill,
        station_names: Mapping[str, str],
        max_parallel_probes: int = 1,
    ) -> None:
        self._client = client
        self._oracle = SegmentOracleSkill(client)
        self._engine = ItineraryDiscoverySkill(
            self._oracle, max_parallel_probes=max_parallel_probes,
        )
        self._stations = station_names

    @property
    def stations(self) -> Mapping[str, str]:
        return self._stations

    @property
    def probe_count(self) -> int:
        """누적 후보 구간 조회 수"""
        return self._oracle.probe_count

    async def evaluate(self, watch: Watch) -> WatchReport:
        """직통 확인 → (필요 시) 대체 여정 탐색.

        직통 상세 조회 실패(LookupFailure)와 출발역 누락(OriginNotFound)은
        호출자(스캐너)에게 올라간다.
        """
        details = await self._client.get_route_details(
            watch.route_id, watch.station_from_id, watch.station_to_id,
        )

        if details.has_seats:
            try:
                vehicles = await self._client.get_free_seats(
                    watch.route_id, watch.station_from_id, watch.station_to_id,
                )
            except LookupFailure as e:
                logger.warning("차량별 잔여석 조회 실패 - 요약만 발송: %s", e)
                vehicles = ()
            logger.info(
                "%s 직통 좌석 %d석", watch.summary(), details.free_seats,
            )
            return WatchReport(
                watch=watch, kind="direct", details=details, vehicles=vehicles,
            )

        travel_date = details.departure_date
        if travel_date is None:
            logger.warning("%s 출발 날짜를 알 수 없어 대체 여정 탐색 생략", watch.summary())
            return WatchReport(watch=watch, kind="none", details=details)

        views = await self.find_alternatives(
            watch.route_id, watch.station_from_id, watch.station_to_id, travel_date,
        )
        if not views:
            logger.info("%s 직통 매진, 대체 여정 없음", watch.summary())
            return WatchReport(watch=watch, kind="none", details=details)

        logger.info("%s 직통 매진, 대체 여정 %d개", watch.summary(), len(views))
        return WatchReport(
            watch=watch,
            kind="alternatives",
            details=details,
            itineraries=tuple(views),
        )

    async def find_alternatives(
        self,
        route_id: str,
        station_from_id: str,
        station_to_id: str,
        travel_date: date,
    ) -> list[ItineraryView]:
        """노선 시간표 기반 대체 여정 (표시용, 구간 수 오름차순)"""
        timetable = await self._client.fetch_timetable(route_id)
        stops = parse_timetable(timetable, route_id)
        graph = build_stop_graph(stops, station_from_id, route_id)
        itineraries = await self._engine.discover(
            graph.stops, graph.origin, station_to_id, travel_date,
        )
        if not itineraries:
            return []
        formatter = await self._formatter()
        return formatter.format_itineraries(itineraries, graph.origin)

    async def _formatter(self) -> ItineraryFormatterSkill:
        """역 목록이 비어 있으면 다시 받아 본다. 그래도 없으면 역 ID로 표시."""
        if not self._stations:
            try:
                names = await self._client.fetch_stations()
            except LookupFailure as e:
                logger.warning("역 목록 재로드 실패 - 역 ID로 표시: %s", e)
            else:
                self._stations = StationDirectory(names)
                logger.info("역 목록 재로드: %d개", len(self._stations))
        return ItineraryFormatterSkill(self._stations, show_ids=not self._stations)
