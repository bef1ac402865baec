"""정차역 그래프 구성 스킬

노선 시간표(정차 순서 + 출발 시각)를 탐색용 Stop 시퀀스로 바꾸고
감시 출발역의 Stop을 찾는다. 부작용 없음.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from seatwatch.models.errors import LookupFailure, OriginNotFound
from seatwatch.models.route import Stop
from seatwatch.skills.parser import optional_clock

logger = logging.getLogger("seatwatch.skill.stop_graph")


@dataclass(frozen=True, slots=True)
class StopGraph:
    """정렬된 정차역 시퀀스와 출발역"""

    stops: tuple[Stop, ...]
    origin: Stop


def parse_timetable(payload: Any, route_id: str = "") -> tuple[Stop, ...]:
    """시간표 JSON → Stop 튜플 (sequence_index 오름차순)

    stationId가 없는 항목은 경고 후 건너뛴다.
    정차역이 하나도 없거나 순번이 중복되면 LookupFailure.
    """
    entries = payload.get("stations") if isinstance(payload, dict) else None
    if not entries:
        raise LookupFailure(f"노선 {route_id}의 시간표가 비어 있습니다")

    stops: list[Stop] = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict) or entry.get("stationId") is None:
            logger.warning("노선 %s 시간표 %d번째 항목에 역 ID가 없어 건너뜀", route_id, position)
            continue
        raw_index = entry.get("index", position)
        try:
            index = int(raw_index)
        except (TypeError, ValueError):
            logger.warning("노선 %s 정차 순번 오류 (%r) - 건너뜀", route_id, raw_index)
            continue
        stops.append(Stop(
            station_id=str(entry["stationId"]),
            sequence_index=index,
            scheduled_departure=optional_clock(entry.get("departure")),
        ))

    return _ordered(stops, route_id)


def _ordered(stops: Iterable[Stop], route_id: str) -> tuple[Stop, ...]:
    ordered = tuple(sorted(stops, key=lambda s: s.sequence_index))
    if not ordered:
        raise LookupFailure(f"노선 {route_id}에 유효한 정차역이 없습니다")
    for prev, nxt in zip(ordered, ordered[1:]):
        if prev.sequence_index == nxt.sequence_index:
            raise LookupFailure(
                f"노선 {route_id} 정차 순번 중복: {prev.sequence_index}"
            )
    return ordered


def build_stop_graph(
    stops: Iterable[Stop],
    origin_station_id: str,
    route_id: str = "",
) -> StopGraph:
    """시간표 순서의 Stop 목록 + 출발역 ID → StopGraph

    출발역은 시퀀스에서 station_id가 일치하는 첫 번째 Stop이다.
    일치하는 Stop이 없으면 OriginNotFound.
    """
    ordered = _ordered(stops, route_id)
    for stop in ordered:
        if stop.station_id == origin_station_id:
            return StopGraph(stops=ordered, origin=stop)
    raise OriginNotFound(origin_station_id, route_id)
