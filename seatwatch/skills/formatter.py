"""여정 표시 변환 스킬

Itinerary → ItineraryView. 역 이름이 없거나 시각이 없는 구간은
경고 로그 후 건너뛰고 나머지 구간은 그대로 출력한다.
역 목록 자체를 받지 못했을 때는 show_ids=True로 역 ID를 이름 대신 쓴다.

첫 구간의 출발 시각은 Leg가 보고한 값이 아니라 출발역 시간표 시각을 쓴다.
사용자가 요청하지 않은 환승 기준 시각을 보여주지 않기 위함이다.
"""

from __future__ import annotations

import logging
from datetime import time
from typing import Iterable, Mapping, Optional

from seatwatch.models.errors import RenderSkip
from seatwatch.models.itinerary import Itinerary, ItineraryView, Leg, LegView
from seatwatch.models.route import Stop

logger = logging.getLogger("seatwatch.skill.formatter")


def _name(station_names: Mapping[str, str], station_id: str, show_ids: bool) -> str:
    name = station_names.get(station_id)
    if not name and show_ids:
        return station_id
    if not name:
        raise RenderSkip(f"역 이름 없음: {station_id}")
    return name


def _clock(value: Optional[time], what: str) -> str:
    if value is None:
        raise RenderSkip(f"{what} 시각 없음")
    return f"{value:%H:%M}"


class ItineraryFormatterSkill:
    """여정 표시 변환"""

    __slots__ = ("_station_names", "_show_ids")

    def __init__(self, station_names: Mapping[str, str], show_ids: bool = False) -> None:
        self._station_names = station_names
        self._show_ids = show_ids

    def format_leg(self, leg: Leg, departure_override: Optional[time] = None) -> LegView:
        """구간 1개 변환. 실패 시 RenderSkip."""
        departure = departure_override if departure_override is not None else leg.departure_time
        return LegView(
            from_name=_name(self._station_names, leg.from_stop.station_id, self._show_ids),
            to_name=_name(self._station_names, leg.to_stop.station_id, self._show_ids),
            departure=_clock(departure, "출발"),
            arrival=_clock(leg.arrival_time, "도착"),
            free_seats=leg.free_seats,
            price=leg.price,
        )

    def format_itinerary(
        self,
        itinerary: Itinerary,
        origin_stop: Optional[Stop] = None,
    ) -> ItineraryView:
        origin = origin_stop or itinerary.origin
        views: list[LegView] = []
        skipped = 0
        for i, leg in enumerate(itinerary.legs):
            override = origin.scheduled_departure if i == 0 else None
            try:
                views.append(self.format_leg(leg, override))
            except RenderSkip as e:
                skipped += 1
                logger.warning("구간 표시 생략 (%s): %s", leg.summary(), e)

        return ItineraryView(
            legs=tuple(views),
            total_price=itinerary.total_price,
            travel_date=itinerary.legs[0].travel_date,
            skipped_legs=skipped,
        )

    def format_itineraries(
        self,
        itineraries: Iterable[Itinerary],
        origin_stop: Optional[Stop] = None,
    ) -> list[ItineraryView]:
        """여러 여정 변환. 모든 구간이 생략된 여정은 결과에서 뺀다."""
        views: list[ItineraryView] = []
        for itinerary in itineraries:
            view = self.format_itinerary(itinerary, origin_stop)
            if not view.legs:
                logger.warning("표시할 구간이 없는 여정 제외: %s", itinerary.summary())
                continue
            views.append(view)
        return views
