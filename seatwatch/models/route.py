"""데이터 모델: 정차역, 가용성 조회 결과, 노선 상세

모든 모델은 frozen=True + slots=True로 불변성과 메모리 효율을 보장한다.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional


@dataclass(frozen=True, slots=True)
class Stop:
    """노선 시간표상의 정차역 하나"""

    station_id: str
    sequence_index: int
    scheduled_departure: Optional[time] = None

    def __post_init__(self) -> None:
        if not self.station_id:
            raise ValueError("station_id가 비어 있습니다")
        if self.sequence_index < 0:
            raise ValueError("sequence_index는 0 이상이어야 합니다")

    def display(self) -> str:
        dep = (
            f"{self.scheduled_departure:%H:%M}"
            if self.scheduled_departure else "--:--"
        )
        return f"#{self.sequence_index} {self.station_id} ({dep})"


@dataclass(frozen=True, slots=True)
class RouteOffer:
    """두 역 사이 가용성 검색 결과 한 줄"""

    route_id: str
    departure_date: date
    departure_time: time
    arrival_time: time
    price_from: float
    price_to: float
    free_seats: int
    transfers_count: int = 0
    vehicle_types: tuple[str, ...] = ()

    @property
    def has_seats(self) -> bool:
        return self.free_seats > 0

    def display(self) -> str:
        return (
            f"#{self.route_id} {self.departure_date:%d.%m.%Y} "
            f"{self.departure_time:%H:%M}→{self.arrival_time:%H:%M} "
            f"({self.free_seats}석, {self.price_from:.2f}~{self.price_to:.2f})"
        )


@dataclass(frozen=True, slots=True)
class RouteDetails:
    """특정 노선의 두 역 사이 상세 정보 (좌석 수의 기준값)"""

    route_id: str
    free_seats: int
    price_from: float
    price_to: float
    departure_city: str
    arrival_city: str
    travel_time: str
    departure: Optional[datetime]
    arrival: Optional[datetime]

    @property
    def has_seats(self) -> bool:
        return self.free_seats > 0

    @property
    def departure_date(self) -> Optional[date]:
        return self.departure.date() if self.departure else None


@dataclass(frozen=True, slots=True)
class VehicleSeats:
    """차량(객차) 단위 잔여석"""

    vehicle_number: int
    free_seats: int
