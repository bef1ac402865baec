"""데이터 모델: 구간(Leg), 여정(Itinerary), 표시용 레코드

Leg는 좌석이 확인된 구간만 표현한다. 후보 구간은 (출발 Stop, 도착 Stop, 날짜)
인자로만 존재하며 Oracle 확인을 통과해야 Leg가 된다.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from seatwatch.models.route import Stop


@dataclass(frozen=True, slots=True)
class Leg:
    """좌석이 확인된 직통 구간"""

    from_stop: Stop
    to_stop: Stop
    travel_date: date
    route_id: str
    free_seats: int
    price: float
    departure_time: Optional[time] = None
    arrival_time: Optional[time] = None

    def __post_init__(self) -> None:
        if self.from_stop.sequence_index >= self.to_stop.sequence_index:
            raise ValueError("구간은 노선 진행 방향으로만 구성할 수 있습니다")
        if self.free_seats <= 0:
            raise ValueError("좌석이 없는 구간은 Leg가 될 수 없습니다")
        if not math.isfinite(self.price):
            raise ValueError(f"잘못된 요금: {self.price}")

    def summary(self) -> str:
        return (
            f"{self.from_stop.station_id}→{self.to_stop.station_id} "
            f"{self.free_seats}석 {self.price:.2f}"
        )


@dataclass(frozen=True, slots=True)
class Itinerary:
    """출발역에서 도착역까지 이어지는 구간 묶음 (단순 경로)"""

    legs: tuple[Leg, ...]

    def __post_init__(self) -> None:
        if not self.legs:
            raise ValueError("여정에는 최소 한 개의 구간이 필요합니다")
        for prev, nxt in zip(self.legs, self.legs[1:]):
            if prev.to_stop != nxt.from_stop:
                raise ValueError(
                    f"구간이 이어지지 않습니다: {prev.summary()} / {nxt.summary()}"
                )
        stations = [self.legs[0].from_stop.station_id]
        stations.extend(leg.to_stop.station_id for leg in self.legs)
        if len(set(stations)) != len(stations):
            raise ValueError("같은 역을 두 번 지나는 여정입니다")

    @property
    def origin(self) -> Stop:
        return self.legs[0].from_stop

    @property
    def destination(self) -> Stop:
        return self.legs[-1].to_stop

    @property
    def leg_count(self) -> int:
        return len(self.legs)

    @property
    def total_price(self) -> float:
        return math.fsum(leg.price for leg in self.legs)

    @property
    def station_ids(self) -> tuple[str, ...]:
        return (self.origin.station_id,) + tuple(
            leg.to_stop.station_id for leg in self.legs
        )

    def summary(self) -> str:
        return " → ".join(self.station_ids) + f" ({self.total_price:.2f})"


@dataclass(frozen=True, slots=True)
class LegView:
    """알림/출력용 구간 레코드"""

    from_name: str
    to_name: str
    departure: str
    arrival: str
    free_seats: int
    price: float


@dataclass(frozen=True, slots=True)
class ItineraryView:
    """알림/출력용 여정 레코드"""

    legs: tuple[LegView, ...]
    total_price: float
    travel_date: date
    skipped_legs: int = 0

    @property
    def is_complete(self) -> bool:
        return self.skipped_legs == 0

    @property
    def from_name(self) -> str:
        return self.legs[0].from_name if self.legs else ""

    @property
    def to_name(self) -> str:
        return self.legs[-1].to_name if self.legs else ""

    def display(self, currency: str = "CZK") -> str:
        lines = [
            f"{self.from_name} → {self.to_name} "
            f"[{self.travel_date:%d.%m.%Y}] 합계 {self.total_price:.2f} {currency}"
        ]
        for leg in self.legs:
            lines.append(
                f"  {leg.from_name} → {leg.to_name} "
                f"{leg.departure}→{leg.arrival} "
                f"({leg.free_seats}석, {leg.price:.2f} {currency})"
            )
        return "\n".join(lines)
