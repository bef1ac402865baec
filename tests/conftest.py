"""pytest 공통 픽스처

모든 테스트에서 공유하는 샘플 노선/감시 데이터와 Fake 업스트림을 제공한다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytest

from seatwatch.models.config import WatchdogConfig
from seatwatch.models.errors import LookupFailure
from seatwatch.models.route import RouteDetails, RouteOffer, Stop
from seatwatch.models.watch import Watch

CET = timezone(timedelta(hours=1))
TRAVEL_DATE = date(2026, 11, 2)


@dataclass(frozen=True)
class Row:
    """Fake 구간 검색 결과 한 줄"""

    route_id: str
    departure: time
    arrival: time
    seats: int
    price: float = 100.0


class FakeRouteSource:
    """RouteClientSkill 대역: (출발, 도착) → 검색 결과 목록"""

    def __init__(
        self,
        rows: dict[tuple[str, str], list[Row]],
        failures: frozenset[tuple[str, str]] = frozenset(),
        detail_failures: frozenset[str] = frozenset(),
    ) -> None:
        self._rows = rows
        self._failures = failures
        self._detail_failures = detail_failures
        self.search_calls: list[tuple[str, str]] = []
        self.detail_calls: list[tuple[str, str, str]] = []

    def _find(self, route_id: str, f: str, t: str) -> Row:
        for row in self._rows.get((f, t), []):
            if row.route_id == route_id:
                return row
        raise LookupFailure(f"unknown route {route_id}")

    async def fetch_routes(
        self, station_from_id: str, station_to_id: str, travel_date: date,
    ) -> list[RouteOffer]:
        key = (station_from_id, station_to_id)
        self.search_calls.append(key)
        if key in self._failures:
            raise LookupFailure(f"transient failure {key}")
        return [
            RouteOffer(
                route_id=r.route_id,
                departure_date=travel_date,
                departure_time=r.departure,
                arrival_time=r.arrival,
                price_from=r.price,
                price_to=r.price,
                free_seats=r.seats,
            )
            for r in self._rows.get(key, [])
        ]

    async def get_route_details(
        self, route_id: str, station_from_id: str, station_to_id: str,
    ) -> RouteDetails:
        self.detail_calls.append((route_id, station_from_id, station_to_id))
        if route_id in self._detail_failures:
            raise LookupFailure(f"detail failure {route_id}")
        row = self._find(route_id, station_from_id, station_to_id)
        return RouteDetails(
            route_id=route_id,
            free_seats=row.seats,
            price_from=row.price,
            price_to=row.price + 50,
            departure_city=station_from_id,
            arrival_city=station_to_id,
            travel_time="00:30 h",
            departure=datetime.combine(TRAVEL_DATE, row.departure, CET),
            arrival=datetime.combine(TRAVEL_DATE, row.arrival, CET),
        )


def make_details(
    free_seats: int = 0,
    route_id: str = "5400543021",
    departure: Optional[datetime] = None,
) -> RouteDetails:
    departure = departure or datetime.combine(TRAVEL_DATE, time(10, 0), CET)
    return RouteDetails(
        route_id=route_id,
        free_seats=free_seats,
        price_from=199.0,
        price_to=249.0,
        departure_city="Praha",
        arrival_city="Ostrava",
        travel_time="03:29 h",
        departure=departure,
        arrival=departure + timedelta(hours=3, minutes=29),
    )


@pytest.fixture
def stops_abc() -> tuple[Stop, ...]:
    """A(10:00) → B(10:30) → C(11:00)"""
    return (
        Stop("A", 0, time(10, 0)),
        Stop("B", 1, time(10, 30)),
        Stop("C", 2, time(11, 0)),
    )


@pytest.fixture
def station_names() -> dict[str, str]:
    return {"A": "Praha hl.n.", "B": "Pardubice hl.n.", "C": "Olomouc hl.n."}


@pytest.fixture
def abc_rows() -> dict[tuple[str, str], list[Row]]:
    """A→C 매진, A→B 5석(10:00), B→C 3석(10:30)"""
    return {
        ("A", "C"): [Row("R-AC", time(10, 0), time(11, 5), 0, 300.0)],
        ("A", "B"): [Row("R-AB", time(10, 0), time(10, 28), 5, 120.0)],
        ("B", "C"): [Row("R-BC", time(10, 30), time(11, 5), 3, 90.5)],
    }


@pytest.fixture
def sample_watch() -> Watch:
    return Watch(
        watch_id="0f1e2d3c4b5a69788796a5b4c3d2e1f0",
        station_from_id="372825000",
        station_to_id="372842002",
        route_id="5400543021",
        webhook_url="https://discord.example/api/webhooks/1/abc",
        expires_at=datetime(2026, 11, 2, 9, 0, tzinfo=timezone.utc),
        created_at=datetime(2026, 11, 1, 9, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def fast_config() -> WatchdogConfig:
    """테스트용 빠른 설정 (주기 0.05초, 짧은 쿨다운, 로그 채널)"""
    return WatchdogConfig(
        scan_interval=0.05,
        notification_cooldown=0.1,
        notification_methods=["log"],
    )


@pytest.fixture
def restore_root_logger():
    """setup_logging()이 바꾼 루트 로거를 테스트 후 원래대로 되돌린다"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
