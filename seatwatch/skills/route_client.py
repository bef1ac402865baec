"""RegioJet 공개 REST API 클라이언트 스킬

로그인 불필요. 시간표/구간 검색/노선 상세/차량별 잔여석/역 목록을 조회한다.
API: brn-ybus-pubapi.sa.cz/restapi

모든 실패(네트워크, HTTP 상태, 응답 형식)는 LookupFailure로 변환된다.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, ClassVar, Optional

import aiohttp

from seatwatch.models.config import WatchdogConfig
from seatwatch.models.errors import LookupFailure
from seatwatch.models.route import RouteDetails, RouteOffer, VehicleSeats
from seatwatch.skills.parser import optional_timestamp
from seatwatch.utils.rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger("seatwatch.skill.route_client")

# 좌석 등급 코드 (차량별 잔여석 조회 시 전부 합산)
SEAT_CLASSES: tuple[str, ...] = ("C0", "C1", "C2")

# 역 목록에서 남길 역 종류
TRAIN_STATION = "TRAIN_STATION"


class RouteClientSkill:
    """RegioJet API 조회 스킬"""

    _session: ClassVar[Optional[aiohttp.ClientSession]] = None

    HEADERS: ClassVar[dict[str, str]] = {
        "User-Agent": "seatwatch/0.1 (+seat availability watchdog)",
        "Accept": "application/json",
    }

    def __init__(
        self,
        base_url: str = "https://brn-ybus-pubapi.sa.cz/restapi",
        currency: str = "CZK",
        request_timeout: float = 15.0,
        connect_timeout: float = 5.0,
        max_connections: int = 4,
        max_route_transfers: int = 0,
        rate_limiter: Optional[TokenBucketRateLimiter] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._currency = currency
        self._request_timeout = request_timeout
        self._connect_timeout = connect_timeout
        self._max_connections = max_connections
        self._max_route_transfers = max_route_transfers
        self._rate_limiter = rate_limiter or TokenBucketRateLimiter()
        self._request_count = 0

    @classmethod
    def from_config(cls, config: WatchdogConfig) -> RouteClientSkill:
        return cls(
            base_url=config.base_url,
            currency=config.currency,
            request_timeout=config.request_timeout,
            connect_timeout=config.connect_timeout,
            max_connections=config.max_connections,
            max_route_transfers=config.max_route_transfers,
            rate_limiter=TokenBucketRateLimiter(
                rate=config.requests_per_second,
                burst=config.request_burst,
            ),
        )

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def request_count(self) -> int:
        return self._request_count

    @classmethod
    async def _get_session(
        cls,
        request_timeout: float = 15.0,
        connect_timeout: float = 5.0,
        max_connections: int = 4,
    ) -> aiohttp.ClientSession:
        if cls._session is None or cls._session.closed:
            timeout = aiohttp.ClientTimeout(
                total=request_timeout,
                connect=connect_timeout,
            )
            connector = aiohttp.TCPConnector(
                limit=max_connections,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            cls._session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
                headers=cls.HEADERS,
            )
        return cls._session

    @classmethod
    async def close(cls) -> None:
        if cls._session and not cls._session.closed:
            await cls._session.close()
            cls._session = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, str]] = None,
        json_body: Optional[dict[str, Any]] = None,
        with_currency: bool = False,
    ) -> Any:
        """요청 1회 실행 → JSON. 실패 시 LookupFailure."""
        session = await self._get_session(
            self._request_timeout,
            self._connect_timeout,
            self._max_connections,
        )
        headers = {"X-Currency": self._currency} if with_currency else None
        await self._rate_limiter.acquire()
        self._request_count += 1
        url = f"{self._base_url}{path}"

        try:
            async with session.request(
                method, url, params=params, json=json_body, headers=headers,
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise LookupFailure(
                        f"{method} {path} → HTTP {resp.status}: {body[:200]}"
                    )
                return await resp.json(content_type=None)
        except LookupFailure:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise LookupFailure(f"{method} {path} 실패: {e!r}") from e

    # ── 시간표 ──

    async def fetch_timetable(self, route_id: str) -> dict[str, Any]:
        """노선 시간표 원본 JSON. 정차역이 없으면 LookupFailure."""
        data = await self._request("GET", f"/consts/timetables/{route_id}")
        if not isinstance(data, dict) or not data.get("stations"):
            raise LookupFailure(f"노선 {route_id}의 시간표가 없습니다")
        return data

    # ── 구간 검색 (Oracle 원천) ──

    async def fetch_routes(
        self,
        station_from_id: str,
        station_to_id: str,
        travel_date: date,
    ) -> list[RouteOffer]:
        """두 역 사이 해당 날짜 출발 노선 목록"""
        data = await self._request(
            "GET",
            "/routes/search/simple",
            params={
                "fromLocationId": station_from_id,
                "fromLocationType": "STATION",
                "toLocationId": station_to_id,
                "toLocationType": "STATION",
                "departureDate": travel_date.isoformat(),
            },
            with_currency=True,
        )
        if not isinstance(data, dict):
            raise LookupFailure("구간 검색 응답 형식 오류")
        try:
            return self._parse_routes(data, travel_date, self._max_route_transfers)
        except (TypeError, ValueError, AttributeError) as e:
            raise LookupFailure(f"구간 검색 응답 파싱 실패: {e}") from e

    @staticmethod
    def _parse_routes(
        data: dict[str, Any],
        travel_date: date,
        max_transfers: int,
    ) -> list[RouteOffer]:
        """검색 응답 파싱 - 버스/다른 날짜/환승 초과 노선 제외"""
        offers: list[RouteOffer] = []
        for item in data.get("routes") or []:
            vehicle_types = tuple(item.get("vehicleTypes") or ())
            if vehicle_types and vehicle_types[0] == "BUS":
                continue
            if int(item.get("transfersCount") or 0) > max_transfers:
                continue

            dep = optional_timestamp(item.get("departureTime"))
            arr = optional_timestamp(item.get("arrivalTime"))
            if dep is None or arr is None:
                logger.debug("시각 파싱 불가 노선 건너뜀: %s", item.get("id"))
                continue
            if dep.date() != travel_date:
                continue

            offers.append(RouteOffer(
                route_id=str(item.get("id", "")),
                departure_date=dep.date(),
                departure_time=dep.time().replace(second=0, microsecond=0),
                arrival_time=arr.time().replace(second=0, microsecond=0),
                price_from=float(item.get("priceFrom") or 0.0),
                price_to=float(item.get("priceTo") or 0.0),
                free_seats=int(item.get("freeSeatsCount") or 0),
                transfers_count=int(item.get("transfersCount") or 0),
                vehicle_types=vehicle_types,
            ))
        return offers

    # ── 노선 상세 ──

    async def get_route_details(
        self,
        route_id: str,
        station_from_id: str,
        station_to_id: str,
    ) -> RouteDetails:
        """노선 상세 (잔여석 수의 기준값)"""
        data = await self._request(
            "GET",
            f"/routes/{route_id}/simple",
            params={
                "fromStationId": station_from_id,
                "toStationId": station_to_id,
            },
            with_currency=True,
        )
        return self._parse_details(route_id, data)

    @staticmethod
    def _parse_details(route_id: str, data: Any) -> RouteDetails:
        if not isinstance(data, dict):
            raise LookupFailure("노선 상세 응답 형식 오류")
        sections = data.get("sections") or []
        if not sections:
            raise LookupFailure(f"노선 {route_id} 상세에 구간 정보가 없습니다")
        try:
            return RouteDetails(
                route_id=str(route_id),
                free_seats=int(data.get("freeSeatsCount") or 0),
                price_from=float(data.get("priceFrom") or 0.0),
                price_to=float(data.get("priceTo") or 0.0),
                departure_city=str(data.get("departureCityName") or ""),
                arrival_city=str(data.get("arrivalCityName") or ""),
                travel_time=str(sections[0].get("travelTime") or ""),
                departure=optional_timestamp(data.get("departureTime")),
                arrival=optional_timestamp(data.get("arrivalTime")),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise LookupFailure(f"노선 {route_id} 상세 파싱 실패: {e}") from e

    # ── 차량별 잔여석 ──

    async def get_free_seats(
        self,
        route_id: str,
        station_from_id: str,
        station_to_id: str,
    ) -> tuple[VehicleSeats, ...]:
        """좌석 등급별 조회 결과를 차량 번호 기준으로 합산"""
        try:
            section = {
                "sectionId": int(route_id),
                "fromStationId": int(station_from_id),
                "toStationId": int(station_to_id),
            }
        except ValueError as e:
            raise LookupFailure(f"숫자가 아닌 ID: {e}") from e

        counts: dict[int, int] = {}
        for seat_class in SEAT_CLASSES:
            data = await self._request(
                "POST",
                f"/routes/{route_id}/freeSeats",
                json_body={
                    "sections": [section],
                    "tariffs": ["REGULAR"],
                    "seatClass": seat_class,
                },
            )
            if not isinstance(data, list):
                message = data.get("message") if isinstance(data, dict) else None
                raise LookupFailure(f"잔여석 조회 실패: {message or '형식 오류'}")
            try:
                for sec in data:
                    for vehicle in sec.get("vehicles") or []:
                        number = int(vehicle.get("vehicleNumber") or 0)
                        seats = len(vehicle.get("freeSeats") or [])
                        counts[number] = counts.get(number, 0) + seats
            except (TypeError, ValueError, AttributeError) as e:
                raise LookupFailure(f"잔여석 응답 파싱 실패: {e}") from e

        return tuple(
            VehicleSeats(vehicle_number=n, free_seats=c)
            for n, c in sorted(counts.items())
            if c > 0
        )

    # ── 역 목록 ──

    async def fetch_stations(self) -> dict[str, str]:
        """역 ID → 표시 이름 (열차역만)"""
        data = await self._request("GET", "/consts/locations")
        if not isinstance(data, list):
            raise LookupFailure("역 목록 응답 형식 오류")
        try:
            return self._parse_stations(data)
        except (TypeError, AttributeError) as e:
            raise LookupFailure(f"역 목록 파싱 실패: {e}") from e

    @staticmethod
    def _parse_stations(countries: list[Any]) -> dict[str, str]:
        stations: dict[str, str] = {}
        for country in countries:
            for city in country.get("cities") or []:
                for station in city.get("stations") or []:
                    if TRAIN_STATION not in (station.get("stationsTypes") or []):
                        continue
                    sid = station.get("id")
                    name = station.get("fullname")
                    if sid is None or not name:
                        continue
                    stations[str(sid)] = str(name)
        logger.debug("열차역 %d개 파싱", len(stations))
        return stations

