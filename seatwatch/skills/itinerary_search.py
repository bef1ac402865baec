"""여정 탐색 스킬 (Itinerary Discovery Engine)

노선의 정차역 시퀀스에서 출발역 → 도착역까지 갈 수 있는 모든 단순 경로를
찾는다. 각 구간은 감시 날짜에 독립적으로 빈 좌석이 있어야 한다.

알고리즘: 제약 조건 DFS (전수 탐색)
  - 현재 역보다 뒤에 있고 아직 방문하지 않은 모든 역이 다음 구간 후보
    (바로 다음 역만 보지 않으므로 매진 구간을 건너뛰는 긴 구간도 찾는다)
  - 후보마다 Oracle 조회, 좌석 있는 구간만 경로에 추가 후 재귀
  - 분기 상태(경로, 방문 집합)는 불변 스냅샷으로 넘긴다 → 되돌리기 불필요
  - 결과: 구간 수 오름차순, 같은 구간 수는 발견 순서 유지

오류 정책: 후보 구간 조회 실패 = 그 구간만 불가 처리, 탐색은 계속.
결과 없음은 정상 결과(빈 리스트)다.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from time import monotonic
from typing import Iterable, Optional, Protocol

from seatwatch.models.errors import OriginNotFound
from seatwatch.models.itinerary import Itinerary, Leg
from seatwatch.models.route import Stop

logger = logging.getLogger("seatwatch.skill.itinerary_search")


class LegOracle(Protocol):
    async def check_leg(
        self, from_stop: Stop, to_stop: Stop, travel_date: date,
    ) -> Optional[Leg]: ...


@dataclass(frozen=True, slots=True)
class _Branch:
    """탐색 분기 하나의 불변 스냅샷"""

    at: Stop
    legs: tuple[Leg, ...]
    visited: frozenset[str]


@dataclass(slots=True)
class _SearchRun:
    """discover() 1회 호출 범위의 상태"""

    stops: tuple[Stop, ...]
    destination_id: str
    limit_index: int
    travel_date: date
    semaphore: asyncio.Semaphore
    probes: dict[tuple[int, int], Optional[Leg]] = field(default_factory=dict)
    failures: int = 0
    found: list[Itinerary] = field(default_factory=list)


class ItineraryDiscoverySkill:
    """대체 여정 전수 탐색"""

    __slots__ = ("_oracle", "_max_parallel_probes")

    def __init__(self, oracle: LegOracle, max_parallel_probes: int = 1) -> None:
        if max_parallel_probes < 1:
            raise ValueError("max_parallel_probes는 1 이상이어야 합니다")
        self._oracle = oracle
        self._max_parallel_probes = max_parallel_probes

    async def discover(
        self,
        stop_sequence: Iterable[Stop],
        origin_stop: Optional[Stop],
        destination_station_id: str,
        travel_date: date,
    ) -> list[Itinerary]:
        """출발역 → 도착역 여정 목록 (구간 수 오름차순)"""
        if origin_stop is None:
            raise OriginNotFound("<unresolved>")

        stops = tuple(sorted(stop_sequence, key=lambda s: s.sequence_index))
        if origin_stop.station_id == destination_station_id:
            logger.info("출발역과 도착역이 같아 탐색하지 않음: %s", destination_station_id)
            return []

        # 도착역 뒤의 역에서는 되돌아올 수 없으므로 조회 대상에서 제외
        reachable = [
            s.sequence_index for s in stops
            if s.station_id == destination_station_id
            and s.sequence_index > origin_stop.sequence_index
        ]
        if not reachable:
            logger.info(
                "도착역 %s이(가) 출발역 %s 이후 정차역에 없음",
                destination_station_id, origin_stop.station_id,
            )
            return []

        run = _SearchRun(
            stops=stops,
            destination_id=destination_station_id,
            limit_index=max(reachable),
            travel_date=travel_date,
            semaphore=asyncio.Semaphore(self._max_parallel_probes),
        )
        t0 = monotonic()
        await self._explore(run, _Branch(
            at=origin_stop,
            legs=(),
            visited=frozenset({origin_stop.station_id}),
        ))

        itineraries = sorted(run.found, key=lambda it: it.leg_count)
        logger.info(
            "여정 탐색 완료: %s→%s %s - %d개 (구간 조회 %d회, 실패 %d회, %.0fms)",
            origin_stop.station_id, destination_station_id, travel_date,
            len(itineraries), len(run.probes), run.failures,
            (monotonic() - t0) * 1000,
        )
        return itineraries

    async def _explore(self, run: _SearchRun, branch: _Branch) -> None:
        if branch.at.station_id == run.destination_id:
            if branch.legs:
                run.found.append(Itinerary(legs=branch.legs))
            return

        candidates = [
            s for s in run.stops
            if branch.at.sequence_index < s.sequence_index <= run.limit_index
            and s.station_id not in branch.visited
        ]
        if not candidates:
            return

        # 같은 깊이의 후보는 서로 독립적인 읽기 조회 → 동시 실행 가능 (gather는 순서 보존)
        legs = await asyncio.gather(
            *(self._probe(run, branch.at, c) for c in candidates)
        )
        for candidate, leg in zip(candidates, legs):
            if leg is None:
                continue
            await self._explore(run, _Branch(
                at=candidate,
                legs=branch.legs + (leg,),
                visited=branch.visited | {candidate.station_id},
            ))

    async def _probe(
        self,
        run: _SearchRun,
        from_stop: Stop,
        to_stop: Stop,
    ) -> Optional[Leg]:
        key = (from_stop.sequence_index, to_stop.sequence_index)
        if key in run.probes:
            return run.probes[key]

        async with run.semaphore:
            try:
                leg = await self._oracle.check_leg(from_stop, to_stop, run.travel_date)
            except Exception as e:
                run.failures += 1
                logger.warning(
                    "구간 조회 실패 %s→%s - 불가 처리: %s",
                    from_stop.station_id, to_stop.station_id, e,
                )
                leg = None

        run.probes[key] = leg
        return leg
