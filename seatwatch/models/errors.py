"""도메인 예외 계층

검색 결과 없음은 예외가 아니라 빈 리스트로 표현한다.
"""

from __future__ import annotations


class SeatwatchError(Exception):
    """seatwatch 최상위 예외"""


class LookupFailure(SeatwatchError):
    """시간표/가용성/상세 조회 실패 (네트워크, HTTP 상태, 응답 형식)"""


class OriginNotFound(SeatwatchError):
    """감시 대상 출발역이 노선 시간표에 없음"""

    def __init__(self, station_id: str, route_id: str = "") -> None:
        self.station_id = station_id
        self.route_id = route_id
        where = f" (노선 {route_id})" if route_id else ""
        super().__init__(f"출발역 {station_id}이(가) 시간표에 없습니다{where}")


class RenderSkip(SeatwatchError):
    """구간 하나를 표시용으로 변환하지 못함 (해당 구간만 생략)"""
