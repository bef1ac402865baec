"""데이터 모델: 감시 요청(Watch)과 감시 평가 결과(WatchReport)"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from seatwatch.models.itinerary import ItineraryView
from seatwatch.models.route import RouteDetails, VehicleSeats


def _parse_instant(value: Any) -> datetime:
    if not isinstance(value, str) or not value:
        raise ValueError(f"시각 형식 오류: {value!r}")
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True, slots=True)
class Watch:
    """불변 감시 요청 객체 (저장소 소유, 스캐너는 읽기만 한다)"""

    watch_id: str
    station_from_id: str
    station_to_id: str
    route_id: str
    webhook_url: str
    expires_at: datetime
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        for name in ("watch_id", "station_from_id", "station_to_id", "route_id"):
            if not getattr(self, name):
                raise ValueError(f"{name}이(가) 비어 있습니다")
        if self.station_from_id == self.station_to_id:
            raise ValueError("출발역과 도착역이 같습니다")
        if self.expires_at.tzinfo is None:
            raise ValueError("expires_at에는 시간대 정보가 필요합니다")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def summary(self) -> str:
        return (
            f"[{self.watch_id[:8]}] 노선 {self.route_id} "
            f"{self.station_from_id}→{self.station_to_id} "
            f"(만료 {self.expires_at:%Y-%m-%d %H:%M})"
        )

    def to_record(self) -> dict[str, str]:
        record = {
            "watchId": self.watch_id,
            "stationFromID": self.station_from_id,
            "stationToID": self.station_to_id,
            "routeID": self.route_id,
            "webhookURL": self.webhook_url,
            "expiresAt": self.expires_at.isoformat(),
        }
        if self.created_at is not None:
            record["createdAt"] = self.created_at.isoformat()
        return record

    @classmethod
    def from_record(cls, record: Any) -> Watch:
        """저장소 레코드 → Watch. 손상된 레코드는 ValueError."""
        if not isinstance(record, dict):
            raise ValueError(f"레코드 형식 오류: {type(record).__name__}")
        try:
            created = record.get("createdAt")
            return cls(
                watch_id=str(record["watchId"]),
                station_from_id=str(record["stationFromID"]),
                station_to_id=str(record["stationToID"]),
                route_id=str(record["routeID"]),
                webhook_url=str(record.get("webhookURL", "")),
                expires_at=_parse_instant(record["expiresAt"]),
                created_at=_parse_instant(created) if created else None,
            )
        except KeyError as e:
            raise ValueError(f"필수 필드 누락: {e.args[0]}") from e


ReportKind = Literal["direct", "alternatives", "none"]


@dataclass(frozen=True, slots=True)
class WatchReport:
    """스캔 1회에서 감시 1건을 평가한 결과"""

    watch: Watch
    kind: ReportKind
    details: Optional[RouteDetails] = None
    vehicles: tuple[VehicleSeats, ...] = ()
    itineraries: tuple[ItineraryView, ...] = ()

    @property
    def should_notify(self) -> bool:
        if self.kind == "direct":
            return True
        return self.kind == "alternatives" and bool(self.itineraries)
