"""입력 검증 스킬

감시 등록 입력을 비즈니스 규칙에 따라 검증하고 Watch를 생성한다.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

from seatwatch.models.route import RouteDetails
from seatwatch.models.watch import Watch


class ValidationSkill:
    """입력 검증 스킬"""

    ALLOWED_WEBHOOK_SCHEMES = ("https", "http")

    def validate_request(self, data: dict[str, Any]) -> dict[str, str]:
        """필수 필드/형식 검증 → 정규화된 dict. 실패 시 ValueError."""
        station_from = str(data.get("station_from_id") or "").strip()
        station_to = str(data.get("station_to_id") or "").strip()
        route_id = str(data.get("route_id") or "").strip()
        webhook = str(data.get("webhook_url") or "").strip()

        # 필수 필드 체크
        if not station_from:
            raise ValueError("출발역이 입력되지 않았습니다")
        if not station_to:
            raise ValueError("도착역이 입력되지 않았습니다")
        if not route_id:
            raise ValueError("노선 ID가 입력되지 않았습니다")

        # 업스트림 ID는 모두 숫자
        for label, value in (
            ("출발역", station_from), ("도착역", station_to), ("노선", route_id),
        ):
            if not value.isdigit():
                raise ValueError(f"{label} ID는 숫자여야 합니다: '{value}'")

        if station_from == station_to:
            raise ValueError("출발역과 도착역이 같습니다")

        if webhook:
            self.validate_webhook(webhook)

        return {
            "station_from_id": station_from,
            "station_to_id": station_to,
            "route_id": route_id,
            "webhook_url": webhook,
        }

    def validate_webhook(self, url: str) -> None:
        parsed = urlparse(url)
        if parsed.scheme not in self.ALLOWED_WEBHOOK_SCHEMES or not parsed.netloc:
            raise ValueError(f"webhook URL 형식 오류: '{url}'")

    @staticmethod
    def validate_departure(
        details: RouteDetails,
        now: Optional[datetime] = None,
    ) -> datetime:
        """감시 만료 시각 (= 노선 출발 시각, UTC). 이미 출발했으면 ValueError."""
        if details.departure is None:
            raise ValueError(f"노선 {details.route_id}의 출발 시각을 알 수 없습니다")
        departure = details.departure
        if departure.tzinfo is None:
            departure = departure.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        if departure <= now:
            raise ValueError(
                f"이미 출발한 노선입니다 ({departure:%Y-%m-%d %H:%M})"
            )
        return departure.astimezone(timezone.utc)

    def build_watch(
        self,
        request: dict[str, str],
        details: RouteDetails,
        now: Optional[datetime] = None,
    ) -> Watch:
        """검증된 입력 + 노선 상세 → 불변 Watch"""
        now = now or datetime.now(timezone.utc)
        expires_at = self.validate_departure(details, now)
        return Watch(
            watch_id=uuid.uuid4().hex,
            station_from_id=request["station_from_id"],
            station_to_id=request["station_to_id"],
            route_id=request["route_id"],
            webhook_url=request["webhook_url"],
            expires_at=expires_at,
            created_at=now,
        )
