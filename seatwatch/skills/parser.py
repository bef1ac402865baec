"""시각/날짜 파싱 스킬

업스트림 API는 형식이 제각각이다:
  - 시간표 출발 시각: "HH:MM:SS.fff"
  - 검색/상세 응답: RFC3339 ("2024-05-01T10:00:00.000+02:00")
  - CLI 입력: "YYYY-MM-DD" 또는 "DD.MM.YYYY"
여기서만 파싱하고 나머지 코드는 date/time/datetime 객체만 다룬다.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional


class ParserSkill:
    """입력 파싱 스킬"""

    @staticmethod
    def parse_clock(s: str) -> time:
        """"HH:MM", "HH:MM:SS", "HH:MM:SS.fff" → time (초 이하 버림)"""
        s = s.strip()
        parts = s.split(":")
        if len(parts) < 2 or not parts[0].isdigit() or not parts[1][:2].isdigit():
            raise ValueError(f"시각 형식 오류: '{s}' (HH:MM)")
        return time(int(parts[0]), int(parts[1][:2]))

    @staticmethod
    def parse_timestamp(s: str) -> datetime:
        """RFC3339 → 현지 오프셋을 유지한 datetime"""
        s = s.strip()
        if not s:
            raise ValueError("빈 시각 문자열")
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        return datetime.fromisoformat(s)

    @staticmethod
    def parse_date(s: str) -> date:
        """YYYY-MM-DD, YYYYMMDD, DD.MM.YYYY → date"""
        s = s.strip()
        if "." in s:
            parts = s.split(".")
            if len(parts) != 3:
                raise ValueError(f"날짜 형식 오류: '{s}' (DD.MM.YYYY)")
            return date(int(parts[2]), int(parts[1]), int(parts[0]))
        digits = s.replace("-", "")
        if len(digits) != 8 or not digits.isdigit():
            raise ValueError(f"날짜 형식 오류: '{s}' (YYYY-MM-DD)")
        return date(int(digits[:4]), int(digits[4:6]), int(digits[6:8]))


def optional_clock(value: Any) -> Optional[time]:
    """시간표 값 → time. 비어 있거나 깨진 값은 None."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return ParserSkill.parse_clock(value)
    except ValueError:
        return None


def optional_timestamp(value: Any) -> Optional[datetime]:
    """RFC3339 값 → datetime. 비어 있거나 깨진 값은 None."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return ParserSkill.parse_timestamp(value)
    except ValueError:
        return None


def same_minute(a: Optional[time], b: Optional[time]) -> bool:
    """분 단위 시각 비교. 한쪽이라도 없으면 불일치."""
    if a is None or b is None:
        return False
    return (a.hour, a.minute) == (b.hour, b.minute)
