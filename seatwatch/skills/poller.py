"""스캔 주기 스케줄러 스킬

고정 주기(tick) 기준으로 다음 스캔까지 대기 시간을 계산한다.
스캔이 오래 걸리면 그만큼 대기를 줄이고, 주기를 넘기면 바로 다음 스캔을 시작한다.
"""

from __future__ import annotations

import random


class PollerSkill:
    """스캔 간격 계산"""

    __slots__ = ("_interval", "_jitter_range")

    def __init__(self, interval: float = 60.0, jitter_range: float = 0.0) -> None:
        if interval <= 0:
            raise ValueError("interval은 0보다 커야 합니다")
        if jitter_range < 0:
            raise ValueError("jitter_range는 0 이상이어야 합니다")
        self._interval = interval
        self._jitter_range = jitter_range

    @property
    def interval(self) -> float:
        return self._interval

    def next_delay(self, scan_elapsed: float) -> float:
        """다음 스캔까지 대기 시간(초)"""
        delay = max(0.0, self._interval - scan_elapsed)
        if self._jitter_range and delay > 0:
            delay += random.uniform(0, self._jitter_range)
        return delay
