"""토큰 버킷 기반 레이트 리미터

여정 탐색은 후보 구간마다 업스트림 API를 호출하므로 요청 수가 조합적으로
늘어난다. 모든 아웃바운드 요청은 이 리미터를 거친다.
동시 조회(max_parallel_probes > 1) 시에도 토큰 계산이 꼬이지 않도록 Lock으로 보호한다.
"""

from __future__ import annotations

import asyncio
from time import monotonic


class TokenBucketRateLimiter:
    """토큰 버킷 레이트 리미터

    Args:
        rate: 초당 허용 요청 수 (기본 5)
        burst: 버스트 허용 수 (기본 5)
    """

    __slots__ = ("_rate", "_burst", "_tokens", "_last_refill", "_lock", "_waited_total")

    def __init__(
        self,
        rate: float = 5.0,
        burst: int = 5,
    ) -> None:
        if rate <= 0:
            raise ValueError("rate는 0보다 커야 합니다")
        self._rate = rate
        self._burst = burst
        self._tokens = float(burst)
        self._last_refill = monotonic()
        self._lock = asyncio.Lock()
        self._waited_total = 0.0

    @property
    def waited_total(self) -> float:
        """누적 대기 시간(초)"""
        return self._waited_total

    def _refill(self) -> None:
        now = monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(
            self._burst,
            self._tokens + elapsed * self._rate,
        )
        self._last_refill = now

    async def acquire(self) -> float:
        """토큰 1개 소비. 대기한 시간(초)을 반환."""
        waited = 0.0
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    self._waited_total += waited
                    return waited
                deficit = 1.0 - self._tokens
                sleep_time = deficit / self._rate
                await asyncio.sleep(sleep_time)
                waited += sleep_time
