"""감시 서비스 설정 모델"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from typing import Mapping, Optional

ENV_PREFIX = "SEATWATCH_"


@dataclass(frozen=True)
class WatchdogConfig:
    """감시 서비스 설정 - 스캔 주기/HTTP/탐색 튜닝 파라미터"""

    # 스캔 설정
    scan_interval: float = 60.0
    max_ticks: Optional[int] = None          # None이면 무한 반복

    # 탐색 설정
    max_parallel_probes: int = 1             # 같은 깊이 후보 구간 동시 조회 수
    max_route_transfers: int = 0             # 구간 검색에서 허용할 환승 수

    # 알림 설정
    notification_cooldown: float = 60.0
    notification_methods: list[str] = field(
        default_factory=lambda: ["webhook"]
    )
    webhook_url: str = ""                    # 감시에 webhook이 없을 때 사용

    # 저장소
    store_path: str = ""                     # 비어 있으면 메모리 저장소

    # HTTP 설정
    base_url: str = "https://brn-ybus-pubapi.sa.cz/restapi"
    currency: str = "CZK"
    request_timeout: float = 15.0
    connect_timeout: float = 5.0
    max_connections: int = 4
    requests_per_second: float = 5.0
    request_burst: int = 5

    def __post_init__(self) -> None:
        if self.scan_interval <= 0:
            raise ValueError("scan_interval은 0보다 커야 합니다")
        if self.max_parallel_probes < 1:
            raise ValueError("max_parallel_probes는 1 이상이어야 합니다")
        if self.max_route_transfers < 0:
            raise ValueError("max_route_transfers는 0 이상이어야 합니다")
        if self.requests_per_second <= 0 or self.request_burst < 1:
            raise ValueError("요청 속도 제한 값이 올바르지 않습니다")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: object,
    ) -> WatchdogConfig:
        """SEATWATCH_* 환경 변수를 기본값 위에 덮어쓴다.

        예: SEATWATCH_SCAN_INTERVAL=120, SEATWATCH_NOTIFICATION_METHODS=webhook,log
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        defaults = cls()
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            values[f.name] = _coerce(raw, getattr(defaults, f.name), f.name)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return replace(defaults, **values)


def _coerce(raw: str, default: object, name: str) -> object:
    try:
        if isinstance(default, list):
            return [p.strip() for p in raw.split(",") if p.strip()]
        if isinstance(default, int) or name == "max_ticks":
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except ValueError as e:
        raise ValueError(f"환경 변수 {ENV_PREFIX}{name.upper()} 값 오류: {raw!r}") from e
    return raw.strip()
