"""에이전트 간 통신 이벤트 모델"""

from __future__ import annotations

from dataclasses import dataclass
from time import monotonic
from typing import Any


class AgentEvent:
    """에이전트 이벤트 타입 상수"""

    SCAN_START = "scan.start"
    SCAN_COMPLETE = "scan.complete"
    SCAN_FAILED = "scan.failed"
    WATCH_REGISTERED = "watch.registered"
    WATCH_FAILED = "watch.failed"
    DIRECT_AVAILABLE = "seat.direct"
    ALTERNATIVES_FOUND = "seat.alternatives"
    NOTIFY_COMPLETE = "notify.complete"
    NOTIFY_FAILED = "notify.failed"
    SESSION_STOP = "session.stop"


@dataclass(frozen=True, slots=True)
class AgentMessage:
    """에이전트 간 메시지"""

    event: str
    source: str
    target: str
    payload: Any
    tick: int = 0            # 메시지를 만든 스캔 회차 (0 = 스캔 외부)
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        if self.timestamp == 0.0:
            object.__setattr__(self, "timestamp", monotonic())
