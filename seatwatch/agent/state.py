"""스캐너 상태 머신

상태 전이 규칙을 정의하고 검증한다.
"""

from __future__ import annotations

from enum import Enum, auto


class ScannerState(Enum):
    IDLE = auto()
    SCANNING = auto()
    WAITING = auto()
    STOPPED = auto()


# 허용된 상태 전이 맵: {현재상태: {허용되는 다음 상태들}}
_VALID_TRANSITIONS: dict[ScannerState, frozenset[ScannerState]] = {
    ScannerState.IDLE: frozenset({ScannerState.SCANNING, ScannerState.STOPPED}),
    ScannerState.SCANNING: frozenset({
        ScannerState.WAITING, ScannerState.STOPPED,
    }),
    ScannerState.WAITING: frozenset({
        ScannerState.SCANNING, ScannerState.STOPPED,
    }),
    ScannerState.STOPPED: frozenset(),  # 터미널 상태
}


def validate_transition(current: ScannerState, target: ScannerState) -> bool:
    """상태 전이가 유효한지 검증"""
    allowed = _VALID_TRANSITIONS.get(current, frozenset())
    return target in allowed
