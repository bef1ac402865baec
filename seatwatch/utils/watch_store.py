"""감시 요청 저장소 (TTL 키-값)

키 "watchdog:<id>" → 감시 레코드. 각 키는 만료 시각(노선 출발 시각)을 가진다.
읽기(snapshot/get)는 만료된 키를 걸러낼 뿐 파일을 다시 쓰지 않는다.
만료된 키의 실제 삭제는 쓰기(put_record/delete) 때 함께 한다.

path를 주면 JSON 파일에 저장한다 (프로세스 재시작/다른 프로세스의 등록 반영).
파일은 매 작업마다 다시 읽고, 쓰기는 임시 파일 + replace로 원자적으로 한다.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from seatwatch.models.watch import Watch

logger = logging.getLogger("seatwatch.store")

KEY_PREFIX = "watchdog:"


def watch_key(watch_id: str) -> str:
    return f"{KEY_PREFIX}{watch_id}"


class WatchStore:
    """TTL 키-값 감시 저장소"""

    __slots__ = ("_path", "_entries", "_clock")

    def __init__(
        self,
        path: str | Path | None = None,
        clock: Optional[Callable[[], datetime]] = None,  # 테스트용 의존성 주입
    ) -> None:
        self._path = Path(path) if path else None
        self._entries: dict[str, dict[str, Any]] = {}
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def path(self) -> Optional[Path]:
        return self._path

    # ── 파일 입출력 ──

    def _load(self) -> None:
        if self._path is None:
            return
        if not self._path.exists():
            self._entries = {}
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            logger.error("저장소 파일 읽기 실패 (%s): %s", self._path, e)
            return
        if not isinstance(raw, dict):
            logger.error("저장소 파일 형식 오류 (%s) - 무시", self._path)
            return
        self._entries = {k: v for k, v in raw.items() if isinstance(v, dict)}

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            dir=self._path.parent, prefix=self._path.name, suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._entries, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self._path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise

    # ── 만료 처리 ──

    @staticmethod
    def _expires_at(entry: dict[str, Any]) -> Optional[datetime]:
        raw = entry.get("expiresAt")
        if not isinstance(raw, str):
            return None
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

    def _is_live(self, entry: dict[str, Any], now: datetime) -> bool:
        expires = self._expires_at(entry)
        return expires is not None and expires > now

    def _purge(self, now: datetime) -> int:
        expired = [
            key for key, entry in self._entries.items()
            if not self._is_live(entry, now)
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info("만료된 감시 %d건 삭제", len(expired))
        return len(expired)

    # ── 공개 API ──

    def put(self, watch: Watch) -> str:
        """감시 저장. 키 반환."""
        key = watch_key(watch.watch_id)
        self.put_record(key, watch.to_record(), watch.expires_at)
        return key

    def put_record(self, key: str, value: Any, expires_at: datetime) -> None:
        if expires_at.tzinfo is None:
            raise ValueError("expires_at에는 시간대 정보가 필요합니다")
        self._load()
        self._purge(self._clock())
        self._entries[key] = {
            "expiresAt": expires_at.isoformat(),
            "value": value,
        }
        self._save()
        logger.info("감시 저장: %s (만료 %s)", key, expires_at.isoformat())

    def get(self, key: str, now: Optional[datetime] = None) -> Any:
        """키 값. 없거나 만료됐으면 None."""
        self._load()
        entry = self._entries.get(key)
        if entry is None or not self._is_live(entry, now or self._clock()):
            return None
        return entry.get("value")

    def delete(self, key: str) -> bool:
        self._load()
        purged = self._purge(self._clock())
        found = self._entries.pop(key, None) is not None
        if found or purged:
            self._save()
        return found

    def snapshot(self, now: Optional[datetime] = None) -> list[tuple[str, Any]]:
        """현재 유효한 (키, 값) 목록 - 스캔 1회가 이 스냅샷 하나만 사용한다.

        값은 검증하지 않는다. 손상 여부는 스캐너가 판단한다.
        파일은 읽기만 한다. 다른 프로세스의 등록을 덮어쓰지 않는다.
        """
        self._load()
        now = now or self._clock()
        return [
            (key, entry.get("value"))
            for key, entry in self._entries.items()
            if key.startswith(KEY_PREFIX) and self._is_live(entry, now)
        ]

    def __len__(self) -> int:
        return len(self.snapshot())
