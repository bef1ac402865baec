"""역 ID ↔ 표시 이름 매핑 및 검증

프로세스 시작 시 역 목록(/consts/locations)을 한 번 받아 만든다.
이름이 없는 역은 치명적 오류가 아니다 (표시만 생략).
로드에 실패해 비어 있으면 WatchCheckSkill이 대체 여정을 표시할 때 다시 받는다.
"""

from __future__ import annotations

import unicodedata
from typing import Iterator, Mapping


def normalize_name(name: str) -> str:
    """대소문자/발음 구별 기호/공백 무시 비교용 키 (Praha hl.n. == praha HL. N.)"""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return "".join(stripped.casefold().split())


class StationDirectory(Mapping[str, str]):
    """역 ID → 표시 이름 (읽기 전용 Mapping)"""

    __slots__ = ("_names", "_by_key")

    def __init__(self, names: Mapping[str, str]) -> None:
        self._names = dict(names)
        self._by_key: dict[str, str] = {}
        for sid, name in sorted(self._names.items()):
            self._by_key.setdefault(normalize_name(name), sid)

    def __getitem__(self, station_id: str) -> str:
        return self._names[station_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def name_of(self, station_id: str) -> str:
        """표시 이름. 없으면 ID 그대로."""
        return self._names.get(station_id, station_id)

    def search(self, text: str, limit: int = 20) -> list[tuple[str, str]]:
        """이름 부분 일치 검색 → [(ID, 이름)] (이름순)"""
        key = normalize_name(text)
        hits = [
            (sid, name) for sid, name in self._names.items()
            if key in normalize_name(name)
        ]
        hits.sort(key=lambda x: x[1])
        return hits[:limit]

    def resolve(self, value: str) -> str:
        """역 ID 또는 역 이름 → 역 ID.

        숫자면 ID로 간주한다 (목록에 없어도 허용 - 목록은 열차역만 담는다).
        이름이면 정확히 일치하는 역, 없으면 유일한 부분 일치 역.
        """
        value = value.strip()
        if not value:
            raise ValueError("역이 입력되지 않았습니다")
        if value.isdigit():
            return value

        key = normalize_name(value)
        if key in self._by_key:
            return self._by_key[key]

        hits = self.search(value, limit=6)
        if len(hits) == 1:
            return hits[0][0]
        if not hits:
            raise ValueError(f"'{value}'은(는) 알 수 없는 역입니다")
        candidates = ", ".join(name for _, name in hits[:5])
        raise ValueError(f"'{value}'에 해당하는 역이 여러 개입니다: {candidates}")
