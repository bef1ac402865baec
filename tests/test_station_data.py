"""역 디렉터리 테스트"""

from __future__ import annotations

import pytest

from seatwatch.skills.station_data import StationDirectory, normalize_name


@pytest.fixture
def directory() -> StationDirectory:
    return StationDirectory({
        "372825000": "Praha hl.n.",
        "372825002": "Praha-Smíchov",
        "372842002": "Ostrava hl.n.",
        "372828003": "Pardubice hl.n.",
    })


class TestNormalize:
    def test_ignores_case_diacritics_spaces(self) -> None:
        assert normalize_name("Praha-Smíchov") == normalize_name("praha-SMICHOV")
        assert normalize_name("Praha hl. n.") == normalize_name("praha hl.n.")


class TestStationDirectory:
    def test_mapping(self, directory) -> None:
        assert directory["372842002"] == "Ostrava hl.n."
        assert len(directory) == 4
        assert directory.get("1") is None
        assert directory.name_of("1") == "1"

    def test_search(self, directory) -> None:
        hits = directory.search("praha")
        assert [name for _, name in hits] == ["Praha hl.n.", "Praha-Smíchov"]

    def test_resolve_id_passthrough(self, directory) -> None:
        assert directory.resolve("999") == "999"

    def test_resolve_exact_name(self, directory) -> None:
        assert directory.resolve("praha HL.N.") == "372825000"

    def test_resolve_unique_substring(self, directory) -> None:
        assert directory.resolve("smichov") == "372825002"

    def test_resolve_ambiguous(self, directory) -> None:
        with pytest.raises(ValueError, match="여러 개"):
            directory.resolve("hl.n.")

    def test_resolve_unknown(self, directory) -> None:
        with pytest.raises(ValueError, match="알 수 없는"):
            directory.resolve("Brno")

    def test_resolve_empty(self, directory) -> None:
        with pytest.raises(ValueError):
            directory.resolve("  ")
