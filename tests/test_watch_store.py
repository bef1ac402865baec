"""감시 저장소 (TTL 키-값) 테스트"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from seatwatch.utils.watch_store import KEY_PREFIX, WatchStore, watch_key

NOW = datetime(2026, 11, 1, 12, 0, tzinfo=timezone.utc)


class TestMemoryStore:
    def test_put_and_snapshot(self, sample_watch) -> None:
        store = WatchStore(clock=lambda: NOW)
        key = store.put(sample_watch)

        assert key == watch_key(sample_watch.watch_id)
        assert key.startswith(KEY_PREFIX)
        assert store.snapshot(NOW) == [(key, sample_watch.to_record())]

    def test_expired_entries_hidden(self, sample_watch) -> None:
        store = WatchStore(clock=lambda: NOW)
        key = store.put(sample_watch)

        after = sample_watch.expires_at + timedelta(seconds=1)
        assert store.snapshot(after) == []
        assert store.get(key, after) is None
        # 읽기는 삭제하지 않는다
        assert store.get(key, NOW) is not None

    def test_expired_entries_purged_on_write(self, sample_watch) -> None:
        after = sample_watch.expires_at + timedelta(seconds=1)
        store = WatchStore(clock=lambda: after)
        old_key = store.put(sample_watch)

        store.put_record(watch_key("new"), "v", after + timedelta(hours=1))

        assert store.get(old_key, NOW) is None
        assert store.snapshot(after) == [(watch_key("new"), "v")]

    def test_delete_purges_expired(self, sample_watch) -> None:
        after = sample_watch.expires_at + timedelta(seconds=1)
        store = WatchStore(clock=lambda: after)
        key = store.put(sample_watch)

        assert store.delete("watchdog:missing") is False
        assert store.get(key, NOW) is None

    def test_get_and_delete(self, sample_watch) -> None:
        store = WatchStore(clock=lambda: NOW)
        key = store.put(sample_watch)

        assert store.get(key, NOW)["watchId"] == sample_watch.watch_id
        assert store.delete(key) is True
        assert store.delete(key) is False

    def test_raw_values_not_validated(self) -> None:
        store = WatchStore(clock=lambda: NOW)
        store.put_record("watchdog:legacy", "hook;;1;;2;;3", NOW + timedelta(hours=1))
        assert store.snapshot(NOW) == [("watchdog:legacy", "hook;;1;;2;;3")]

    def test_foreign_keys_ignored(self) -> None:
        store = WatchStore(clock=lambda: NOW)
        store.put_record("other:1", {}, NOW + timedelta(hours=1))
        assert store.snapshot(NOW) == []

    def test_naive_expiry_rejected(self) -> None:
        with pytest.raises(ValueError):
            WatchStore().put_record("watchdog:x", {}, datetime(2026, 11, 2))

    def test_insertion_order(self) -> None:
        store = WatchStore(clock=lambda: NOW)
        for name in ("c", "a", "b"):
            store.put_record(watch_key(name), name, NOW + timedelta(hours=1))
        assert [v for _, v in store.snapshot(NOW)] == ["c", "a", "b"]


class TestFileStore:
    def test_persists_across_instances(self, tmp_path, sample_watch) -> None:
        path = tmp_path / "watches.json"
        WatchStore(path).put(sample_watch)

        reopened = WatchStore(path)
        assert len(reopened.snapshot(NOW)) == 1
        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert list(on_disk) == [watch_key(sample_watch.watch_id)]

    def test_sees_writes_from_other_instance(self, tmp_path, sample_watch) -> None:
        path = tmp_path / "watches.json"
        reader = WatchStore(path)
        assert reader.snapshot(NOW) == []

        WatchStore(path).put(sample_watch)
        assert len(reader.snapshot(NOW)) == 1

    def test_corrupt_expiry_entry_dropped(self, tmp_path) -> None:
        path = tmp_path / "watches.json"
        path.write_text(json.dumps({
            "watchdog:bad": {"expiresAt": "soon", "value": {}},
            "watchdog:ok": {"expiresAt": "2026-11-02T09:00:00+00:00", "value": {"a": 1}},
        }), encoding="utf-8")

        assert WatchStore(path).snapshot(NOW) == [("watchdog:ok", {"a": 1})]

    def test_unreadable_file_yields_empty(self, tmp_path) -> None:
        path = tmp_path / "watches.json"
        path.write_text("{not json", encoding="utf-8")
        assert WatchStore(path).snapshot(NOW) == []

    def test_snapshot_never_rewrites_file(self, tmp_path) -> None:
        path = tmp_path / "watches.json"
        path.write_text(json.dumps({
            "watchdog:old": {"expiresAt": "2026-10-01T09:00:00+00:00", "value": {}},
            "watchdog:bad": {"expiresAt": "soon", "value": {}},
        }), encoding="utf-8")
        before = path.read_bytes()

        assert WatchStore(path).snapshot(NOW) == []
        assert path.read_bytes() == before

    def test_snapshot_keeps_concurrent_registration(self, tmp_path, sample_watch) -> None:
        path = tmp_path / "watches.json"
        path.write_text(json.dumps({
            "watchdog:old": {"expiresAt": "2026-10-01T09:00:00+00:00", "value": {}},
        }), encoding="utf-8")
        scanner_side = WatchStore(path, clock=lambda: NOW)
        assert scanner_side.snapshot() == []

        WatchStore(path, clock=lambda: NOW).put(sample_watch)
        scanner_side.snapshot()

        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert watch_key(sample_watch.watch_id) in on_disk
        assert "watchdog:old" not in on_disk

    def test_deleted_file_resets(self, tmp_path, sample_watch) -> None:
        path = tmp_path / "watches.json"
        store = WatchStore(path)
        store.put(sample_watch)
        path.unlink()
        assert store.snapshot(NOW) == []
