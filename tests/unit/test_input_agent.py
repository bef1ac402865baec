"""InputAgent 단위 테스트"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import make_details
from seatwatch.agents.input_agent import InputAgent
from seatwatch.models.errors import LookupFailure
from seatwatch.skills.route_client import RouteClientSkill
from seatwatch.skills.station_data import StationDirectory
from seatwatch.utils.watch_store import WatchStore, watch_key

NOW = datetime(2026, 11, 1, 12, 0, tzinfo=timezone.utc)


def make_mock_client(details=None) -> MagicMock:
    mock = MagicMock(spec=RouteClientSkill)
    mock.get_route_details = AsyncMock(return_value=details or make_details(0))
    return mock


def _request(**overrides) -> dict:
    data = {
        "station_from_id": "372825000",
        "station_to_id": "372842002",
        "route_id": "5400543021",
        "webhook_url": "https://discord.example/api/webhooks/1/abc",
    }
    data.update(overrides)
    return data


class TestInputAgentRegister:
    """감시 등록 테스트"""

    @pytest.mark.asyncio
    async def test_register_stores_watch(self) -> None:
        store = WatchStore()
        client = make_mock_client()
        agent = InputAgent(client, store)

        watch = await agent.register(_request(), now=NOW)

        client.get_route_details.assert_awaited_once_with(
            "5400543021", "372825000", "372842002",
        )
        assert store.get(watch_key(watch.watch_id), NOW) == watch.to_record()
        assert watch.expires_at == make_details(0).departure

    @pytest.mark.asyncio
    async def test_register_emits_event(self) -> None:
        bus: asyncio.Queue = asyncio.Queue()
        agent = InputAgent(make_mock_client(), WatchStore(), event_bus=bus)

        watch = await agent.register(_request(), now=NOW)

        msg = await bus.get()
        assert msg.event == "watch.registered"
        assert msg.source == "input_agent"
        assert msg.payload == {"key": watch_key(watch.watch_id)}

    @pytest.mark.asyncio
    async def test_default_webhook_applied(self) -> None:
        agent = InputAgent(
            make_mock_client(), WatchStore(), default_webhook="https://default.example/hook",
        )
        watch = await agent.register(_request(webhook_url=""), now=NOW)
        assert watch.webhook_url == "https://default.example/hook"

    @pytest.mark.asyncio
    async def test_station_names_resolved(self) -> None:
        stations = StationDirectory({
            "372825000": "Praha hl.n.",
            "372842002": "Ostrava hl.n.",
        })
        client = make_mock_client()
        agent = InputAgent(client, WatchStore(), stations=stations)

        watch = await agent.register(
            _request(station_from_id="Praha hl.n.", station_to_id="ostrava"), now=NOW,
        )

        assert (watch.station_from_id, watch.station_to_id) == ("372825000", "372842002")

    @pytest.mark.asyncio
    async def test_departed_route_rejected(self) -> None:
        store = WatchStore()
        details = make_details(0, departure=NOW - timedelta(hours=1))
        agent = InputAgent(make_mock_client(details), store)

        with pytest.raises(ValueError):
            await agent.register(_request(), now=NOW)
        assert store.snapshot(NOW) == []

    @pytest.mark.asyncio
    async def test_invalid_request_not_sent_upstream(self) -> None:
        client = make_mock_client()
        agent = InputAgent(client, WatchStore())

        with pytest.raises(ValueError):
            await agent.register(_request(route_id="abc"), now=NOW)
        client.get_route_details.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_failure_propagates(self) -> None:
        client = make_mock_client()
        client.get_route_details.side_effect = LookupFailure("HTTP 404")
        agent = InputAgent(client, WatchStore())

        with pytest.raises(LookupFailure):
            await agent.register(_request(), now=NOW)
