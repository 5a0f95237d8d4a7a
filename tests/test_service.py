"""
Tests for the WebSocket broadcast side, with fake clients and a fake source.
"""

import asyncio
import json

import pytest
import websockets

from rivalwatch.display import STATUS_WAITING
from rivalwatch.service import RaceUpdateServer, handle_disconnect, run_tick, tracker_loop
from rivalwatch.tracker import RaceTracker


class FakeClient:
    """Records sent messages; iterating yields the queued incoming messages."""

    def __init__(self, fail_with=None, incoming=()):
        self.sent = []
        self.fail_with = fail_with
        self.incoming = list(incoming)

    async def send(self, message):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(json.loads(message))

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.incoming:
            raise StopAsyncIteration
        return self.incoming.pop(0)


class FakeSource:
    """Hands out queued snapshots; None entries mean 'no data this tick'."""

    def __init__(self, snapshots, connect_ok=True):
        self.snapshots = list(snapshots)
        self.connect_ok = connect_ok
        self.connected = False
        self.disconnects = 0

    @property
    def is_connected(self):
        return self.connected and bool(self.snapshots)

    def connect(self):
        self.connected = self.connect_ok
        return self.connect_ok

    def disconnect(self):
        self.connected = False
        self.disconnects += 1

    def next_snapshot(self):
        return self.snapshots.pop(0) if self.snapshots else None


class TestRaceUpdateServer:

    def test_broadcast_reaches_clients(self):
        server = RaceUpdateServer()
        a, b = FakeClient(), FakeClient()
        server.clients.update({a, b})

        asyncio.run(server.broadcast({'type': 'ping'}))

        assert a.sent == [{'type': 'ping'}]
        assert b.sent == [{'type': 'ping'}]

    def test_failing_client_dropped(self):
        server = RaceUpdateServer()
        good, bad = FakeClient(), FakeClient(fail_with=RuntimeError("boom"))
        server.clients.update({good, bad})

        asyncio.run(server.broadcast({'type': 'ping'}))

        assert server.clients == {good}
        assert good.sent == [{'type': 'ping'}]

    def test_closed_client_dropped(self):
        server = RaceUpdateServer()
        closed = FakeClient(fail_with=websockets.exceptions.ConnectionClosed(None, None))
        server.clients.add(closed)

        asyncio.run(server.broadcast({'type': 'ping'}))

        assert server.clients == set()

    def test_new_client_gets_last_message(self):
        server = RaceUpdateServer()
        server.last_message = {'type': 'race_update', 'data': {}}
        client = FakeClient(incoming=['hello'])

        asyncio.run(server.handler(client))

        assert client.sent == [{'type': 'race_update', 'data': {}}]
        assert client.incoming == []
        assert server.clients == set()

    def test_handler_tracks_client_while_open(self):
        server = RaceUpdateServer()
        seen = []

        class WatchingClient(FakeClient):
            async def __anext__(self):
                seen.append(set(server.clients))
                raise StopAsyncIteration

        client = WatchingClient()
        asyncio.run(server.handler(client))

        assert seen == [{client}]
        assert client.sent == []
        assert server.clients == set()

    def test_handler_survives_client_closing_early(self):
        server = RaceUpdateServer()
        server.last_message = {'type': 'race_update'}
        client = FakeClient(fail_with=websockets.exceptions.ConnectionClosed(None, None))

        asyncio.run(server.handler(client))

        assert server.clients == set()


class TestTick:

    def test_run_tick_broadcasts_update(self, make_snapshot, three_car_grid):
        tracker = RaceTracker()
        server = RaceUpdateServer()
        client = FakeClient()
        server.clients.add(client)
        source = FakeSource([make_snapshot(three_car_grid)])

        assert asyncio.run(run_tick(tracker, source, server)) is True

        message = client.sent[0]
        assert message['type'] == 'race_update'
        assert message['data']['isRaceActive'] is True
        assert message['data']['player']['carIdx'] == 0
        assert server.last_message == message

    def test_run_tick_without_snapshot(self):
        server = RaceUpdateServer()
        assert asyncio.run(run_tick(RaceTracker(), FakeSource([]), server)) is False
        assert server.last_message is None

    def test_disconnect_resets_and_notifies(self, make_snapshot, three_car_grid):
        tracker = RaceTracker()
        tracker.tick(make_snapshot(three_car_grid))
        server = RaceUpdateServer()
        server.last_message = {'type': 'race_update'}
        client = FakeClient()
        server.clients.add(client)
        source = FakeSource([])
        source.connected = True

        asyncio.run(handle_disconnect(tracker, source, server))

        assert len(tracker.store) == 0
        assert server.last_message is None
        assert source.disconnects == 1
        assert client.sent[0]['type'] == 'disconnected'
        assert client.sent[0]['status'] == STATUS_WAITING

    def test_loop_ticks_until_source_runs_dry(self, make_snapshot, three_car_grid):
        tracker = RaceTracker()
        server = RaceUpdateServer()
        client = FakeClient()
        server.clients.add(client)
        source = FakeSource([make_snapshot(three_car_grid, session_time=t) for t in (1.0, 2.0, 3.0)])

        async def scenario():
            task = asyncio.ensure_future(tracker_loop(tracker, source, server, reconnect_delay=0.01))
            for _ in range(200):
                if any(m['type'] == 'disconnected' for m in client.sent):
                    break
                await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

        types = [m['type'] for m in client.sent]
        assert types[:3] == ['race_update'] * 3
        assert 'disconnected' in types
        assert [m['data']['sessionTime'] for m in client.sent[:3]] == [1.0, 2.0, 3.0]
