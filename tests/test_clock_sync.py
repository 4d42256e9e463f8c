"""
Tests for Cristian's clock synchronization.
"""

import pytest

from cluster.clock_sync import ClockSyncEngine, estimate
from cluster.directory import NodeDirectory
from cluster.errors import PeerUnreachable, SyncUnavailable
from cluster.transport import PeerTransport
from core.config import default_cluster_nodes

from conftest import FakeClock


class ScriptedClockTransport(PeerTransport):
    """Answers clock sync requests from a reference clock, with a fixed one-way delay."""

    def __init__(self, client_clock: FakeClock, reference_clock, one_way_ms: int = 20, down=()):
        self.client_clock = client_clock
        self.reference_clock = reference_clock
        self.one_way_ms = one_way_ms
        self.down = set(down)
        self.asked = []

    async def post(self, node, path, payload, timeout):
        raise AssertionError("clock sync uses GET")

    async def get(self, node, path, timeout, params=None):
        self.asked.append(node.id)
        if node.id in self.down:
            raise PeerUnreachable(node.id, "connection refused")
        self.client_clock.advance(self.one_way_ms)
        server_time = self.reference_clock()
        self.client_clock.advance(self.one_way_ms)
        return {"success": True, "serverTime": server_time, "clientSendTime": params["clientTime"]}


def make_engine(clock, transport, self_id=1, leader_id=None):
    nodes = default_cluster_nodes()
    return ClockSyncEngine(
        next(node for node in nodes if node.id == self_id),
        NodeDirectory(nodes),
        transport,
        clock=clock,
        leader_lookup=lambda: leader_id,
    )


class TestEstimate:
    """Test the Cristian computation."""

    def test_estimate_adds_half_round_trip(self):
        exchange = estimate(client_send_time=1000, server_time=5000, received_at=1040)

        assert exchange.round_trip_time == 40
        assert exchange.adjusted_time == 5020


class TestClientSynchronize:
    """Test synchronize() against scripted reference nodes."""

    @pytest.mark.asyncio
    async def test_forty_ms_round_trip_with_equal_clocks(self, fake_clock):
        start = fake_clock()
        transport = ScriptedClockTransport(fake_clock, reference_clock=fake_clock)
        engine = make_engine(fake_clock, transport)

        exchange = await engine.synchronize()

        assert exchange.client_send_time == start
        assert exchange.round_trip_time == 40
        assert exchange.adjusted_time == pytest.approx(start + 40)
        assert engine.clock_offset_ms == 0

    @pytest.mark.asyncio
    async def test_offset_tracks_reference_clock(self, fake_clock):
        reference = lambda: fake_clock() + 5000
        transport = ScriptedClockTransport(fake_clock, reference_clock=reference)
        engine = make_engine(fake_clock, transport)

        await engine.synchronize()

        # reference read 20ms before the reply arrived, compensated by rtt/2
        assert engine.clock_offset_ms == 5000
        assert engine.local_time() == fake_clock() + 5000

    @pytest.mark.asyncio
    async def test_leader_is_asked_first(self, fake_clock):
        transport = ScriptedClockTransport(fake_clock, reference_clock=fake_clock)
        engine = make_engine(fake_clock, transport, self_id=1, leader_id=3)

        await engine.synchronize()

        assert transport.asked == [3]
        assert engine.last_reference_id == 3

    @pytest.mark.asyncio
    async def test_falls_back_to_next_peer(self, fake_clock):
        transport = ScriptedClockTransport(fake_clock, reference_clock=fake_clock, down=[3])
        engine = make_engine(fake_clock, transport, self_id=1, leader_id=3)

        await engine.synchronize()

        assert transport.asked == [3, 2]
        assert engine.last_reference_id == 2

    @pytest.mark.asyncio
    async def test_no_reference_keeps_offset(self, fake_clock):
        transport = ScriptedClockTransport(
            fake_clock, reference_clock=lambda: fake_clock() + 700
        )
        engine = make_engine(fake_clock, transport)
        await engine.synchronize()
        assert engine.clock_offset_ms == 700

        transport.down = {2, 3}
        with pytest.raises(SyncUnavailable) as exc_info:
            await engine.synchronize()

        assert exc_info.value.attempted_node_ids == [2, 3]
        assert engine.clock_offset_ms == 700


class TestResponder:
    """Test perform_sync() as the reference node."""

    def test_perform_sync_reports_elapsed_time_as_rtt(self):
        clock = FakeClock(start=10_000)
        engine = make_engine(clock, transport=None)
        client_send_time = clock()
        clock.advance(40)

        exchange = engine.perform_sync(client_send_time)

        assert exchange.server_time == client_send_time + 40
        assert exchange.round_trip_time == 40
        assert exchange.adjusted_time == client_send_time + 60

    def test_server_time_non_decreasing_for_frozen_clock(self):
        clock = FakeClock(start=10_000)
        engine = make_engine(clock, transport=None)

        server_times = [engine.perform_sync(9_990).server_time for _ in range(5)]

        assert server_times == sorted(server_times)
        assert server_times[0] == 10_000

    def test_perform_sync_includes_offset(self):
        clock = FakeClock(start=10_000)
        engine = make_engine(clock, transport=None)
        engine.clock_offset_ms = 250

        exchange = engine.perform_sync(10_000)

        assert exchange.server_time == 10_250
        assert exchange.clock_offset_ms == 250


class TestClockSyncOverHttp:
    """Synchronize through the real /clock-sync route."""

    @pytest.mark.asyncio
    async def test_follower_syncs_against_leader(self, cluster_factory, fake_clock):
        cluster = cluster_factory(node_ids=(1, 2), clock=fake_clock)
        await cluster[2].election.initiate_election()
        cluster[2].clock_sync.clock_offset_ms = 1200

        exchange = await cluster[1].clock_sync.synchronize()

        assert cluster[1].clock_sync.last_reference_id == 2
        assert exchange.server_time == fake_clock() + 1200
        assert cluster[1].clock_sync.clock_offset_ms == 1200
