"""
Tests for Bully leader election.

Nodes talk to each other through the in-process loopback transport, so
election messages and leader updates go through the real API routes.
"""

import pytest

from cluster.election import ElectionOutcome
from core.constants import ENDPOINT_ELECTION, ENDPOINT_LEADER_UPDATE
from models.messages import ElectionReply
from models.node import ElectionState, NodeRole


class TestElectionRounds:
    """Full election rounds across a local cluster."""

    @pytest.mark.asyncio
    async def test_failure_free_round_elects_exactly_one_leader(self, cluster_factory):
        cluster = cluster_factory()

        outcome = await cluster[1].election.initiate_election()
        await cluster.settle()

        assert outcome == ElectionOutcome.DEFERRED
        assert cluster.leaders() == [3]
        for node in cluster.nodes.values():
            assert node.election.leader_id == 3

    @pytest.mark.asyncio
    async def test_highest_node_elects_itself_without_messages(self, cluster_factory):
        cluster = cluster_factory()

        outcome = await cluster[3].election.initiate_election()

        assert outcome == ElectionOutcome.ELECTED
        assert cluster[3].role == NodeRole.LEADER
        assert not cluster.transport.calls_to(1, ENDPOINT_ELECTION)
        assert not cluster.transport.calls_to(2, ENDPOINT_ELECTION)
        assert cluster.transport.calls_to(1, ENDPOINT_LEADER_UPDATE)
        assert cluster.transport.calls_to(2, ENDPOINT_LEADER_UPDATE)
        assert cluster[1].election.leader_id == 3
        assert cluster[2].role == NodeRole.FOLLOWER

    @pytest.mark.asyncio
    async def test_highest_node_down_highest_reachable_wins(self, cluster_factory):
        """Node 3 down: node 1 defers to node 2, which wins by default."""
        cluster = cluster_factory(down=[3])

        outcome = await cluster[1].election.initiate_election()
        assert outcome == ElectionOutcome.DEFERRED
        assert cluster[1].role == NodeRole.FOLLOWER

        second_round = await cluster[2].election.scheduled_election
        await cluster.settle()

        assert second_round == ElectionOutcome.ELECTED_BY_DEFAULT
        assert cluster[2].role == NodeRole.LEADER
        assert cluster[1].role == NodeRole.FOLLOWER
        assert cluster[1].election.leader_id == 2
        # node 3 was tried once and never retried
        assert len(cluster.transport.calls_to(3, ENDPOINT_ELECTION)) == 1

    @pytest.mark.asyncio
    async def test_all_higher_nodes_down_candidate_wins(self, cluster_factory):
        cluster = cluster_factory(down=[2, 3])

        outcome = await cluster[1].election.initiate_election()

        assert outcome == ElectionOutcome.ELECTED_BY_DEFAULT
        assert cluster[1].is_leader
        assert cluster[1].election.leader_id == 1

    @pytest.mark.asyncio
    async def test_leader_update_demotes_previous_leader(self, cluster_factory):
        cluster = cluster_factory(down=[3])
        await cluster[2].election.initiate_election()
        assert cluster.leaders() == [2]

        cluster.transport.unreachable.clear()
        await cluster[3].election.initiate_election()

        assert cluster.leaders() == [3]
        assert cluster[2].election.leader_id == 3

    @pytest.mark.asyncio
    async def test_leader_is_recorded_in_store(self, cluster_factory):
        from main import prepare_stores

        cluster = cluster_factory(node_ids=(1, 2))
        for node in cluster.nodes.values():
            await prepare_stores(node)

        await cluster[2].election.initiate_election()

        records = {record.id: record for record in await cluster[2].server_repo.list_servers()}
        assert records[2].is_leader
        assert not records[1].is_leader
        follower_records = {record.id: record for record in await cluster[1].server_repo.list_servers()}
        assert follower_records[2].is_leader


class TestElectionMessages:
    """Replies to individual election messages."""

    @pytest.mark.asyncio
    async def test_lower_candidate_gets_alive_reply_and_triggers_election(self, cluster_factory):
        cluster = cluster_factory(node_ids=(1, 2))

        response = await cluster[2].election.on_election_message_received(1)

        assert response.success is True
        assert response.reply == ElectionReply.ALIVE
        assert response.is_alive
        assert await cluster[2].election.scheduled_election == ElectionOutcome.ELECTED

    @pytest.mark.asyncio
    async def test_higher_candidate_gets_acknowledge_reply(self, cluster_factory):
        cluster = cluster_factory(node_ids=(1, 2))

        response = await cluster[1].election.on_election_message_received(2)

        assert response.success is False
        assert response.reply == ElectionReply.ACKNOWLEDGE
        assert cluster[1].election.scheduled_election is None
        assert cluster[1].role == NodeRole.FOLLOWER

    @pytest.mark.asyncio
    async def test_state_reports_candidate_while_campaigning(self, cluster_factory):
        cluster = cluster_factory(node_ids=(1, 2))
        engine = cluster[1].election
        seen_states = []

        original_send = engine._send_election_message

        async def recording_send(peer, message):
            seen_states.append(engine.state)
            return await original_send(peer, message)

        engine._send_election_message = recording_send
        await engine.initiate_election()
        await cluster.settle()

        assert seen_states == [ElectionState.CANDIDATE]
        assert engine.state == ElectionState.FOLLOWER

    @pytest.mark.asyncio
    async def test_concurrent_round_on_same_node_is_skipped(self, cluster_factory):
        cluster = cluster_factory(node_ids=(1, 2))
        engine = cluster[1].election
        nested = []

        original_send = engine._send_election_message

        async def reentrant_send(peer, message):
            nested.append(await engine.initiate_election())
            return await original_send(peer, message)

        engine._send_election_message = reentrant_send
        await engine.initiate_election()
        await cluster.settle()

        assert nested == [ElectionOutcome.SKIPPED]
