"""
Tests for node configuration.
"""

import pytest
from pydantic import ValidationError

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.config import ClusterSettings, default_cluster_nodes, parse_cluster_nodes
from core.constants import STORE_BACKEND_MEMORY, STORE_BACKEND_SQLITE


class TestParseClusterNodes:
    """Test membership string parsing."""

    def test_named_and_unnamed_entries(self):
        nodes = parse_cluster_nodes("1=Server-Pune@10.0.0.1:7001, 2@10.0.0.2:7002")

        assert [node.id for node in nodes] == [1, 2]
        assert nodes[0].display_name == "Server-Pune"
        assert nodes[0].address == "10.0.0.1:7001"
        assert nodes[1].display_name == "Server-2"
        assert nodes[1].port == 7002

    def test_blank_entries_are_ignored(self):
        nodes = parse_cluster_nodes("1@localhost:5001,,")

        assert len(nodes) == 1

    @pytest.mark.parametrize("spec", ["1=Server-Pune", "1@localhost", "one@localhost:5001"])
    def test_malformed_entries(self, spec):
        with pytest.raises(ValueError):
            parse_cluster_nodes(spec)


class TestClusterSettings:
    """Test settings validation and environment loading."""

    def test_defaults(self):
        settings = ClusterSettings()

        assert settings.server_id == 1
        assert [node.id for node in settings.nodes] == [1, 2, 3]
        assert settings.store_backend == STORE_BACKEND_SQLITE
        assert settings.heartbeat_interval == 5.0
        assert settings.leader_probe_interval == 10.0
        assert settings.clock_sync_interval == 30.0
        assert settings.election_startup_delay == 3.0
        assert settings.replication_max_concurrency == 1

    def test_listen_port_follows_own_node(self):
        settings = ClusterSettings(server_id=3)

        assert settings.self_node.display_name == "Server-Bangalore"
        assert settings.listen_port == 5003
        assert ClusterSettings(server_id=3, port=8080).listen_port == 8080

    def test_unknown_server_id_is_rejected(self):
        with pytest.raises(ValidationError):
            ClusterSettings(server_id=4)

    def test_duplicate_node_ids_are_rejected(self):
        nodes = default_cluster_nodes() + default_cluster_nodes()[:1]

        with pytest.raises(ValidationError):
            ClusterSettings(nodes=nodes)

    def test_unknown_store_backend_is_rejected(self):
        with pytest.raises(ValidationError):
            ClusterSettings(store_backend="postgres")

    def test_from_environment(self):
        environ = {
            "SERVER_ID": "2",
            "PORT": "9002",
            "CLUSTER_NODES": "1@localhost:9001,2@localhost:9002",
            "STORE_BACKEND": "MEMORY",
            "LOG_LEVEL": "DEBUG",
            "ELECTION_STARTUP_DELAY": "-1",
            "CLOCK_SYNC_INTERVAL": "0",
        }

        settings = ClusterSettings.from_environment(environ)

        assert settings.server_id == 2
        assert settings.listen_port == 9002
        assert len(settings.nodes) == 2
        assert settings.store_backend == STORE_BACKEND_MEMORY
        assert settings.log_level == "debug"
        assert settings.election_startup_delay == -1
        assert settings.clock_sync_interval == 0

    def test_from_empty_environment_uses_defaults(self):
        settings = ClusterSettings.from_environment({})

        assert settings == ClusterSettings()
