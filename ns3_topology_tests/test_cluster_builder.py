#!/usr/bin/env python3
"""
Tests for the Cluster Builder

These tests verify:
1. A cluster of size n has exactly n nodes, one address each
2. Every cluster gets a private wifi channel
3. Subnets come from the cycled cluster pools and never overlap
4. Grid placement is offset per cluster index
5. Size 1 is legal, size 0 is rejected
"""

import ipaddress
import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from topology import (
    ChannelConfig,
    ClusterBuilder,
    ConfigurationError,
    MobilityConfig,
    RoutingProtocol,
)


@pytest.fixture
def builder(mock_engine, allocator):
    return ClusterBuilder(mock_engine, allocator, ["cluster-0", "cluster-1", "cluster-2"])


def build(builder, size):
    return builder.build_cluster(size, ChannelConfig(), MobilityConfig(), RoutingProtocol.OLSR)


class TestBuildCluster:
    """Tests for single cluster construction."""

    def test_node_count_and_addresses(self, builder, mock_engine):
        cluster = build(builder, 4)

        assert cluster.size == 4
        assert mock_engine.node_count == 4
        assert cluster.subnet.network == ipaddress.IPv4Network("192.167.0.0/24")
        for node in cluster.nodes:
            assert len(node.interfaces) == 1
            assert node.interfaces[0].kind == "wifi"
            assert node.interfaces[0].address in cluster.subnet

    def test_addresses_are_distinct_and_ascending(self, builder):
        cluster = build(builder, 5)
        addresses = [n.interfaces[0].address.ip for n in cluster.nodes]
        assert addresses == sorted(addresses)
        assert len(set(addresses)) == 5
        assert str(addresses[0]) == "192.167.0.1"

    def test_engine_devices_match_model(self, builder, mock_engine):
        cluster = build(builder, 3)
        for node in cluster.nodes:
            engine_node = mock_engine.get_node(node.node_id)
            assert engine_node.routing == RoutingProtocol.OLSR
            assert len(engine_node.devices) == 1
            assert engine_node.devices[0].addresses == [node.interfaces[0].address]
            assert engine_node.devices[0].channel is cluster.channel

    def test_private_channel_per_cluster(self, builder):
        a = build(builder, 2)
        b = build(builder, 2)
        assert a.channel is not b.channel
        assert {d.node_id for d in a.channel.devices} == {n.node_id for n in a.nodes}
        assert {d.node_id for d in b.channel.devices} == {n.node_id for n in b.nodes}

    def test_pools_cycle_over_clusters(self, builder):
        clusters = [build(builder, 1) for _ in range(4)]
        networks = [str(c.subnet) for c in clusters]
        assert networks == [
            "192.167.0.0/24",
            "192.168.0.0/24",
            "192.169.0.0/24",
            "192.167.1.0/24",
        ]
        for i, a in enumerate(clusters):
            for b in clusters[i + 1:]:
                assert not a.subnet.overlaps(b.subnet)

    def test_single_node_cluster(self, builder, mock_engine):
        cluster = build(builder, 1)
        assert cluster.size == 1
        assert len(cluster.nodes[0].interfaces) == 1
        assert mock_engine.get_node(cluster.nodes[0].node_id).mobility is not None

    @pytest.mark.parametrize("size", [0, -3])
    def test_invalid_size(self, builder, mock_engine, size):
        with pytest.raises(ConfigurationError):
            build(builder, size)
        assert mock_engine.node_count == 0
        assert builder.clusters_built == 0

    def test_cluster_index_and_name(self, builder):
        build(builder, 1)
        cluster = build(builder, 2)
        assert cluster.index == 1
        assert cluster.name == "cluster-1"
        assert all(n.cluster_index == 1 for n in cluster.nodes)

    def test_builder_requires_pools(self, mock_engine, allocator):
        with pytest.raises(ConfigurationError):
            ClusterBuilder(mock_engine, allocator, [])


class TestPlacement:
    """Tests for per-cluster grid placement."""

    def test_reference_grid(self):
        positions = MobilityConfig().grid_positions(0, 4)
        expected = np.array([
            [50.0, 20.0, 0.0],
            [55.0, 20.0, 0.0],
            [50.0, 30.0, 0.0],
            [55.0, 30.0, 0.0],
        ])
        np.testing.assert_allclose(positions, expected)

    def test_origin_scales_with_index(self):
        config = MobilityConfig()
        assert config.origin(0) == (50.0, 20.0)
        assert config.origin(1) == (100.0, 40.0)

    def test_column_first_layout(self):
        from topology import GridLayout

        positions = MobilityConfig(layout=GridLayout.COLUMN_FIRST).grid_positions(0, 3)
        np.testing.assert_allclose(positions[:, :2], [[50, 20], [50, 30], [55, 20]])

    def test_nodes_carry_initial_positions(self, builder):
        build(builder, 2)
        cluster = build(builder, 3)
        np.testing.assert_allclose(cluster.nodes[0].position, [100.0, 40.0, 0.0])
        np.testing.assert_allclose(cluster.nodes[2].position, [100.0, 50.0, 0.0])
