#!/usr/bin/env python3
"""
Tests for Representative Selection and Backbone Assembly

These tests verify:
1. Selected index lies in [0, size - 1]
2. The same seed yields the same index sequence
3. A cluster's representative is chosen exactly once
4. The backbone spans the representatives in selection order
5. Representatives hold two interfaces after assembly
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from topology import (
    BackboneAssembler,
    ChannelConfig,
    ClusterBuilder,
    ConfigurationError,
    LinkConfig,
    MobilityConfig,
    RepresentativeSelector,
    RoutingProtocol,
    SelectionError,
)


@pytest.fixture
def clusters(mock_engine, allocator):
    builder = ClusterBuilder(mock_engine, allocator, ["cluster-0", "cluster-1", "cluster-2"])
    return [
        builder.build_cluster(size, ChannelConfig(), MobilityConfig(), RoutingProtocol.OLSR)
        for size in (4, 3, 1)
    ]


class TestRepresentativeSelector:
    """Tests for RepresentativeSelector."""

    def test_index_in_range(self):
        selector = RepresentativeSelector(seed=3)
        for size in range(1, 20):
            for _ in range(10):
                assert 0 <= selector.draw_index(size) < size

    def test_all_indices_reachable(self):
        selector = RepresentativeSelector(seed=0)
        seen = {selector.draw_index(4) for _ in range(200)}
        assert seen == {0, 1, 2, 3}

    def test_same_seed_same_sequence(self):
        sizes = [4, 3, 7, 2, 9]
        a = RepresentativeSelector(seed=1234)
        b = RepresentativeSelector(seed=1234)
        assert [a.draw_index(s) for s in sizes] == [b.draw_index(s) for s in sizes]

    def test_generator_advances_between_draws(self):
        selector = RepresentativeSelector(seed=5)
        draws = [selector.draw_index(1000) for _ in range(10)]
        assert len(set(draws)) > 1

    def test_random_seed_is_recorded(self):
        selector = RepresentativeSelector()
        assert isinstance(selector.seed, int)
        replay = RepresentativeSelector(selector.seed)
        assert [selector.draw_index(50) for _ in range(5)] == \
               [replay.draw_index(50) for _ in range(5)]

    def test_empty_cluster_rejected(self):
        with pytest.raises(ValueError):
            RepresentativeSelector(seed=0).draw_index(0)

    def test_select_marks_representative(self, clusters):
        selector = RepresentativeSelector(seed=9)
        cluster = clusters[0]
        node = selector.select_representative(cluster)

        assert node is cluster.representative
        assert node in cluster.nodes
        assert node.is_representative
        assert sum(n.is_representative for n in cluster.nodes) == 1
        # Still a full cluster member
        assert node.interfaces[0].address in cluster.subnet

    def test_select_twice_rejected(self, clusters):
        selector = RepresentativeSelector(seed=9)
        selector.select_representative(clusters[1])
        with pytest.raises(SelectionError):
            selector.select_representative(clusters[1])

    def test_rejected_selection_does_not_consume_a_draw(self, clusters):
        selector = RepresentativeSelector(seed=21)
        selector.select_representative(clusters[1])
        with pytest.raises(SelectionError):
            selector.select_representative(clusters[1])
        first = selector.select_representative(clusters[0])

        replay = RepresentativeSelector(seed=21)
        replay.draw_index(clusters[1].size)
        assert clusters[0].representative_index == replay.draw_index(clusters[0].size)
        assert first is clusters[0].representative

    def test_single_node_cluster(self, clusters):
        node = RepresentativeSelector(seed=9).select_representative(clusters[2])
        assert node is clusters[2].nodes[0]


class TestBackboneAssembler:
    """Tests for BackboneAssembler."""

    def test_backbone_spans_representatives(self, clusters, mock_engine, allocator):
        selector = RepresentativeSelector(seed=11)
        reps = [selector.select_representative(c) for c in clusters]

        backbone = BackboneAssembler(mock_engine, allocator, "backbone").assemble_backbone(
            reps, LinkConfig()
        )

        assert backbone.representatives == tuple(reps)
        assert str(backbone.subnet) == "172.16.0.0/24"
        assert [d.node_id for d in backbone.channel.devices] == [n.node_id for n in reps]
        assert backbone.channel.kind == "csma"
        assert backbone.channel.attributes == {"data_rate_bps": 5000000, "delay_ms": 2.0}

    def test_interface_counts(self, clusters, mock_engine, allocator):
        selector = RepresentativeSelector(seed=11)
        reps = [selector.select_representative(c) for c in clusters]
        backbone = BackboneAssembler(mock_engine, allocator, "backbone").assemble_backbone(
            reps, LinkConfig()
        )

        for cluster in clusters:
            for node in cluster.nodes:
                if node.is_representative:
                    assert [i.kind for i in node.interfaces] == ["wifi", "csma"]
                    assert node.interfaces[1].address in backbone.subnet
                else:
                    assert len(node.interfaces) == 1

    def test_backbone_addresses_follow_selection_order(self, clusters, mock_engine, allocator):
        selector = RepresentativeSelector(seed=2)
        reps = [selector.select_representative(c) for c in clusters]
        BackboneAssembler(mock_engine, allocator, "backbone").assemble_backbone(reps, LinkConfig())
        assert [str(n.addresses("csma")[0].ip) for n in reps] == \
               ["172.16.0.1", "172.16.0.2", "172.16.0.3"]

    def test_backbone_subnet_disjoint_from_clusters(self, clusters, mock_engine, allocator):
        selector = RepresentativeSelector(seed=2)
        reps = [selector.select_representative(c) for c in clusters]
        backbone = BackboneAssembler(mock_engine, allocator, "backbone").assemble_backbone(
            reps, LinkConfig()
        )
        for cluster in clusters:
            assert not backbone.subnet.overlaps(cluster.subnet)
        assert allocator.check_disjoint()

    def test_empty_representatives_rejected(self, mock_engine, allocator):
        with pytest.raises(ConfigurationError):
            BackboneAssembler(mock_engine, allocator, "backbone").assemble_backbone([], LinkConfig())
        assert allocator.issued == []
