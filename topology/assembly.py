#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Topology Assembly Module

Runs the assembly steps in their required order for a ScenarioConfig:

1. register the cluster pools and the backbone pool
2. build every cluster
3. select one representative per cluster
4. assemble the backbone over the representatives

Assembly is all-or-nothing: any error propagates and no partial
topology is returned.
"""

import logging
from typing import Any, List, Optional

from .addressing import SubnetAllocator
from .backbone import BackboneAssembler
from .cluster import ClusterBuilder
from .config import ScenarioConfig
from .model import Cluster, Topology
from .selector import RepresentativeSelector


logger = logging.getLogger(__name__)

BACKBONE_POOL = "backbone"


def cluster_pool_name(i: int) -> str:
    return f"cluster-{i}"


class TopologyAssembler:
    """
    Assembles one Topology on one engine.

    Parameters
    ----------
    config : ScenarioConfig
        Scenario to build.
    engine : SimulationEngine
        Target engine.
    selector : RepresentativeSelector, optional
        Selector to use; one seeded from ``config.seed`` by default.
    """

    def __init__(
        self,
        config: ScenarioConfig,
        engine: Any,
        selector: Optional[RepresentativeSelector] = None,
    ):
        self.config = config
        self.engine = engine
        self.selector = selector or RepresentativeSelector(config.seed)
        self.allocator = self._make_allocator(config)

    @staticmethod
    def _make_allocator(config: ScenarioConfig) -> SubnetAllocator:
        allocator = SubnetAllocator()
        for i, base in enumerate(config.cluster_bases):
            allocator.add_pool(cluster_pool_name(i), base, config.subnet_mask, config.pool_prefix)
        allocator.add_pool(BACKBONE_POOL, config.backbone_base, config.subnet_mask, config.pool_prefix)
        return allocator

    def assemble(self) -> Topology:
        """Build clusters, pick representatives and join them on the backbone."""
        config = self.config
        config.validate()

        builder = ClusterBuilder(
            self.engine,
            self.allocator,
            [cluster_pool_name(i) for i in range(len(config.cluster_bases))],
        )
        clusters: List[Cluster] = [
            builder.build_cluster(size, config.channel, config.mobility, config.routing)
            for size in config.cluster_sizes
        ]

        representatives = [self.selector.select_representative(c) for c in clusters]

        backbone = BackboneAssembler(
            self.engine, self.allocator, BACKBONE_POOL
        ).assemble_backbone(representatives, config.backbone_link)

        topology = Topology(clusters=tuple(clusters), backbone=backbone, seed=self.selector.seed)
        logger.info(
            f"Topology assembled: {len(clusters)} clusters, {topology.node_count} nodes, "
            f"seed {topology.seed}"
        )
        return topology


def assemble_topology(config: ScenarioConfig, engine: Any) -> Topology:
    """Assemble the topology described by ``config`` on ``engine``."""
    return TopologyAssembler(config, engine).assemble()
