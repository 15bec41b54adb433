#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cluster Builder Module

Builds one wireless cluster at a time on an engine: nodes, a private
wifi channel, the internet stack, a subnet with one address per node,
and mobility.
"""

import logging
from typing import Any, List, Sequence

from .addressing import SubnetAllocator
from .config import ChannelConfig, MobilityConfig, RoutingProtocol
from .errors import ConfigurationError
from .model import Cluster, Interface, Node, WIFI


logger = logging.getLogger(__name__)


class ClusterBuilder:
    """
    Builds clusters in sequence.

    The builder keeps a running cluster index. Cluster ``i`` draws its
    subnet from ``pool_names[i % len(pool_names)]`` and its grid origin
    from ``MobilityConfig.origin(i)``.

    Parameters
    ----------
    engine : SimulationEngine
        Engine the cluster is installed on.
    allocator : SubnetAllocator
        Allocator holding the cluster pools.
    pool_names : Sequence[str]
        Cluster pool names, cycled over clusters.
    """

    def __init__(self, engine: Any, allocator: SubnetAllocator, pool_names: Sequence[str]):
        if not pool_names:
            raise ConfigurationError("ClusterBuilder needs at least one subnet pool")
        self.engine = engine
        self.allocator = allocator
        self.pool_names = list(pool_names)
        self._next_index = 0

    @property
    def clusters_built(self) -> int:
        return self._next_index

    def pool_for(self, cluster_index: int) -> str:
        return self.pool_names[cluster_index % len(self.pool_names)]

    def build_cluster(
        self,
        size: int,
        channel_config: ChannelConfig,
        mobility_config: MobilityConfig,
        routing: RoutingProtocol,
    ) -> Cluster:
        """
        Create and fully install one cluster.

        Parameters
        ----------
        size : int
            Number of member nodes, at least 1.
        channel_config : ChannelConfig
            Wifi settings; a fresh channel is created for this cluster.
        mobility_config : MobilityConfig
            Placement grid and motion parameters.
        routing : RoutingProtocol
            Routing protocol installed with the internet stack.

        Returns
        -------
        Cluster
            Cluster whose every node holds exactly one wifi interface
            addressed in the cluster subnet.

        Raises
        ------
        ConfigurationError
            If ``size`` is below 1.
        """
        if size < 1:
            raise ConfigurationError(f"Cluster size must be at least 1, got {size}")

        index = self._next_index
        engine = self.engine

        handles = engine.create_nodes(size)

        channel = engine.create_wifi_channel()
        devices = engine.install_wifi(handles, channel, channel_config)

        engine.install_internet_stack(handles, routing)

        subnet = self.allocator.allocate(self.pool_for(index))
        addresses = [subnet.next_address() for _ in devices]
        engine.assign_addresses(devices, addresses)
        self.allocator.advance(subnet)

        positions = mobility_config.grid_positions(index, size)
        engine.install_mobility(handles, positions, mobility_config)

        nodes = self._make_nodes(index, handles, devices, addresses, positions)
        cluster = Cluster(
            index=index,
            nodes=tuple(nodes),
            subnet=subnet,
            channel=channel,
            mobility=mobility_config,
        )
        self._next_index += 1

        logger.info(f"Built {cluster.name}: {size} nodes on {subnet}")
        return cluster

    def _make_nodes(self, index, handles, devices, addresses, positions) -> List[Node]:
        nodes = []
        for handle, device, address, position in zip(handles, devices, addresses, positions):
            node = Node(
                node_id=self.engine.node_id(handle),
                handle=handle,
                cluster_index=index,
                position=position,
            )
            node.add_interface(Interface(kind=WIFI, device=device, address=address))
            logger.debug(f"  node {node.node_id}: {address} at {position[:2].tolist()}")
            nodes.append(node)
        return nodes
