#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Topology Data Model

Nodes, interfaces, clusters, the backbone and the assembled topology.
Engine objects (node, device and channel handles) are carried as opaque
values; nothing here calls into the engine.
"""

import ipaddress
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .addressing import Subnet
from .config import LinkConfig, MobilityConfig
from .errors import SelectionError


WIFI = "wifi"
CSMA = "csma"


@dataclass
class Interface:
    """
    An IPv4 interface installed on a node.

    Attributes
    ----------
    kind : str
        ``"wifi"`` for cluster interfaces, ``"csma"`` for backbone ones.
    device : Any
        Engine device handle.
    address : ipaddress.IPv4Interface
        Address with its prefix.
    """
    kind: str
    device: Any
    address: ipaddress.IPv4Interface

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "address": str(self.address)}


@dataclass(eq=False)
class Node:
    """
    A simulation participant.

    Attributes
    ----------
    node_id : int
        Engine-wide node id.
    handle : Any
        Engine node handle.
    cluster_index : int
        Index of the cluster the node belongs to.
    position : np.ndarray
        Initial position [x, y, z] in meters.
    interfaces : List[Interface]
        Installed interfaces, cluster interface first.
    """
    node_id: int
    handle: Any
    cluster_index: int
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    interfaces: List[Interface] = field(default_factory=list)
    is_representative: bool = False

    def __post_init__(self):
        if not isinstance(self.position, np.ndarray):
            self.position = np.array(self.position, dtype=float)

    def add_interface(self, interface: Interface) -> None:
        self.interfaces.append(interface)

    def addresses(self, kind: Optional[str] = None) -> List[ipaddress.IPv4Interface]:
        """Addresses of the node, optionally only of one interface kind."""
        return [i.address for i in self.interfaces if kind is None or i.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.node_id,
            "cluster": self.cluster_index,
            "position": self.position.tolist(),
            "representative": self.is_representative,
            "interfaces": [i.to_dict() for i in self.interfaces],
        }


@dataclass(eq=False)
class Cluster:
    """
    A group of nodes sharing one wireless channel and one subnet.

    ``nodes`` is a tuple fixed at construction. The representative is
    set exactly once through ``set_representative``.
    """
    index: int
    nodes: Tuple[Node, ...]
    subnet: Subnet
    channel: Any
    mobility: MobilityConfig
    representative_index: Optional[int] = None

    @property
    def name(self) -> str:
        return f"cluster-{self.index}"

    @property
    def size(self) -> int:
        return len(self.nodes)

    @property
    def representative(self) -> Optional[Node]:
        if self.representative_index is None:
            return None
        return self.nodes[self.representative_index]

    def set_representative(self, index: int) -> Node:
        """
        Designate the member at ``index`` as representative.

        Raises
        ------
        SelectionError
            If a representative was already chosen.
        IndexError
            If ``index`` is outside the cluster.
        """
        if self.representative_index is not None:
            raise SelectionError(
                f"{self.name} already has representative at index "
                f"{self.representative_index}"
            )
        if not 0 <= index < self.size:
            raise IndexError(f"{self.name}: index {index} out of range [0, {self.size - 1}]")
        self.representative_index = index
        node = self.nodes[index]
        node.is_representative = True
        return node

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "name": self.name,
            "size": self.size,
            "subnet": str(self.subnet),
            "representative_index": self.representative_index,
            "nodes": [n.to_dict() for n in self.nodes],
        }


@dataclass(eq=False)
class Backbone:
    """Wired network joining one representative per cluster."""
    representatives: Tuple[Node, ...]
    subnet: Subnet
    channel: Any
    link: LinkConfig

    @property
    def size(self) -> int:
        return len(self.representatives)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subnet": str(self.subnet),
            "representatives": [n.node_id for n in self.representatives],
            "link": self.link.to_dict(),
        }


@dataclass(eq=False)
class Topology:
    """
    All clusters plus the backbone; what the driver runs.

    Attributes
    ----------
    clusters : Tuple[Cluster, ...]
        Clusters in construction order.
    backbone : Backbone
        The backbone network.
    seed : int
        Seed the representative selector ran with.
    """
    clusters: Tuple[Cluster, ...]
    backbone: Backbone
    seed: int

    @property
    def nodes(self) -> List[Node]:
        return [node for cluster in self.clusters for node in cluster.nodes]

    @property
    def node_count(self) -> int:
        return sum(cluster.size for cluster in self.clusters)

    @property
    def representative_indices(self) -> List[int]:
        return [cluster.representative_index for cluster in self.clusters]

    def subnets(self) -> List[Subnet]:
        """Cluster subnets in cluster order, followed by the backbone subnet."""
        return [cluster.subnet for cluster in self.clusters] + [self.backbone.subnet]

    def summary(self) -> Dict[str, Any]:
        """Short structural description, used for logging and the CLI."""
        return {
            "clusters": len(self.clusters),
            "nodes": self.node_count,
            "cluster_subnets": [str(c.subnet) for c in self.clusters],
            "backbone_subnet": str(self.backbone.subnet),
            "representatives": self.representative_indices,
            "seed": self.seed,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "clusters": [c.to_dict() for c in self.clusters],
            "backbone": self.backbone.to_dict(),
        }
