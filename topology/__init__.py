#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Topology Package

Assembles a hierarchical mixed wired/wireless topology: wireless
clusters on disjoint IPv4 subnets, one randomly chosen representative
per cluster, and a wired backbone joining the representatives. The
assembled topology is then run on a simulation engine (see the
``engine`` package).

Example usage:

    from engine import create_engine
    from topology import ScenarioConfig, run_scenario

    config = ScenarioConfig(cluster_sizes=[4, 3], stop_time=20, seed=7)
    with create_engine("mock") as engine:
        topology, report = run_scenario(config, engine)
"""

from .errors import (
    TopologyError,
    ConfigurationError,
    AllocatorError,
    AddressExhaustedError,
    SelectionError,
)

from .addressing import (
    Subnet,
    SubnetPool,
    SubnetAllocator,
)

from .config import (
    ChannelConfig,
    MobilityConfig,
    LinkConfig,
    TracingConfig,
    ScenarioConfig,
    RoutingProtocol,
    GridLayout,
    MIN_STOP_TIME,
    check_stop_time,
)

from .model import (
    Interface,
    Node,
    Cluster,
    Backbone,
    Topology,
)

from .cluster import ClusterBuilder
from .selector import RepresentativeSelector
from .backbone import BackboneAssembler

from .assembly import (
    TopologyAssembler,
    assemble_topology,
)

from .driver import (
    SimulationDriver,
    RunReport,
    install_tracing,
    run_scenario,
)


__all__ = [
    # Errors
    "TopologyError",
    "ConfigurationError",
    "AllocatorError",
    "AddressExhaustedError",
    "SelectionError",

    # Addressing
    "Subnet",
    "SubnetPool",
    "SubnetAllocator",

    # Configuration
    "ChannelConfig",
    "MobilityConfig",
    "LinkConfig",
    "TracingConfig",
    "ScenarioConfig",
    "RoutingProtocol",
    "GridLayout",
    "MIN_STOP_TIME",
    "check_stop_time",

    # Model
    "Interface",
    "Node",
    "Cluster",
    "Backbone",
    "Topology",

    # Assembly
    "ClusterBuilder",
    "RepresentativeSelector",
    "BackboneAssembler",
    "TopologyAssembler",
    "assemble_topology",

    # Driver
    "SimulationDriver",
    "RunReport",
    "install_tracing",
    "run_scenario",
]

__version__ = "1.0.0"
