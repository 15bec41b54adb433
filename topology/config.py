#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Scenario Configuration Module

Dataclass configuration for a mixed wired/wireless cluster scenario:
wireless channel, mobility, backbone link, tracing and the top-level
ScenarioConfig that ties them together.

Every config converts to and from plain dictionaries so a scenario can
be stored as JSON and loaded with ``ScenarioConfig.from_json_file``.
"""

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from .addressing import SubnetAllocator
from .errors import AllocatorError, ConfigurationError


# Minimum simulation stop time (seconds)
MIN_STOP_TIME = 10.0

DEFAULT_CLUSTER_BASES = ["192.167.0.0", "192.168.0.0", "192.169.0.0"]
DEFAULT_BACKBONE_BASE = "172.16.0.0"
DEFAULT_SUBNET_MASK = "255.255.255.0"


class RoutingProtocol(Enum):
    """Routing protocols the internet stack can be installed with."""
    OLSR = "olsr"
    AODV = "aodv"
    DSDV = "dsdv"


class GridLayout(Enum):
    """Fill order of the grid position allocator."""
    ROW_FIRST = "row_first"
    COLUMN_FIRST = "column_first"


@dataclass
class ChannelConfig:
    """
    Wireless interconnect parameters for one cluster.

    Attributes
    ----------
    mac_type : str
        Wifi MAC type; clusters run in ad hoc mode.
    station_manager : str
        Remote station manager type.
    data_mode : str
        Fixed data mode used by the station manager.
    """
    mac_type: str = "ns3::AdhocWifiMac"
    station_manager: str = "ns3::ConstantRateWifiManager"
    data_mode: str = "OfdmRate54Mbps"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mac_type": self.mac_type,
            "station_manager": self.station_manager,
            "data_mode": self.data_mode,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChannelConfig":
        return cls(
            mac_type=data.get("mac_type", "ns3::AdhocWifiMac"),
            station_manager=data.get("station_manager", "ns3::ConstantRateWifiManager"),
            data_mode=data.get("data_mode", "OfdmRate54Mbps"),
        )


@dataclass
class MobilityConfig:
    """
    Placement grid and bounded random-direction motion for a cluster.

    The grid origin of cluster ``i`` is ``(i + 1) * origin_step`` so
    clusters start spatially separated.

    Attributes
    ----------
    origin_step : Tuple[float, float]
        Per-cluster offset of the grid origin (x, y) in meters.
    spacing : Tuple[float, float]
        Distance between grid columns and rows in meters.
    grid_width : int
        Nodes per row (or per column for COLUMN_FIRST).
    layout : GridLayout
        Grid fill order.
    bounds : Tuple[float, float, float, float]
        Motion rectangle (xmin, xmax, ymin, ymax) in meters.
    speed : float
        Constant node speed in m/s.
    pause : float
        Pause between legs in seconds.
    """
    origin_step: Tuple[float, float] = (50.0, 20.0)
    spacing: Tuple[float, float] = (5.0, 10.0)
    grid_width: int = 2
    layout: GridLayout = GridLayout.ROW_FIRST
    bounds: Tuple[float, float, float, float] = (-500.0, 500.0, -500.0, 500.0)
    speed: float = 2.0
    pause: float = 0.2

    def origin(self, cluster_index: int) -> Tuple[float, float]:
        """Grid origin for the cluster at ``cluster_index``."""
        return (
            (cluster_index + 1) * self.origin_step[0],
            (cluster_index + 1) * self.origin_step[1],
        )

    def grid_positions(self, cluster_index: int, count: int) -> np.ndarray:
        """
        Initial positions of ``count`` nodes of a cluster.

        Returns
        -------
        np.ndarray
            Array of shape (count, 3); z is always 0.
        """
        min_x, min_y = self.origin(cluster_index)
        idx = np.arange(count)
        if self.layout == GridLayout.ROW_FIRST:
            cols, rows = idx % self.grid_width, idx // self.grid_width
        else:
            rows, cols = idx % self.grid_width, idx // self.grid_width
        positions = np.zeros((count, 3), dtype=float)
        positions[:, 0] = min_x + cols * self.spacing[0]
        positions[:, 1] = min_y + rows * self.spacing[1]
        return positions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin_step": list(self.origin_step),
            "spacing": list(self.spacing),
            "grid_width": self.grid_width,
            "layout": self.layout.value,
            "bounds": list(self.bounds),
            "speed": self.speed,
            "pause": self.pause,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MobilityConfig":
        return cls(
            origin_step=tuple(data.get("origin_step", (50.0, 20.0))),
            spacing=tuple(data.get("spacing", (5.0, 10.0))),
            grid_width=data.get("grid_width", 2),
            layout=GridLayout(data.get("layout", "row_first")),
            bounds=tuple(data.get("bounds", (-500.0, 500.0, -500.0, 500.0))),
            speed=data.get("speed", 2.0),
            pause=data.get("pause", 0.2),
        )


@dataclass
class LinkConfig:
    """
    Wired backbone link parameters.

    Attributes
    ----------
    data_rate_bps : int
        Channel data rate in bits per second.
    delay_ms : float
        Propagation delay in milliseconds.
    """
    data_rate_bps: int = 5000000
    delay_ms: float = 2.0

    def to_dict(self) -> Dict[str, Any]:
        return {"data_rate_bps": self.data_rate_bps, "delay_ms": self.delay_ms}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkConfig":
        return cls(
            data_rate_bps=data.get("data_rate_bps", 5000000),
            delay_ms=data.get("delay_ms", 2.0),
        )


@dataclass
class TracingConfig:
    """
    Observation output. Nothing here affects assembly.

    Attributes
    ----------
    animation_file : str, optional
        NetAnim XML output path.
    ascii_trace_file : str, optional
        ASCII trace output path.
    pcap_prefix : str, optional
        Prefix for pcap captures on the backbone devices.
    course_changes : bool
        Log every mobility course change.
    """
    animation_file: Optional[str] = None
    ascii_trace_file: Optional[str] = None
    pcap_prefix: Optional[str] = None
    course_changes: bool = False

    @property
    def enabled(self) -> bool:
        return bool(
            self.animation_file or self.ascii_trace_file
            or self.pcap_prefix or self.course_changes
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "animation_file": self.animation_file,
            "ascii_trace_file": self.ascii_trace_file,
            "pcap_prefix": self.pcap_prefix,
            "course_changes": self.course_changes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TracingConfig":
        return cls(
            animation_file=data.get("animation_file"),
            ascii_trace_file=data.get("ascii_trace_file"),
            pcap_prefix=data.get("pcap_prefix"),
            course_changes=data.get("course_changes", False),
        )


@dataclass
class ScenarioConfig:
    """
    Configuration of a complete clustered scenario.

    Attributes
    ----------
    cluster_sizes : List[int]
        Member count of each cluster, in cluster order.
    stop_time : float
        Simulation stop time in seconds.
    seed : int, optional
        Seed for representative selection. None draws one at random.
    routing : RoutingProtocol
        Routing protocol installed on every node.
    cluster_bases : List[str]
        Base addresses of the cluster subnet pools, cycled over clusters.
    backbone_base : str
        Base address of the backbone subnet pool.
    subnet_mask : str
        Mask of every issued subnet.
    pool_prefix : int
        Prefix length bounding each pool's range.
    min_stop_time : float
        Smallest accepted stop time.
    """
    cluster_sizes: List[int] = field(default_factory=lambda: [4, 3])
    stop_time: float = 20.0
    seed: Optional[int] = None
    routing: RoutingProtocol = RoutingProtocol.OLSR
    cluster_bases: List[str] = field(default_factory=lambda: list(DEFAULT_CLUSTER_BASES))
    backbone_base: str = DEFAULT_BACKBONE_BASE
    subnet_mask: str = DEFAULT_SUBNET_MASK
    pool_prefix: int = 16
    min_stop_time: float = MIN_STOP_TIME
    channel: ChannelConfig = field(default_factory=ChannelConfig)
    mobility: MobilityConfig = field(default_factory=MobilityConfig)
    backbone_link: LinkConfig = field(default_factory=LinkConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)

    @property
    def num_clusters(self) -> int:
        return len(self.cluster_sizes)

    @property
    def total_nodes(self) -> int:
        return sum(self.cluster_sizes)

    def validate(self) -> None:
        """
        Check the scenario before any engine state is created.

        Raises
        ------
        ConfigurationError
            On a stop time that is not finite or below the minimum, no
            clusters, a cluster size below 1, a seed that is not a
            non-negative integer, or subnet pools that are malformed or
            overlap.
        """
        check_stop_time(self.stop_time, self.min_stop_time)
        if not self.cluster_sizes:
            raise ConfigurationError("At least one cluster is required")
        for i, size in enumerate(self.cluster_sizes):
            if not _is_integer(size) or size < 1:
                raise ConfigurationError(
                    f"Cluster {i} size must be a positive integer, got {size!r}"
                )
        if self.seed is not None and (not _is_integer(self.seed) or self.seed < 0):
            raise ConfigurationError(
                f"Seed must be a non-negative integer, got {self.seed!r}"
            )
        if not self.cluster_bases:
            raise ConfigurationError("At least one cluster subnet base is required")
        self._check_pools()

    def _check_pools(self) -> None:
        # Register every pool once on a scratch allocator
        allocator = SubnetAllocator()
        try:
            for i, base in enumerate(self.cluster_bases):
                allocator.add_pool(f"cluster-{i}", base, self.subnet_mask, self.pool_prefix)
            allocator.add_pool("backbone", self.backbone_base, self.subnet_mask, self.pool_prefix)
        except (AllocatorError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid subnet pools: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cluster_sizes": list(self.cluster_sizes),
            "stop_time": self.stop_time,
            "seed": self.seed,
            "routing": self.routing.value,
            "cluster_bases": list(self.cluster_bases),
            "backbone_base": self.backbone_base,
            "subnet_mask": self.subnet_mask,
            "pool_prefix": self.pool_prefix,
            "min_stop_time": self.min_stop_time,
            "channel": self.channel.to_dict(),
            "mobility": self.mobility.to_dict(),
            "backbone_link": self.backbone_link.to_dict(),
            "tracing": self.tracing.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenarioConfig":
        """
        Create from a dictionary.

        Raises
        ------
        ConfigurationError
            If a value cannot be interpreted (e.g. unknown routing).
        """
        try:
            return cls(
                cluster_sizes=list(data.get("cluster_sizes", [4, 3])),
                stop_time=float(data.get("stop_time", 20.0)),
                seed=data.get("seed"),
                routing=RoutingProtocol(data.get("routing", "olsr")),
                cluster_bases=list(data.get("cluster_bases", DEFAULT_CLUSTER_BASES)),
                backbone_base=data.get("backbone_base", DEFAULT_BACKBONE_BASE),
                subnet_mask=data.get("subnet_mask", DEFAULT_SUBNET_MASK),
                pool_prefix=data.get("pool_prefix", 16),
                min_stop_time=float(data.get("min_stop_time", MIN_STOP_TIME)),
                channel=ChannelConfig.from_dict(data.get("channel", {})),
                mobility=MobilityConfig.from_dict(data.get("mobility", {})),
                backbone_link=LinkConfig.from_dict(data.get("backbone_link", {})),
                tracing=TracingConfig.from_dict(data.get("tracing", {})),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid scenario configuration: {e}") from e

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "ScenarioConfig":
        """Load a scenario from a JSON file."""
        path = Path(path)
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not read scenario file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Scenario file {path} must contain a JSON object")
        return cls.from_dict(data)


def check_stop_time(stop_time: float, min_stop_time: float = MIN_STOP_TIME) -> None:
    """Raise ConfigurationError if ``stop_time`` is not a finite time at or above the minimum."""
    if not _is_number(stop_time) or not math.isfinite(stop_time) or stop_time < min_stop_time:
        raise ConfigurationError(
            f"Use a simulation stop time >= {min_stop_time:g} seconds"
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)
