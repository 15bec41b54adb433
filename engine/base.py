#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Simulation Engine Interface

Abstract interface for the discrete-event engines that execute an
assembled topology. The topology code only talks to an engine through
this interface; node, device and channel handles returned by an engine
are opaque to it.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Sequence, Tuple
import ipaddress

import numpy as np

from topology.config import ChannelConfig, LinkConfig, MobilityConfig, RoutingProtocol
from topology.errors import TopologyError


# callback(node_id, position, time)
CourseChangeCallback = Callable[[int, np.ndarray, float], None]


class EngineError(TopologyError):
    """Error raised by an engine while installing or running a topology."""
    pass


class SimulationEngine(ABC):
    """
    Abstract base class for simulation engines.

    Implementations create nodes, install interconnects, stacks,
    addresses and mobility, and own the stop/run/destroy lifecycle.
    """

    @abstractmethod
    def create_nodes(self, count: int) -> List[Any]:
        """
        Create ``count`` nodes.

        Returns
        -------
        List[Any]
            Node handles, in creation order
        """
        pass

    @abstractmethod
    def node_id(self, node: Any) -> int:
        """Engine-wide id of a node handle."""
        pass

    @abstractmethod
    def create_wifi_channel(self) -> Any:
        """Create a fresh wireless channel and return its handle."""
        pass

    @abstractmethod
    def install_wifi(
        self,
        nodes: Sequence[Any],
        channel: Any,
        config: ChannelConfig
    ) -> List[Any]:
        """
        Install one wifi device per node on ``channel``.

        Returns
        -------
        List[Any]
            Device handles, one per node, in node order
        """
        pass

    @abstractmethod
    def install_csma(self, nodes: Sequence[Any], link: LinkConfig) -> Tuple[Any, List[Any]]:
        """
        Install one shared CSMA channel spanning ``nodes``.

        Returns
        -------
        Tuple[Any, List[Any]]
            The channel handle and one device handle per node
        """
        pass

    @abstractmethod
    def install_internet_stack(self, nodes: Sequence[Any], routing: RoutingProtocol) -> None:
        """Install the IPv4 stack with ``routing`` on every node."""
        pass

    @abstractmethod
    def assign_addresses(
        self,
        devices: Sequence[Any],
        addresses: Sequence[ipaddress.IPv4Interface]
    ) -> None:
        """Assign ``addresses[i]`` to ``devices[i]``."""
        pass

    @abstractmethod
    def install_mobility(
        self,
        nodes: Sequence[Any],
        positions: np.ndarray,
        config: MobilityConfig
    ) -> None:
        """
        Place ``nodes`` at ``positions`` and install the motion model.

        Parameters
        ----------
        nodes : Sequence[Any]
            Node handles
        positions : np.ndarray
            Initial positions, shape (len(nodes), 3)
        config : MobilityConfig
            Motion bounds, speed and pause
        """
        pass

    @abstractmethod
    def connect_course_change(self, callback: CourseChangeCallback) -> None:
        """Call ``callback`` whenever a node's mobility model changes course."""
        pass

    @abstractmethod
    def enable_animation(self, path: str) -> None:
        """Write an animation trace to ``path``."""
        pass

    @abstractmethod
    def enable_ascii_trace(self, path: str) -> None:
        """Write an ASCII trace of installed devices to ``path``."""
        pass

    @abstractmethod
    def enable_pcap(self, prefix: str) -> None:
        """Capture the backbone devices into pcap files named after ``prefix``."""
        pass

    @abstractmethod
    def stop(self, at: float) -> None:
        """Schedule the stop event at absolute time ``at`` (seconds)."""
        pass

    @abstractmethod
    def run(self) -> None:
        """Process events until the stop event or until none remain."""
        pass

    @abstractmethod
    def destroy(self) -> None:
        """Release every engine-owned resource."""
        pass

    @property
    @abstractmethod
    def now(self) -> float:
        """Current simulation time in seconds."""
        pass

    @property
    @abstractmethod
    def node_count(self) -> int:
        """Number of nodes created so far."""
        pass

    @property
    def event_count(self) -> int:
        """Number of events executed so far."""
        return 0

    @property
    def name(self) -> str:
        """Engine implementation name."""
        return self.__class__.__name__

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.destroy()
        return False
