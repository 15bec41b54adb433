#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mock Engine Module

In-process discrete-event engine used when ns-3 is not installed and
throughout the tests.

Features:
- Event queue ordered by time, then by insertion
- Stop event and run-to-completion semantics matching ns-3's Simulator
- Bookkeeping of nodes, devices, channels, stacks and addresses, with
  the same misuse checks ns-3 aborts on
- Random-direction 2D mobility with course-change notifications
- NetAnim-style XML animation output and an ASCII trace
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import heapq
import ipaddress
import logging
import math
import xml.etree.ElementTree as ET

import numpy as np

from topology.config import ChannelConfig, LinkConfig, MobilityConfig, RoutingProtocol
from .base import CourseChangeCallback, EngineError, SimulationEngine


logger = logging.getLogger(__name__)


@dataclass
class MockChannel:
    """A wireless or CSMA channel."""
    channel_id: int
    kind: str  # "wifi" or "csma"
    attributes: Dict[str, Any] = field(default_factory=dict)
    devices: List["MockDevice"] = field(default_factory=list)


@dataclass
class MockDevice:
    """A network device attached to one node and one channel."""
    device_id: int
    node_id: int
    channel: MockChannel
    addresses: List[ipaddress.IPv4Interface] = field(default_factory=list)

    @property
    def kind(self) -> str:
        return self.channel.kind


@dataclass
class MockMobility:
    """Random-direction 2D state of one node."""
    bounds: Tuple[float, float, float, float]
    speed: float
    pause: float
    origin: np.ndarray
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    leg_start: float = 0.0
    leg_end: float = 0.0

    def position_at(self, t: float) -> np.ndarray:
        elapsed = min(max(t, self.leg_start), self.leg_end) - self.leg_start
        return self.origin + self.velocity * elapsed


@dataclass
class MockNode:
    """A node and everything installed on it."""
    node_id: int
    devices: List[MockDevice] = field(default_factory=list)
    routing: Optional[RoutingProtocol] = None
    mobility: Optional[MockMobility] = None


class MockEngine(SimulationEngine):
    """
    Discrete-event engine without external dependencies.

    Parameters
    ----------
    mobility_seed : int, optional
        Seed of the generator that drives node motion.
    """

    def __init__(self, mobility_seed: Optional[int] = None):
        self._rng = np.random.default_rng(mobility_seed)

        self._nodes: List[MockNode] = []
        self._channels: List[MockChannel] = []
        self._devices: List[MockDevice] = []

        # Event queue: (time, sequence, callback, args)
        self._events: List[Tuple[float, int, Callable, tuple]] = []
        self._sequence = 0
        self._now = 0.0
        self._event_count = 0
        self._stop_requested = False
        self._stopped_by_event = False
        self._running = False
        self._destroyed = False

        # Tracing
        self._course_change_callbacks: List[CourseChangeCallback] = []
        self._animation_path: Optional[str] = None
        self._position_updates: List[Tuple[float, int, float, float]] = []
        self._ascii_path: Optional[str] = None
        self._ascii_lines: List[str] = []

    # -------------------------------------------------------------------------
    # Scheduler
    # -------------------------------------------------------------------------

    def schedule(self, delay: float, callback: Callable, *args) -> None:
        """Schedule ``callback(*args)`` ``delay`` seconds from now."""
        if delay < 0:
            raise EngineError(f"Cannot schedule an event in the past (delay={delay})")
        heapq.heappush(self._events, (self._now + delay, self._sequence, callback, args))
        self._sequence += 1

    def stop(self, at: float) -> None:
        self._check_alive()
        if at < self._now:
            raise EngineError(f"Stop time {at} is before current time {self._now}")
        self.schedule(at - self._now, self._handle_stop)

    def _handle_stop(self) -> None:
        self._stop_requested = True

    def run(self) -> None:
        self._check_alive()
        self._running = True
        self._stop_requested = False
        logger.debug(f"MockEngine running with {len(self._events)} scheduled events")
        try:
            while self._events and not self._stop_requested:
                time, _, callback, args = heapq.heappop(self._events)
                self._now = time
                callback(*args)
                self._event_count += 1
        finally:
            self._running = False
        self._stopped_by_event = self._stop_requested
        logger.debug(
            f"MockEngine finished at t={self._now:.3f}s after {self._event_count} events"
        )

    def destroy(self) -> None:
        if self._destroyed:
            return
        if self._animation_path:
            self._write_animation()
        if self._ascii_path:
            self._write_ascii_trace()
        self._events.clear()
        self._course_change_callbacks.clear()
        self._destroyed = True
        logger.debug("MockEngine destroyed")

    @property
    def now(self) -> float:
        return self._now

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def event_count(self) -> int:
        return self._event_count

    @property
    def pending_events(self) -> int:
        return len(self._events)

    @property
    def stopped_by_event(self) -> bool:
        """Whether the last ``run`` ended on the stop event."""
        return self._stopped_by_event

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    # -------------------------------------------------------------------------
    # Topology construction
    # -------------------------------------------------------------------------

    def _check_alive(self) -> None:
        if self._destroyed:
            raise EngineError("Engine has been destroyed")

    def _check_mutable(self) -> None:
        self._check_alive()
        if self._running:
            raise EngineError("Topology cannot change while the engine is running")

    def _resolve(self, nodes: Sequence[Any]) -> List[MockNode]:
        if len(nodes) == 0:
            raise EngineError("Cannot install on an empty node set")
        resolved = []
        for node in nodes:
            if not isinstance(node, MockNode) or node.node_id >= len(self._nodes) \
                    or self._nodes[node.node_id] is not node:
                raise EngineError(f"Node {node!r} does not belong to this engine")
            resolved.append(node)
        return resolved

    def _new_channel(self, kind: str, **attributes) -> MockChannel:
        channel = MockChannel(channel_id=len(self._channels), kind=kind, attributes=attributes)
        self._channels.append(channel)
        return channel

    def _attach(self, node: MockNode, channel: MockChannel) -> MockDevice:
        device = MockDevice(device_id=len(self._devices), node_id=node.node_id, channel=channel)
        self._devices.append(device)
        channel.devices.append(device)
        node.devices.append(device)
        return device

    def create_nodes(self, count: int) -> List[MockNode]:
        self._check_mutable()
        if count < 1:
            raise EngineError(f"Node count must be positive, got {count}")
        created = []
        for _ in range(count):
            node = MockNode(node_id=len(self._nodes))
            self._nodes.append(node)
            created.append(node)
        return created

    def node_id(self, node: MockNode) -> int:
        return node.node_id

    def get_node(self, node_id: int) -> MockNode:
        return self._nodes[node_id]

    @property
    def channels(self) -> List[MockChannel]:
        return list(self._channels)

    def create_wifi_channel(self) -> MockChannel:
        self._check_mutable()
        return self._new_channel("wifi")

    def install_wifi(
        self,
        nodes: Sequence[Any],
        channel: MockChannel,
        config: ChannelConfig
    ) -> List[MockDevice]:
        self._check_mutable()
        resolved = self._resolve(nodes)
        if not isinstance(channel, MockChannel) or channel.kind != "wifi":
            raise EngineError(f"Not a wifi channel: {channel!r}")
        channel.attributes.update(config.to_dict())
        return [self._attach(node, channel) for node in resolved]

    def install_csma(self, nodes: Sequence[Any], link: LinkConfig) -> Tuple[MockChannel, List[MockDevice]]:
        self._check_mutable()
        resolved = self._resolve(nodes)
        channel = self._new_channel("csma", **link.to_dict())
        return channel, [self._attach(node, channel) for node in resolved]

    def install_internet_stack(self, nodes: Sequence[Any], routing: RoutingProtocol) -> None:
        self._check_mutable()
        for node in self._resolve(nodes):
            if node.routing is not None:
                raise EngineError(f"Node {node.node_id} already has an internet stack")
            node.routing = routing

    def assign_addresses(
        self,
        devices: Sequence[Any],
        addresses: Sequence[ipaddress.IPv4Interface]
    ) -> None:
        self._check_mutable()
        if len(devices) != len(addresses):
            raise EngineError(
                f"Got {len(addresses)} addresses for {len(devices)} devices"
            )
        for device, address in zip(devices, addresses):
            if not isinstance(device, MockDevice):
                raise EngineError(f"Not a device of this engine: {device!r}")
            if self._nodes[device.node_id].routing is None:
                raise EngineError(
                    f"Device {device.device_id} is on node {device.node_id} "
                    f"without an internet stack"
                )
            device.addresses.append(address)

    def install_mobility(
        self,
        nodes: Sequence[Any],
        positions: np.ndarray,
        config: MobilityConfig
    ) -> None:
        self._check_mutable()
        resolved = self._resolve(nodes)
        positions = np.asarray(positions, dtype=float)
        if positions.shape != (len(resolved), 3):
            raise EngineError(
                f"Expected positions of shape ({len(resolved)}, 3), got {positions.shape}"
            )
        xmin, xmax, ymin, ymax = config.bounds
        for node, position in zip(resolved, positions):
            if not (xmin <= position[0] <= xmax and ymin <= position[1] <= ymax):
                raise EngineError(
                    f"Node {node.node_id} position {position.tolist()} is outside "
                    f"mobility bounds {config.bounds}"
                )
            node.mobility = MockMobility(
                bounds=tuple(config.bounds),
                speed=config.speed,
                pause=config.pause,
                origin=position.copy(),
            )
            # Motion starts with a pause, as in ns-3
            self.schedule(config.pause, self._start_leg, node)

    # -------------------------------------------------------------------------
    # Mobility
    # -------------------------------------------------------------------------

    def get_position(self, node: Any, t: Optional[float] = None) -> np.ndarray:
        """Position of ``node`` at time ``t`` (default: now)."""
        mobility = node.mobility
        if mobility is None:
            raise EngineError(f"Node {node.node_id} has no mobility model")
        return mobility.position_at(self._now if t is None else t)

    def _start_leg(self, node: MockNode) -> None:
        mobility = node.mobility
        position = mobility.position_at(self._now)
        theta = self._rng.uniform(0.0, 2 * math.pi)
        direction = np.array([math.cos(theta), math.sin(theta), 0.0])
        duration = self._time_to_bounds(position, direction, mobility)

        mobility.origin = position
        mobility.velocity = direction * mobility.speed
        mobility.leg_start = self._now
        mobility.leg_end = self._now + duration
        self._notify_course_change(node, position)
        if not math.isinf(duration):
            self.schedule(duration, self._end_leg, node)

    def _end_leg(self, node: MockNode) -> None:
        mobility = node.mobility
        position = mobility.position_at(self._now)
        xmin, xmax, ymin, ymax = mobility.bounds
        position[0] = min(max(position[0], xmin), xmax)
        position[1] = min(max(position[1], ymin), ymax)
        mobility.origin = position
        mobility.velocity = np.zeros(3)
        mobility.leg_start = mobility.leg_end = self._now
        self._notify_course_change(node, position)
        self.schedule(mobility.pause, self._start_leg, node)

    @staticmethod
    def _time_to_bounds(position: np.ndarray, direction: np.ndarray, mobility: MockMobility) -> float:
        if mobility.speed <= 0:
            return math.inf
        xmin, xmax, ymin, ymax = mobility.bounds
        times = []
        for axis, (low, high) in enumerate(((xmin, xmax), (ymin, ymax))):
            d = direction[axis]
            if d > 0:
                times.append((high - position[axis]) / d)
            elif d < 0:
                times.append((low - position[axis]) / d)
        distance = max(min(times), 0.0) if times else math.inf
        return distance / mobility.speed

    def _notify_course_change(self, node: MockNode, position: np.ndarray) -> None:
        self._position_updates.append((self._now, node.node_id, position[0], position[1]))
        if self._ascii_path:
            self._ascii_lines.append(
                f"c {self._now:.6f} /NodeList/{node.node_id}/$ns3::MobilityModel/CourseChange "
                f"x={position[0]:.3f} y={position[1]:.3f} z={position[2]:.3f}"
            )
        for callback in self._course_change_callbacks:
            callback(node.node_id, position.copy(), self._now)

    # -------------------------------------------------------------------------
    # Tracing
    # -------------------------------------------------------------------------

    def connect_course_change(self, callback: CourseChangeCallback) -> None:
        self._check_alive()
        self._course_change_callbacks.append(callback)

    def enable_animation(self, path: str) -> None:
        self._check_alive()
        self._animation_path = str(path)

    def enable_ascii_trace(self, path: str) -> None:
        self._check_alive()
        self._ascii_path = str(path)

    def enable_pcap(self, prefix: str) -> None:
        logger.warning(f"MockEngine does not capture packets; pcap prefix {prefix!r} ignored")

    def _write_animation(self) -> None:
        root = ET.Element("anim", ver="netanim-3.108", filetype="animation")
        for node in self._nodes:
            origin = self._initial_position(node)
            ET.SubElement(
                root, "node", id=str(node.node_id), sysId="0",
                locX=f"{origin[0]:g}", locY=f"{origin[1]:g}",
            )
        for node in self._nodes:
            addresses = [str(a.ip) for d in node.devices for a in d.addresses]
            if addresses:
                ip = ET.SubElement(root, "ip", n=str(node.node_id))
                for address in addresses:
                    ET.SubElement(ip, "address").text = address
        for channel in self._channels:
            if channel.kind != "csma":
                continue
            ids = [d.node_id for d in channel.devices]
            for a, b in zip(ids, ids[1:]):
                ET.SubElement(root, "link", fromId=str(a), toId=str(b))
        for t, node_id, x, y in self._position_updates:
            ET.SubElement(root, "nu", p="p", t=f"{t:g}", id=str(node_id), x=f"{x:g}", y=f"{y:g}")
        ET.ElementTree(root).write(self._animation_path, encoding="utf-8", xml_declaration=True)
        logger.info(f"Animation trace written to {self._animation_path}")

    def _initial_position(self, node: MockNode) -> np.ndarray:
        for _, node_id, x, y in self._position_updates:
            if node_id == node.node_id:
                return np.array([x, y, 0.0])
        if node.mobility is not None:
            return node.mobility.origin
        return np.zeros(3)

    def _write_ascii_trace(self) -> None:
        with open(self._ascii_path, "w") as f:
            for line in self._ascii_lines:
                f.write(line + "\n")
        logger.info(f"ASCII trace written to {self._ascii_path}")
