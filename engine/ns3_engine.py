#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
NS-3 Engine Module

Drives ns-3 through its Python bindings. Modules are imported lazily so
the rest of the package works without an ns-3 build.

Features:
- Dynamic module loading (raises NS3BindingsError when unavailable)
- Yans wifi channels with ad hoc MAC and constant-rate station manager
- CSMA backbone with configurable data rate and delay
- Internet stack with OLSR, AODV or DSDV routing
- Explicit per-device IPv4 assignment
- Random-direction 2D mobility from listed start positions
- NetAnim, ASCII and pcap tracing
"""

from typing import Any, Dict, List, Sequence, Tuple
import ipaddress
import logging
import re

import numpy as np

from topology.config import ChannelConfig, LinkConfig, MobilityConfig, RoutingProtocol
from .base import CourseChangeCallback, EngineError, SimulationEngine


logger = logging.getLogger(__name__)

COURSE_CHANGE_PATH = "/NodeList/*/$ns3::MobilityModel/CourseChange"


def check_ns3_bindings() -> bool:
    """
    Check if NS-3 Python bindings are available.

    Returns
    -------
    bool
        True if NS-3 Python bindings can be imported
    """
    try:
        import ns.core
        return True
    except ImportError:
        return False


class NS3BindingsError(EngineError):
    """Exception raised when NS-3 bindings are not available."""
    pass


class NS3Engine(SimulationEngine):
    """
    Engine backed by the ns-3 simulator.

    ns-3 keeps its simulator and node list as process-wide singletons, so
    only one NS3Engine should be alive at a time.

    Raises
    ------
    NS3BindingsError
        If NS-3 Python bindings are not available
    """

    def __init__(self):
        if not check_ns3_bindings():
            raise NS3BindingsError(
                "NS-3 Python bindings not available.\n"
                "Build NS-3 with: ./ns3 configure --enable-python-bindings && ./ns3 build\n"
                "Or use --engine=mock"
            )

        self._ns = self._import_ns3_modules()
        self._ns["core"].Time.SetResolution(self._ns["core"].Time.NS)

        self._node_count = 0
        # Helpers are kept so tracing can be enabled after installation
        self._wifi_phys: List[Any] = []
        self._csma_helpers: List[Any] = []
        self._internet_helpers: List[Any] = []
        self._animation = None
        self._course_change_callbacks: List[CourseChangeCallback] = []
        self._destroyed = False

    def _import_ns3_modules(self) -> Dict[str, Any]:
        """
        Import NS-3 Python modules.

        Returns
        -------
        Dict[str, Any]
            Dictionary of imported NS-3 modules
        """
        modules = {}

        try:
            import ns.core
            import ns.network
            import ns.internet
            import ns.wifi
            import ns.csma
            import ns.mobility
            import ns.olsr
            import ns.aodv
            import ns.dsdv

            modules["core"] = ns.core
            modules["network"] = ns.network
            modules["internet"] = ns.internet
            modules["wifi"] = ns.wifi
            modules["csma"] = ns.csma
            modules["mobility"] = ns.mobility
            modules["olsr"] = ns.olsr
            modules["aodv"] = ns.aodv
            modules["dsdv"] = ns.dsdv

            # NetAnim is an optional ns-3 module
            try:
                import ns.netanim
                modules["netanim"] = ns.netanim
            except ImportError:
                pass

        except ImportError as e:
            raise NS3BindingsError(f"Failed to import NS-3 modules: {e}")

        return modules

    def _container(self, nodes: Sequence[Any]):
        if len(nodes) == 0:
            raise EngineError("Cannot install on an empty node set")
        container = self._ns["network"].NodeContainer()
        for node in nodes:
            container.Add(node)
        return container

    @staticmethod
    def _unpack(container) -> List[Any]:
        return [container.Get(i) for i in range(container.GetN())]

    def create_nodes(self, count: int) -> List[Any]:
        if count < 1:
            raise EngineError(f"Node count must be positive, got {count}")
        container = self._ns["network"].NodeContainer()
        container.Create(count)
        self._node_count += count
        return [container.Get(i) for i in range(count)]

    def node_id(self, node: Any) -> int:
        return int(node.GetId())

    def create_wifi_channel(self) -> Any:
        return self._ns["wifi"].YansWifiChannelHelper.Default().Create()

    def install_wifi(
        self,
        nodes: Sequence[Any],
        channel: Any,
        config: ChannelConfig
    ) -> List[Any]:
        ns = self._ns
        container = self._container(nodes)

        wifi = ns["wifi"].WifiHelper()
        wifi.SetRemoteStationManager(
            config.station_manager,
            "DataMode", ns["core"].StringValue(config.data_mode)
        )
        mac = ns["wifi"].WifiMacHelper()
        mac.SetType(config.mac_type)
        phy = ns["wifi"].YansWifiPhyHelper()
        phy.SetChannel(channel)

        devices = wifi.Install(phy, mac, container)
        self._wifi_phys.append(phy)
        return self._unpack(devices)

    def install_csma(self, nodes: Sequence[Any], link: LinkConfig) -> Tuple[Any, List[Any]]:
        ns = self._ns
        container = self._container(nodes)

        csma = ns["csma"].CsmaHelper()
        csma.SetChannelAttribute(
            "DataRate", ns["network"].DataRateValue(ns["network"].DataRate(link.data_rate_bps))
        )
        csma.SetChannelAttribute(
            "Delay", ns["core"].TimeValue(ns["core"].MilliSeconds(link.delay_ms))
        )
        devices = csma.Install(container)
        self._csma_helpers.append(csma)

        device_list = self._unpack(devices)
        return device_list[0].GetChannel(), device_list

    def _routing_helper(self, routing: RoutingProtocol):
        ns = self._ns
        if routing == RoutingProtocol.OLSR:
            return ns["olsr"].OlsrHelper()
        elif routing == RoutingProtocol.AODV:
            return ns["aodv"].AodvHelper()
        elif routing == RoutingProtocol.DSDV:
            return ns["dsdv"].DsdvHelper()
        raise EngineError(f"Unsupported routing protocol: {routing}")

    def install_internet_stack(self, nodes: Sequence[Any], routing: RoutingProtocol) -> None:
        container = self._container(nodes)
        internet = self._ns["internet"].InternetStackHelper()
        routing_helper = self._routing_helper(routing)
        internet.SetRoutingHelper(routing_helper)
        internet.Install(container)
        # The stack helper only references the routing helper
        self._internet_helpers.append((internet, routing_helper))

    def assign_addresses(
        self,
        devices: Sequence[Any],
        addresses: Sequence[ipaddress.IPv4Interface]
    ) -> None:
        if len(devices) != len(addresses):
            raise EngineError(
                f"Got {len(addresses)} addresses for {len(devices)} devices"
            )
        network = self._ns["network"]
        helper = self._ns["internet"].Ipv4AddressHelper()
        for device, address in zip(devices, addresses):
            net = address.network
            host = int(address.ip) - int(net.network_address)
            helper.SetBase(
                network.Ipv4Address(str(net.network_address)),
                network.Ipv4Mask(str(net.netmask)),
                network.Ipv4Address(str(ipaddress.IPv4Address(host))),
            )
            helper.Assign(network.NetDeviceContainer(device))

    def install_mobility(
        self,
        nodes: Sequence[Any],
        positions: np.ndarray,
        config: MobilityConfig
    ) -> None:
        ns = self._ns
        container = self._container(nodes)

        allocator = ns["mobility"].ListPositionAllocator()
        for pos in np.asarray(positions, dtype=float):
            allocator.Add(ns["core"].Vector(float(pos[0]), float(pos[1]), float(pos[2])))

        mobility = ns["mobility"].MobilityHelper()
        mobility.SetPositionAllocator(allocator)
        xmin, xmax, ymin, ymax = config.bounds
        mobility.SetMobilityModel(
            "ns3::RandomDirection2dMobilityModel",
            "Bounds", ns["mobility"].RectangleValue(ns["mobility"].Rectangle(xmin, xmax, ymin, ymax)),
            "Speed", ns["core"].StringValue(f"ns3::ConstantRandomVariable[Constant={config.speed}]"),
            "Pause", ns["core"].StringValue(f"ns3::ConstantRandomVariable[Constant={config.pause}]"),
        )
        mobility.Install(container)

    def connect_course_change(self, callback: CourseChangeCallback) -> None:
        """
        Register ``callback`` for course changes of every node.

        Raises
        ------
        NS3BindingsError
            If the bindings refuse a Python callable as trace sink.
            Python sinks are only accepted by bindings that convert
            callables to ns-3 callbacks; other builds fail here instead
            of silently never reporting.
        """
        if not self._course_change_callbacks:
            try:
                self._ns["core"].Config.Connect(COURSE_CHANGE_PATH, self._on_course_change)
            except (TypeError, NotImplementedError) as e:
                raise NS3BindingsError(
                    f"These ns-3 bindings cannot connect a Python course-change sink: {e}"
                ) from e
        self._course_change_callbacks.append(callback)

    def _on_course_change(self, path: str, model: Any) -> None:
        match = re.search(r"/NodeList/(\d+)/", path)
        node_id = int(match.group(1)) if match else -1
        pos = model.GetPosition()
        position = np.array([pos.x, pos.y, pos.z], dtype=float)
        for callback in self._course_change_callbacks:
            callback(node_id, position, self.now)

    def enable_animation(self, path: str) -> None:
        if "netanim" not in self._ns:
            raise NS3BindingsError("ns-3 was built without the netanim module")
        # Must stay referenced until the simulator is destroyed
        self._animation = self._ns["netanim"].AnimationInterface(str(path))

    def enable_ascii_trace(self, path: str) -> None:
        stream = self._ns["network"].AsciiTraceHelper().CreateFileStream(str(path))
        for phy in self._wifi_phys:
            phy.EnableAsciiAll(stream)
        for csma in self._csma_helpers:
            csma.EnableAsciiAll(stream)
        for internet, _ in self._internet_helpers:
            internet.EnableAsciiIpv4All(stream)

    def enable_pcap(self, prefix: str) -> None:
        # Non-promiscuous captures on the CSMA devices
        for csma in self._csma_helpers:
            csma.EnablePcapAll(str(prefix), False)

    def stop(self, at: float) -> None:
        core = self._ns["core"]
        core.Simulator.Stop(core.Seconds(at))

    def run(self) -> None:
        self._ns["core"].Simulator.Run()

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._ns["core"].Simulator.Destroy()
        self._animation = None
        self._wifi_phys.clear()
        self._csma_helpers.clear()
        self._internet_helpers.clear()
        self._course_change_callbacks.clear()
        self._destroyed = True
        logger.info("NS3Engine shut down")

    @property
    def now(self) -> float:
        return float(self._ns["core"].Simulator.Now().GetSeconds())

    @property
    def node_count(self) -> int:
        return self._node_count

    @property
    def event_count(self) -> int:
        return int(self._ns["core"].Simulator.GetEventCount())
