#!/usr/bin/env python3
"""
Pytest Configuration and Shared Fixtures

Provides common fixtures, markers, and utilities for testing topology
assembly and the simulation engines.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


# =============================================================================
# PYTEST MARKERS
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "requires_ns3_bindings: mark test as requiring NS-3 Python bindings"
    )
    config.addinivalue_line(
        "markers", "integration: mark as integration test"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests based on available dependencies."""
    try:
        import ns.core
        ns3_bindings_available = True
    except ImportError:
        ns3_bindings_available = False

    skip_ns3_bindings = pytest.mark.skip(reason="NS-3 Python bindings not available")

    for item in items:
        if "requires_ns3_bindings" in item.keywords and not ns3_bindings_available:
            item.add_marker(skip_ns3_bindings)


# =============================================================================
# SCENARIO FIXTURES
# =============================================================================

@pytest.fixture
def scenario_config():
    """Reference two-cluster scenario with a fixed seed."""
    from topology import ScenarioConfig

    return ScenarioConfig(cluster_sizes=[4, 3], stop_time=20.0, seed=42)


@pytest.fixture
def mock_engine():
    """Fresh mock engine with deterministic mobility."""
    from engine import MockEngine

    engine = MockEngine(mobility_seed=1)
    yield engine
    engine.destroy()


@pytest.fixture
def allocator():
    """Allocator with the reference cluster and backbone pools."""
    from topology import SubnetAllocator

    alloc = SubnetAllocator()
    alloc.add_pool("cluster-0", "192.167.0.0")
    alloc.add_pool("cluster-1", "192.168.0.0")
    alloc.add_pool("cluster-2", "192.169.0.0")
    alloc.add_pool("backbone", "172.16.0.0")
    return alloc


@pytest.fixture
def assembled(scenario_config, mock_engine):
    """Reference topology assembled on the mock engine."""
    from topology import assemble_topology

    return assemble_topology(scenario_config, mock_engine)


# =============================================================================
# NS-3 MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_ns3_modules():
    """Mock NS-3 Python modules."""
    modules = {
        name: MagicMock(name=f"ns.{name}")
        for name in (
            "core", "network", "internet", "wifi", "csma",
            "mobility", "olsr", "aodv", "dsdv", "netanim",
        )
    }

    # NodeContainer.Create(n) followed by Get(i) returns node mocks
    def make_container():
        container = MagicMock(name="NodeContainer")
        container.Get.side_effect = lambda i: MagicMock(name=f"Node{i}", **{"GetId.return_value": i})
        return container

    modules["network"].NodeContainer.side_effect = make_container

    # Install() returns a device container holding one device per node
    def make_devices(*args):
        container = args[-1]
        devices = MagicMock(name="NetDeviceContainer")
        count = container.Add.call_count
        devices.GetN.return_value = count
        devices.Get.side_effect = lambda i: MagicMock(name=f"Device{i}")
        return devices

    modules["wifi"].WifiHelper.return_value.Install.side_effect = make_devices
    modules["csma"].CsmaHelper.return_value.Install.side_effect = make_devices

    modules["core"].Simulator.Now.return_value.GetSeconds.return_value = 20.0
    modules["core"].Simulator.GetEventCount.return_value = 123
    return modules


@pytest.fixture
def mock_ns3_bindings(mock_ns3_modules):
    """Patch NS-3 imports to return mocks."""
    ns_package = MagicMock(name="ns")
    for name, module in mock_ns3_modules.items():
        setattr(ns_package, name, module)

    with patch.dict("sys.modules", {
        "ns": ns_package,
        **{f"ns.{name}": module for name, module in mock_ns3_modules.items()},
    }):
        yield mock_ns3_modules
