#!/usr/bin/env python3
"""
Engine Package

Simulation engines that execute an assembled topology.

Class Hierarchy
---------------
SimulationEngine (abstract base class)
    Node creation, interconnect / stack / address / mobility installation,
    tracing, and the stop/run/destroy lifecycle.

MockEngine(SimulationEngine)
    In-process discrete-event engine. No external dependencies.

NS3Engine(SimulationEngine)
    ns-3 through its Python bindings.

Usage
-----
    from engine import create_engine

    engine = create_engine("auto")   # ns3 if the bindings import, else mock
    engine = create_engine("mock", mobility_seed=1)
"""

import logging
from typing import Dict, Type

from .base import EngineError, SimulationEngine
from .mock_engine import MockEngine
from .ns3_engine import NS3Engine, NS3BindingsError, check_ns3_bindings


logger = logging.getLogger(__name__)


# Registry mapping engine names to classes
ENGINE_REGISTRY: Dict[str, Type[SimulationEngine]] = {
    "mock": MockEngine,
    "ns3": NS3Engine,
}

AUTO_ENGINE = "auto"


def get_engine_class(name: str) -> Type[SimulationEngine]:
    """
    Get an engine class by name.

    Raises
    ------
    ValueError
        If the name is not in the registry.
    """
    if name not in ENGINE_REGISTRY:
        available = ", ".join(ENGINE_REGISTRY.keys())
        raise ValueError(
            f"Unknown engine: '{name}'. Available engines: {available}"
        )
    return ENGINE_REGISTRY[name]


def list_engines() -> Dict[str, str]:
    """Mapping of engine names to a one-line description."""
    return {
        name: (cls.__doc__ or "").strip().splitlines()[0]
        for name, cls in ENGINE_REGISTRY.items()
    }


def create_engine(name: str = AUTO_ENGINE, **kwargs) -> SimulationEngine:
    """
    Create an engine.

    ``"auto"`` picks ns3 when its bindings are importable and falls back
    to the mock engine otherwise. Requesting ``"ns3"`` explicitly without
    bindings raises NS3BindingsError.

    Parameters
    ----------
    name : str
        "auto", "ns3" or "mock"
    **kwargs
        Passed to the engine constructor
    """
    if name == AUTO_ENGINE:
        if check_ns3_bindings():
            name = "ns3"
        else:
            logger.warning(
                "NS-3 Python bindings not available. Falling back to the mock engine."
            )
            name = "mock"
    engine = get_engine_class(name)(**kwargs)
    logger.info(f"Using {engine.name}")
    return engine


__all__ = [
    "SimulationEngine",
    "EngineError",
    "MockEngine",
    "NS3Engine",
    "NS3BindingsError",
    "check_ns3_bindings",
    "ENGINE_REGISTRY",
    "AUTO_ENGINE",
    "get_engine_class",
    "list_engines",
    "create_engine",
]
