#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Simulation Driver Module

Hands an assembled topology to an engine: schedules the stop event,
runs the engine to completion and destroys it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple

import numpy as np

from .assembly import assemble_topology
from .config import MIN_STOP_TIME, ScenarioConfig, TracingConfig, check_stop_time
from .model import Topology


logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """
    Outcome of one simulation run.

    Attributes
    ----------
    stop_time : float
        Requested stop time (seconds).
    end_time : float
        Simulation time when the engine returned.
    events_processed : int
        Events executed by the engine.
    reached_stop : bool
        True if the run ended on the stop event rather than by running
        out of events.
    """
    stop_time: float
    end_time: float
    events_processed: int
    reached_stop: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stop_time": self.stop_time,
            "end_time": self.end_time,
            "events_processed": self.events_processed,
            "reached_stop": self.reached_stop,
        }


class SimulationDriver:
    """
    Runs an engine to a stop time.

    Parameters
    ----------
    engine : SimulationEngine
        Engine the topology was assembled on.
    min_stop_time : float
        Smallest accepted stop time.
    """

    def __init__(self, engine: Any, min_stop_time: float = MIN_STOP_TIME):
        self.engine = engine
        self.min_stop_time = min_stop_time

    def check_stop_time(self, stop_time: float) -> None:
        check_stop_time(stop_time, self.min_stop_time)

    def run(self, topology: Topology, stop_time: float) -> RunReport:
        """
        Run the engine until ``stop_time`` or until no events remain.

        The engine is destroyed afterwards, also when the run raises.

        Raises
        ------
        ConfigurationError
            If ``stop_time`` is below the minimum; the engine is not
            touched in that case.
        """
        self.check_stop_time(stop_time)

        engine = self.engine
        logger.info(
            f"Run Simulation: {topology.node_count} nodes, stop at {stop_time:g}s"
        )
        try:
            engine.stop(stop_time)
            engine.run()
            end_time = engine.now
            report = RunReport(
                stop_time=stop_time,
                end_time=end_time,
                events_processed=engine.event_count,
                reached_stop=bool(np.isclose(end_time, stop_time)),
            )
        finally:
            engine.destroy()

        logger.info(
            f"Simulation finished at t={report.end_time:g}s "
            f"after {report.events_processed} events"
        )
        return report


def install_tracing(engine: Any, tracing: TracingConfig) -> None:
    """Enable the observation outputs requested by ``tracing``."""
    if tracing.animation_file:
        engine.enable_animation(tracing.animation_file)
    if tracing.ascii_trace_file:
        engine.enable_ascii_trace(tracing.ascii_trace_file)
    if tracing.pcap_prefix:
        engine.enable_pcap(tracing.pcap_prefix)
    if tracing.course_changes:
        engine.connect_course_change(log_course_change)


def log_course_change(node_id: int, position: np.ndarray, time: float) -> None:
    logger.info(
        f"CourseChange node {node_id} t={time:.3f} "
        f"x={position[0]:.3f}, y={position[1]:.3f}, z={position[2]:.3f}"
    )


def run_scenario(config: ScenarioConfig, engine: Any) -> Tuple[Topology, RunReport]:
    """
    Validate, assemble and run a scenario.

    Returns the assembled topology and the run report.

    The configuration is checked before any node is created, so a
    configuration error leaves the engine untouched.
    """
    config.validate()
    topology = assemble_topology(config, engine)
    install_tracing(engine, config.tracing)
    report = SimulationDriver(engine, config.min_stop_time).run(topology, config.stop_time)
    return topology, report
