#!/usr/bin/env python3
"""
Mixed Wireless Cluster Simulation

Command-line entry point: assembles wireless clusters joined by a wired
backbone of randomly chosen representatives, then runs the simulation
to the stop time.

Usage:
    python main.py                                  # Two clusters {4, 3}, stop at 20 s
    python main.py --cluster-sizes 5 5 5            # Three clusters of five nodes
    python main.py --seed 42                        # Reproducible representatives
    python main.py --config scenario.json           # Load a JSON scenario
    python main.py --help                           # Show all options
"""

import argparse
import logging
import sys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Mixed wired/wireless cluster topology simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                    # Default {4, 3} clusters, OLSR
  %(prog)s --cluster-sizes 6 4 2 --seed 7     # Three clusters, fixed seed
  %(prog)s --routing aodv --stop-time 60      # AODV, one minute
  %(prog)s --engine mock --animation run.xml  # Mock engine with NetAnim output
        """,
    )

    # -------------------------------------------------------------------------
    # Scenario
    # -------------------------------------------------------------------------
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON scenario file; other flags override its values",
    )
    parser.add_argument(
        "--cluster-sizes",
        type=int,
        nargs="+",
        default=None,
        help="Number of nodes in each cluster (default: 4 3)",
    )
    parser.add_argument(
        "--stop-time",
        type=float,
        default=None,
        help="Simulation stop time in seconds, at least 10 (default: 20)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for representative selection",
    )
    parser.add_argument(
        "--routing",
        type=str,
        choices=["olsr", "aodv", "dsdv"],
        default=None,
        help="Routing protocol for every node (default: olsr)",
    )

    # -------------------------------------------------------------------------
    # Engine
    # -------------------------------------------------------------------------
    parser.add_argument(
        "--engine",
        type=str,
        choices=["auto", "ns3", "mock"],
        default="auto",
        help="Simulation engine; auto uses ns-3 when its bindings are installed (default: auto)",
    )

    # -------------------------------------------------------------------------
    # Tracing
    # -------------------------------------------------------------------------
    parser.add_argument(
        "--animation",
        type=str,
        default=None,
        help="Write a NetAnim XML trace to this file",
    )
    parser.add_argument(
        "--ascii-trace",
        type=str,
        default=None,
        help="Write an ASCII trace to this file",
    )
    parser.add_argument(
        "--pcap",
        type=str,
        default=None,
        help="Capture backbone devices to pcap files with this prefix",
    )
    parser.add_argument(
        "--course-changes",
        action="store_true",
        help="Log every mobility course change",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s"
    )

    from topology import ConfigurationError, RoutingProtocol, ScenarioConfig, run_scenario
    from engine import create_engine

    # -------------------------------------------------------------------------
    # Build and validate the scenario before touching any engine
    # -------------------------------------------------------------------------
    try:
        if args.config:
            config = ScenarioConfig.from_json_file(args.config)
        else:
            config = ScenarioConfig()

        if args.cluster_sizes is not None:
            config.cluster_sizes = args.cluster_sizes
        if args.stop_time is not None:
            config.stop_time = args.stop_time
        if args.seed is not None:
            config.seed = args.seed
        if args.routing is not None:
            config.routing = RoutingProtocol(args.routing)
        if args.animation:
            config.tracing.animation_file = args.animation
        if args.ascii_trace:
            config.tracing.ascii_trace_file = args.ascii_trace
        if args.pcap:
            config.tracing.pcap_prefix = args.pcap
        if args.course_changes:
            config.tracing.course_changes = True

        config.validate()
    except ConfigurationError as e:
        print(e)
        return 1

    # -------------------------------------------------------------------------
    # Print configuration summary
    # -------------------------------------------------------------------------
    print("=" * 60)
    print("Mixed Wireless Cluster Simulation")
    print("=" * 60)
    print(f"\nClusters: {config.num_clusters} (sizes {config.cluster_sizes})")
    print(f"Total Nodes: {config.total_nodes}")
    print(f"Routing: {config.routing.value}")
    print(f"Stop Time: {config.stop_time:g} s")

    # -------------------------------------------------------------------------
    # Assemble and run
    # -------------------------------------------------------------------------
    with create_engine(args.engine) as engine:
        topology, report = run_scenario(config, engine)

    summary = topology.summary()
    print(f"\n{'=' * 60}")
    print("Simulation Complete!")
    print(f"{'=' * 60}")
    print(f"Engine: {engine.name}")
    print(f"Seed: {summary['seed']}")
    for cluster in topology.clusters:
        rep = cluster.representative
        print(
            f"  {cluster.name}: {cluster.size} nodes on {cluster.subnet}, "
            f"representative node {rep.node_id} ({rep.addresses()[0].ip})"
        )
    print(f"  backbone: {topology.backbone.size} nodes on {topology.backbone.subnet}")
    print(f"\nFinal simulation time: {report.end_time:g} seconds")
    print(f"Events executed: {report.events_processed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
