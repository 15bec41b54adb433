#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Topology Errors

Exception hierarchy shared by the topology assembly components.
"""


class TopologyError(Exception):
    """Base class for topology assembly errors."""
    pass


class ConfigurationError(TopologyError):
    """Invalid scenario configuration, detected before the engine is used."""
    pass


class AllocatorError(TopologyError):
    """Subnet allocator misuse (overlapping pools, unknown pool, re-issue)."""
    pass


class AddressExhaustedError(AllocatorError):
    """A pool ran out of subnets or a subnet ran out of host addresses."""
    pass


class SelectionError(TopologyError):
    """Representative selection was attempted twice on one cluster."""
    pass
