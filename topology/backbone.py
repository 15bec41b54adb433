#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Backbone Assembly Module

Joins the cluster representatives with one shared CSMA interconnect on
a subnet drawn from the backbone pool.
"""

import logging
from typing import Any, Sequence

from .addressing import SubnetAllocator
from .config import LinkConfig
from .errors import ConfigurationError
from .model import Backbone, Interface, Node, CSMA


logger = logging.getLogger(__name__)


class BackboneAssembler:
    """
    Parameters
    ----------
    engine : SimulationEngine
        Engine the backbone is installed on.
    allocator : SubnetAllocator
        Allocator holding the backbone pool.
    pool_name : str
        Name of the backbone pool.
    """

    def __init__(self, engine: Any, allocator: SubnetAllocator, pool_name: str):
        self.engine = engine
        self.allocator = allocator
        self.pool_name = pool_name

    def assemble_backbone(self, representatives: Sequence[Node], link_config: LinkConfig) -> Backbone:
        """
        Install the backbone across ``representatives`` in the given order.

        Each representative gains a second (CSMA) interface addressed in
        the backbone subnet.

        Raises
        ------
        ConfigurationError
            If there are no representatives.
        """
        if not representatives:
            raise ConfigurationError("Backbone needs at least one representative")

        handles = [node.handle for node in representatives]
        channel, devices = self.engine.install_csma(handles, link_config)

        subnet = self.allocator.allocate(self.pool_name)
        addresses = [subnet.next_address() for _ in devices]
        self.engine.assign_addresses(devices, addresses)
        self.allocator.advance(subnet)

        for node, device, address in zip(representatives, devices, addresses):
            node.add_interface(Interface(kind=CSMA, device=device, address=address))

        backbone = Backbone(
            representatives=tuple(representatives),
            subnet=subnet,
            channel=channel,
            link=link_config,
        )
        logger.info(
            f"Assembled backbone on {subnet} joining nodes "
            f"{[n.node_id for n in representatives]} "
            f"({link_config.data_rate_bps} bps, {link_config.delay_ms:g} ms)"
        )
        return backbone
