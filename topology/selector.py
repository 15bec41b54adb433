#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Representative Selection Module

Chooses the backbone-facing node of each cluster uniformly at random.
"""

import logging
import random
from typing import Optional

import numpy as np

from .errors import SelectionError
from .model import Cluster, Node


logger = logging.getLogger(__name__)


class RepresentativeSelector:
    """
    Picks one representative per cluster from a single seeded generator.

    The generator is seeded once and advanced by every selection; it is
    never reseeded. With the same seed and the same cluster sizes the
    selected indices repeat exactly.

    Parameters
    ----------
    seed : int, optional
        Generator seed. A random seed is drawn (and kept in ``seed``)
        when None.
    """

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = random.randint(0, 2**31)
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def draw_index(self, size: int) -> int:
        """Uniform index in ``[0, size - 1]``."""
        if size < 1:
            raise ValueError(f"Cannot draw from an empty cluster (size={size})")
        return int(self._rng.integers(0, size))

    def select_representative(self, cluster: Cluster) -> Node:
        """
        Designate and return the representative of ``cluster``.

        Raises
        ------
        SelectionError
            If the cluster already has a representative.
        """
        if cluster.representative_index is not None:
            raise SelectionError(
                f"{cluster.name} already has representative at index "
                f"{cluster.representative_index}"
            )
        index = self.draw_index(cluster.size)
        node = cluster.set_representative(index)
        logger.info(
            f"{cluster.name}: representative is node {node.node_id} (index {index})"
        )
        return node
