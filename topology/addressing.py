#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Subnet Allocation Module

Hands out successive, non-overlapping IPv4 subnets from named pools.

Each pool covers a bounded range (``base/pool_prefix``) and keeps a cursor
on the next block of its mask width. A block is issued with ``allocate``
and the cursor only moves on an explicit ``advance``, so the order in
which callers draw subnets is visible and checkable.

Example:

    allocator = SubnetAllocator()
    allocator.add_pool("backbone", "172.16.0.0", "255.255.255.0")
    subnet = allocator.allocate("backbone")   # 172.16.0.0/24
    subnet.next_address()                     # 172.16.0.1/24
    allocator.advance(subnet)                 # cursor -> 172.16.1.0/24
"""

import ipaddress
import logging
from itertools import combinations
from typing import Dict, List, Optional, Union

from .errors import AllocatorError, AddressExhaustedError


logger = logging.getLogger(__name__)

AddressLike = Union[str, ipaddress.IPv4Address]


class Subnet:
    """
    An issued IPv4 block with a host-address cursor.

    Parameters
    ----------
    network : ipaddress.IPv4Network
        The block itself.
    pool_name : str
        Name of the pool the block was drawn from.
    """

    def __init__(self, network: ipaddress.IPv4Network, pool_name: str):
        self.network = network
        self.pool_name = pool_name
        self._next_host = 1
        self._assigned: List[ipaddress.IPv4Interface] = []

    @property
    def prefixlen(self) -> int:
        return self.network.prefixlen

    @property
    def netmask(self) -> ipaddress.IPv4Address:
        return self.network.netmask

    @property
    def assigned(self) -> List[ipaddress.IPv4Interface]:
        """Addresses handed out so far, in order."""
        return list(self._assigned)

    @property
    def capacity(self) -> int:
        """Number of usable host addresses."""
        return max(self.network.num_addresses - 2, 0)

    def next_address(self) -> ipaddress.IPv4Interface:
        """
        Hand out the next host address of the block.

        Raises
        ------
        AddressExhaustedError
            If every host address has already been assigned.
        """
        if self._next_host > self.capacity:
            raise AddressExhaustedError(
                f"Subnet {self.network} has no host addresses left "
                f"({self.capacity} assigned)"
            )
        address = ipaddress.IPv4Interface(
            (int(self.network.network_address) + self._next_host, self.prefixlen)
        )
        self._next_host += 1
        self._assigned.append(address)
        return address

    def overlaps(self, other: "Subnet") -> bool:
        return self.network.overlaps(other.network)

    def __contains__(self, address) -> bool:
        if isinstance(address, ipaddress.IPv4Interface):
            address = address.ip
        return ipaddress.IPv4Address(address) in self.network

    def __eq__(self, other) -> bool:
        if not isinstance(other, Subnet):
            return NotImplemented
        return self.network == other.network and self.pool_name == other.pool_name

    def __hash__(self) -> int:
        return hash((self.network, self.pool_name))

    def __repr__(self) -> str:
        return f"Subnet({self.network}, pool={self.pool_name!r})"

    def __str__(self) -> str:
        return str(self.network)


class SubnetPool:
    """
    A bounded range of equally sized blocks with a cursor.

    Parameters
    ----------
    name : str
        Pool identifier.
    base : str or IPv4Address
        First network address of the pool.
    mask : str
        Dotted mask (``"255.255.255.0"``) or prefix length (``"24"``) of
        every block drawn from the pool.
    pool_prefix : int
        Prefix length of the whole pool range. Must not be longer than
        the block prefix.
    """

    def __init__(self, name: str, base: AddressLike, mask: str, pool_prefix: int = 16):
        self.name = name
        block = ipaddress.IPv4Network(f"{base}/{mask}", strict=True)
        if pool_prefix > block.prefixlen:
            raise AllocatorError(
                f"Pool {name!r}: pool prefix /{pool_prefix} is narrower "
                f"than block prefix /{block.prefixlen}"
            )
        self.block_prefix = block.prefixlen
        self.range = block.supernet(new_prefix=pool_prefix)
        self._cursor = block
        self._outstanding: Optional[Subnet] = None
        self._exhausted = False

    @property
    def cursor(self) -> ipaddress.IPv4Network:
        """Block that the next ``allocate`` will issue."""
        return self._cursor

    def overlaps(self, other: "SubnetPool") -> bool:
        return self.range.overlaps(other.range)

    def issue(self) -> Subnet:
        if self._exhausted:
            raise AddressExhaustedError(f"Pool {self.name!r} ({self.range}) is exhausted")
        if self._outstanding is not None:
            raise AllocatorError(
                f"Pool {self.name!r}: block {self._cursor} already issued; "
                f"advance the pool before allocating again"
            )
        self._outstanding = Subnet(self._cursor, self.name)
        return self._outstanding

    def advance(self) -> None:
        next_base = int(self._cursor.network_address) + self._cursor.num_addresses
        self._outstanding = None
        if next_base > int(self.range.broadcast_address):
            # Stays exhausted; the next issue() raises.
            self._exhausted = True
            return
        self._cursor = ipaddress.IPv4Network((next_base, self.block_prefix))

    def __repr__(self) -> str:
        return f"SubnetPool({self.name!r}, range={self.range}, cursor={self._cursor})"


class SubnetAllocator:
    """
    Registry of disjoint subnet pools.

    Pools are added up front; ``allocate`` draws the block at a pool's
    cursor and ``advance`` moves that cursor past the issued block.
    """

    def __init__(self):
        self._pools: Dict[str, SubnetPool] = {}
        self._issued: List[Subnet] = []

    @property
    def pools(self) -> Dict[str, SubnetPool]:
        return dict(self._pools)

    @property
    def issued(self) -> List[Subnet]:
        """Every subnet issued so far, in issue order."""
        return list(self._issued)

    def add_pool(
        self,
        name: str,
        base: AddressLike,
        mask: str = "255.255.255.0",
        pool_prefix: int = 16,
    ) -> SubnetPool:
        """
        Register a new pool.

        Raises
        ------
        AllocatorError
            If the name is taken or the pool range overlaps another pool.
        """
        if name in self._pools:
            raise AllocatorError(f"Pool {name!r} already exists")
        try:
            pool = SubnetPool(name, base, mask, pool_prefix)
        except ValueError as e:
            raise AllocatorError(f"Invalid pool {name!r}: {e}") from e
        for other in self._pools.values():
            if pool.overlaps(other):
                raise AllocatorError(
                    f"Pool {name!r} ({pool.range}) overlaps pool "
                    f"{other.name!r} ({other.range})"
                )
        self._pools[name] = pool
        logger.debug(f"Added subnet pool {name!r} covering {pool.range}")
        return pool

    def _pool(self, name: str) -> SubnetPool:
        try:
            return self._pools[name]
        except KeyError:
            raise AllocatorError(f"Unknown subnet pool {name!r}") from None

    def allocate(self, pool_name: str) -> Subnet:
        """Issue the block at the pool's cursor."""
        subnet = self._pool(pool_name).issue()
        self._issued.append(subnet)
        logger.debug(f"Allocated {subnet.network} from pool {pool_name!r}")
        return subnet

    def advance(self, subnet: Subnet) -> None:
        """Move the cursor of ``subnet``'s pool to the next block."""
        pool = self._pool(subnet.pool_name)
        if pool.cursor != subnet.network:
            raise AllocatorError(
                f"Cannot advance pool {pool.name!r} past {subnet.network}: "
                f"cursor is at {pool.cursor}"
            )
        pool.advance()

    def check_disjoint(self) -> bool:
        """Return True if no two issued subnets overlap."""
        return not any(a.overlaps(b) for a, b in combinations(self._issued, 2))
