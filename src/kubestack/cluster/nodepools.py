# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/cluster/nodepools.py

"""Pure node-pool planning helpers. Safe to call from workflow code."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from kubestack.errors import InvalidRequestError

from .models import NodePoolSpec


@dataclass
class NodePoolDiff:
    to_create: List[str] = field(default_factory=list)
    to_update: List[str] = field(default_factory=list)
    to_delete: List[str] = field(default_factory=list)


def diff_node_pools(existing: Iterable[str], desired: Iterable[str]) -> NodePoolDiff:
    """create = desired - existing, delete = existing - desired, update = both."""
    old = set(existing)
    new = set(desired)
    return NodePoolDiff(
        to_create=sorted(new - old),
        to_update=sorted(old & new),
        to_delete=sorted(old - new),
    )


def master_pool(pools: Iterable[NodePoolSpec]) -> NodePoolSpec:
    masters = [p for p in pools if p.is_master]
    if len(masters) != 1:
        raise InvalidRequestError(f"exactly one master node pool required, got {len(masters)}")
    return masters[0]


def worker_pools(pools: Iterable[NodePoolSpec]) -> List[NodePoolSpec]:
    return [p for p in pools if not p.is_master]


def validate_pools(pools: List[NodePoolSpec]) -> None:
    master_pool(pools)
    names = [p.name for p in pools]
    dupes = sorted({n for n in names if names.count(n) > 1})
    if dupes:
        raise InvalidRequestError(f"duplicate node pool names: {', '.join(dupes)}")
    for p in pools:
        if not (0 <= p.min_count <= p.max_count):
            raise InvalidRequestError(
                f"node pool {p.name}: min {p.min_count} must be between 0 and max {p.max_count}"
            )


def pool_zones(pool: NodePoolSpec, region: str) -> List[str]:
    """Zones a pool without explicit subnets lands in; defaults to the region's ``a`` zone."""
    if pool.subnet_ids:
        return []
    return list(pool.availability_zones) or [f"{region}a"]


def required_zones(pools: Iterable[NodePoolSpec], region: str) -> List[str]:
    zones = set()
    for p in pools:
        zones.update(pool_zones(p, region))
    return sorted(zones)


def assign_cidrs(zones: List[str], vpc_cidr: str, prefix: int = 20) -> Dict[str, str]:
    """Sequential /``prefix`` blocks of ``vpc_cidr``, in sorted zone order."""
    network = ipaddress.ip_network(vpc_cidr)
    if prefix < network.prefixlen:
        raise InvalidRequestError(f"subnet prefix /{prefix} is larger than VPC {vpc_cidr}")
    blocks = network.subnets(new_prefix=prefix)
    out: Dict[str, str] = {}
    for zone in sorted(zones):
        try:
            out[zone] = str(next(blocks))
        except StopIteration:
            raise InvalidRequestError(
                f"VPC {vpc_cidr} has room for fewer than {len(zones)} /{prefix} subnets"
            ) from None
    return out


def pool_subnets(
    pool: NodePoolSpec, region: str, zone_subnets: Dict[str, str]
) -> List[str]:
    """Subnet ids for a pool: its explicit ones, else the subnets created for its zones."""
    if pool.subnet_ids:
        return list(pool.subnet_ids)
    missing = [z for z in pool_zones(pool, region) if z not in zone_subnets]
    if missing:
        raise InvalidRequestError(f"node pool {pool.name}: no subnet for zones {', '.join(missing)}")
    return [zone_subnets[z] for z in pool_zones(pool, region)]


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
