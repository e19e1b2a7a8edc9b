# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/activities/registry.py

from __future__ import annotations

from typing import Callable, List

from .base import ActivityDeps
from .cluster import ClusterActivities
from .k8s import KubernetesActivities
from .network import NetworkActivities
from .nodepools import NodePoolActivities
from .stacks import StackActivities

GROUPS = (ClusterActivities, StackActivities, NetworkActivities, NodePoolActivities, KubernetesActivities)


def build_activities(deps: ActivityDeps) -> List[Callable]:
    """Bound activity methods of every group, ready for ``Worker(activities=...)``."""
    out: List[Callable] = []
    for group in GROUPS:
        instance = group(deps)
        for attr in dir(group):
            fn = getattr(instance, attr)
            if callable(fn) and hasattr(fn, "__temporal_activity_definition"):
                out.append(fn)
    return out
