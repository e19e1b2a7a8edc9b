# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/observers/events.py

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str                 # ISO timestamp
    run_id: str             # workflow run that caused the event
    env: str                # dev/staging/prod
    cluster: Optional[str]  # cluster name

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(env: str, cluster: Optional[str], run_id: str) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id,
        "env": env,
        "cluster": cluster,
    }


# ---------------------------------------------------------------------
# Stack lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StackCreateRequested(BaseEvent):
    stack: str
    token: str

@dataclass(frozen=True)
class StackAdopted(BaseEvent):
    stack: str

@dataclass(frozen=True)
class StackUpdateRequested(BaseEvent):
    stack: str
    changed: bool

@dataclass(frozen=True)
class StackDeleteRequested(BaseEvent):
    stack: str

@dataclass(frozen=True)
class StackFailed(BaseEvent):
    stack: str
    status: str
    final: bool
    reasons: List[str]


# ---------------------------------------------------------------------
# Waiter lifecycle (stacks, node pools, load balancers)
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class WaiterStarted(BaseEvent):
    name: str
    attempts: int
    interval_s: float

@dataclass(frozen=True)
class WaiterSucceeded(BaseEvent):
    name: str
    attempts: int

@dataclass(frozen=True)
class WaiterTimedOut(BaseEvent):
    name: str
    attempts: int

@dataclass(frozen=True)
class WaiterCancelled(BaseEvent):
    name: str
    attempts: int


# ---------------------------------------------------------------------
# Node pools
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class NodePoolCapacity(BaseEvent):
    group: str
    healthy: int
    desired: int

@dataclass(frozen=True)
class SpotRequestFailed(BaseEvent):
    group: str
    request_id: str
    status: str

@dataclass(frozen=True)
class DesiredCapacityClamped(BaseEvent):
    pool: str
    current: int
    submitted: int
