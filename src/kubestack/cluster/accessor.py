# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/cluster/accessor.py

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Protocol

import yaml

from kubestack.errors import NotFoundError

from .models import ClusterNetwork, ClusterRecord, NodePoolSpec

log = logging.getLogger("kubestack")


class ClusterAccessor(Protocol):
    def get_cluster(self, cluster_id: str) -> ClusterRecord: ...
    def get_node_pools(self, cluster_id: str) -> List[NodePoolSpec]: ...
    def update_status(self, cluster_id: str, status: str, message: str) -> None: ...
    def persist(self, record: ClusterRecord) -> None: ...


def record_from_dict(data: dict) -> ClusterRecord:
    data = dict(data)
    data["node_pools"] = [NodePoolSpec(**p) for p in data.get("node_pools") or []]
    data["network"] = ClusterNetwork(**(data.get("network") or {}))
    return ClusterRecord(**data)


class InMemoryClusterStore:
    """Hands out copies; changes only land through persist/update_status."""

    def __init__(self, records: List[ClusterRecord] | None = None) -> None:
        self._records: Dict[str, ClusterRecord] = {r.id: r for r in records or []}
        self._lock = threading.RLock()

    def _changed(self, record: ClusterRecord) -> None:
        """Hook for persistent subclasses."""

    def _refresh(self, cluster_id: str) -> None:
        """Hook for persistent subclasses."""

    def get_cluster(self, cluster_id: str) -> ClusterRecord:
        with self._lock:
            self._refresh(str(cluster_id))
            try:
                return copy.deepcopy(self._records[str(cluster_id)])
            except KeyError:
                raise NotFoundError(f"cluster {cluster_id} not found") from None

    def get_node_pools(self, cluster_id: str) -> List[NodePoolSpec]:
        return self.get_cluster(cluster_id).node_pools

    def update_status(self, cluster_id: str, status: str, message: str) -> None:
        with self._lock:
            record = self.get_cluster(cluster_id)
            record.status = status
            record.status_message = message
            self.persist(record)
        log.info("cluster %s status=%s message=%s", cluster_id, status, message)

    def persist(self, record: ClusterRecord) -> None:
        with self._lock:
            self._records[record.id] = copy.deepcopy(record)
            self._changed(record)


class YamlClusterStore(InMemoryClusterStore):
    """
    One ``<cluster id>.yaml`` per cluster under ``base_dir``. The files are
    the source of truth: every read goes back to disk, so edits made by other
    processes are picked up.
    """

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir).expanduser()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        super().__init__()

    def _path(self, cluster_id: str) -> Path:
        return self.base_dir / f"{cluster_id}.yaml"

    def _refresh(self, cluster_id: str) -> None:
        path = self._path(cluster_id)
        if not path.exists():
            self._records.pop(cluster_id, None)
            return
        self._records[cluster_id] = record_from_dict(yaml.safe_load(path.read_text()) or {})

    def _changed(self, record: ClusterRecord) -> None:
        self._path(record.id).write_text(yaml.safe_dump(asdict(record), sort_keys=False))
