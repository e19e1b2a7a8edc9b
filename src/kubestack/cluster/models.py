# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/cluster/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

MASTER = "master"
WORKER = "worker"

# cluster status values written through the accessor
CREATING = "CREATING"
UPDATING = "UPDATING"
RUNNING = "RUNNING"
DELETING = "DELETING"
DELETED = "DELETED"
ERROR = "ERROR"


@dataclass
class NodePoolSpec:
    name: str
    role: str = WORKER  # master | worker
    min_count: int = 1
    max_count: int = 1
    count: int = 1
    instance_type: str = "t3.medium"
    image_id: str = ""
    volume_size: int = 0
    spot_price: float = 0.0  # 0 = on-demand
    autoscaling: bool = False
    availability_zones: List[str] = field(default_factory=list)
    subnet_ids: List[str] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def is_master(self) -> bool:
        return self.role == MASTER


@dataclass
class ProvisioningRequest:
    org_id: str
    cluster_id: str
    cluster_uid: str
    cluster_name: str
    region: str
    secret_id: str
    node_pools: List[NodePoolSpec] = field(default_factory=list)
    ssh_secret_id: str = ""
    kubernetes_version: str = "1.29.4"
    container_runtime: str = "containerd"
    os: str = "amazon-linux-2"
    oidc_enabled: bool = False
    pipeline_url: str = ""  # externally reachable base URL the bootstrap agents call back to
    vpc_id: str = ""
    route_table_id: str = ""
    vpc_cidr: str = "10.0.0.0/16"
    use_default_user: bool = False
    master_ready_timeout_s: int = 3600


@dataclass
class ClusterNetwork:
    vpc_id: str = ""
    subnet_ids: List[str] = field(default_factory=list)
    security_group_id: str = ""
    api_address: str = ""
    eip_allocation_id: str = ""


@dataclass
class ClusterRecord:
    id: str
    uid: str
    name: str
    org_id: str
    provider: str
    region: str
    secret_id: str
    ssh_secret_id: str = ""
    kubernetes_version: str = ""
    status: str = CREATING
    status_message: str = ""
    node_pools: List[NodePoolSpec] = field(default_factory=list)
    network: ClusterNetwork = field(default_factory=ClusterNetwork)
    kubeconfig: str = ""
    oidc_client_secret_id: str = ""
