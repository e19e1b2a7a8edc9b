# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/cluster/bootstrap.py

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import MASTER, NodePoolSpec


@dataclass(frozen=True)
class BootstrapContext:
    pipeline_url: str
    org_id: str
    cluster_id: str
    cluster_name: str
    kubernetes_version: str
    api_address: str
    container_runtime: str = "containerd"
    cloud_provider: str = ""
    ha_master: bool = False
    oidc_issuer_url: Optional[str] = None
    oidc_client_id: Optional[str] = None


def _labels(labels: Dict[str, str]) -> str:
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))


def bootstrap_command(ctx: BootstrapContext, pool: NodePoolSpec) -> str:
    """
    Shell command the node runs at first boot to join (or form) the cluster.

    The agent reports back to ``pipeline_url`` and signals the create
    workflow when a master is ready.
    """
    role = "master" if pool.role == MASTER else "worker"
    args: List[str] = [
        "pke", "install", role,
        f"--pipeline-url={ctx.pipeline_url}",
        f"--pipeline-org-id={ctx.org_id}",
        f"--pipeline-cluster-id={ctx.cluster_id}",
        f"--pipeline-nodepool={pool.name}",
        f"--kubernetes-version={ctx.kubernetes_version}",
        f"--kubernetes-container-runtime={ctx.container_runtime}",
        f"--kubernetes-api-server={ctx.api_address}:6443",
        f"--kubernetes-cluster-name={ctx.cluster_name}",
    ]
    if ctx.cloud_provider:
        args.append(f"--kubernetes-cloud-provider={ctx.cloud_provider}")
    if pool.labels:
        args.append(f"--kubernetes-node-labels={_labels(pool.labels)}")

    if role == "master":
        args.append(f"--kubernetes-master-mode={'ha' if ctx.ha_master else 'default'}")
        if ctx.oidc_issuer_url and ctx.oidc_client_id:
            args.append(f"--kubernetes-oidc-issuer-url={ctx.oidc_issuer_url}")
            args.append(f"--kubernetes-oidc-client-id={ctx.oidc_client_id}")

    return " ".join(shlex.quote(a) for a in args)
