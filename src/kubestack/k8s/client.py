# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/k8s/client.py

from __future__ import annotations

import logging
from typing import List

import yaml
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from kubestack.errors import InvalidRequestError

log = logging.getLogger("kubestack")

CONTROL_PLANE_TAINTS = ("node-role.kubernetes.io/master", "node-role.kubernetes.io/control-plane")
WORKER_ROLE_LABEL = "node-role.kubernetes.io/worker"
CONTROL_PLANE_SELECTOR = "node-role.kubernetes.io/control-plane"


def core_api(kubeconfig: str) -> client.CoreV1Api:
    """CoreV1Api for a cluster, built from kubeconfig text (never from ~/.kube)."""
    if not kubeconfig:
        raise InvalidRequestError("cluster has no kubeconfig yet")
    api_client = config.new_client_from_config_dict(yaml.safe_load(kubeconfig))
    return client.CoreV1Api(api_client)


def untaint_masters(core: client.CoreV1Api) -> List[str]:
    """
    Let workloads schedule on control plane nodes: drop the control plane
    NoSchedule taints and add the worker role label. Returns patched node names.
    """
    patched: List[str] = []
    for node in core.list_node(label_selector=CONTROL_PLANE_SELECTOR).items:
        taints = node.spec.taints or []
        keep = [
            {"key": t.key, "value": t.value, "effect": t.effect}
            for t in taints
            if t.key not in CONTROL_PLANE_TAINTS
        ]
        body = {
            "metadata": {"labels": {WORKER_ROLE_LABEL: ""}},
            "spec": {"taints": keep},
        }
        core.patch_node(node.metadata.name, body)
        patched.append(node.metadata.name)
    log.info("untainted control plane nodes: %s", ", ".join(patched) or "none")
    return patched


def load_balancer_services(core: client.CoreV1Api) -> List[tuple[str, str]]:
    return [
        (svc.metadata.namespace, svc.metadata.name)
        for svc in core.list_service_for_all_namespaces().items
        if svc.spec.type == "LoadBalancer"
    ]


def delete_service(core: client.CoreV1Api, namespace: str, name: str) -> None:
    try:
        core.delete_namespaced_service(name, namespace)
    except ApiException as exc:
        if exc.status == 404:
            return
        raise
