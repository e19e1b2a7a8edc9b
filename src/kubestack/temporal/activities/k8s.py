# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/activities/k8s.py

from __future__ import annotations

from typing import List, Optional

from temporalio import activity

from kubestack.aws.polling import Poller, PollTimeout
from kubestack.errors import LoadBalancersPresentError, classified
from kubestack.k8s import client as k8s
from kubestack.temporal import names
from kubestack.temporal.models import ClusterRef

from .base import Activities


class KubernetesActivities(Activities):
    """Calls against the provisioned cluster's API server."""

    @activity.defn(name=names.UNTAINT_MASTER)
    @classified
    def untaint_master(self, inp: ClusterRef) -> List[str]:
        record = self.cluster(inp.cluster_id)
        return k8s.untaint_masters(k8s.core_api(record.kubeconfig))

    @activity.defn(name=names.DELETE_LB_SERVICES)
    @classified
    def delete_lb_services(self, inp: ClusterRef) -> int:
        record = self.cluster(inp.cluster_id)
        if not record.kubeconfig:
            activity.logger.info("cluster %s has no kubeconfig, nothing to delete", record.name)
            return 0
        core = k8s.core_api(record.kubeconfig)
        services = k8s.load_balancer_services(core)
        for namespace, name in services:
            activity.logger.info("deleting service %s/%s", namespace, name)
            k8s.delete_service(core, namespace, name)
        return len(services)

    @activity.defn(name=names.WAIT_LB_SERVICES)
    @classified
    def wait_lb_services(self, inp: ClusterRef) -> None:
        record = self.cluster(inp.cluster_id)
        if not record.kubeconfig:
            return
        core = k8s.core_api(record.kubeconfig)
        remaining: List[str] = []

        def check(_attempt: int) -> Optional[bool]:
            remaining[:] = [f"{ns}/{name}" for ns, name in k8s.load_balancer_services(core)]
            return True if not remaining else None

        poller = Poller(
            name=f"k8s/{record.name}/load-balancer-services",
            interval=self.config.polling.k8s_interval_s,
            attempts=self.config.polling.k8s_attempts,
            bus=self.deps.bus,
            event_ctx=self.event_ctx(record),
        )
        try:
            poller.run(check)
        except PollTimeout as exc:
            raise LoadBalancersPresentError(
                f"load balancer services still present: {', '.join(remaining)}"
            ) from exc
