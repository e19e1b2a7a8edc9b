# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/workflows/k8s_resources.py

from __future__ import annotations

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from kubestack.temporal import names
    from kubestack.temporal.models import ClusterRef

    from .common import call


@workflow.defn(name=names.DELETE_K8S_RESOURCES_WORKFLOW)
class DeleteK8sResourcesWorkflow:
    """Remove LoadBalancer services so the cloud releases their load balancers."""

    @workflow.run
    async def run(self, ref: ClusterRef) -> int:
        deleted = await call(names.DELETE_LB_SERVICES, ref, int)
        if deleted:
            workflow.logger.info("waiting for %d load balancer services of %s to go", deleted, ref.cluster_name)
            await call(names.WAIT_LB_SERVICES, ref, long=True)
        return deleted
