# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/workflows/delete_cluster.py

from __future__ import annotations

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from kubestack.cluster import models as cluster_models
    from kubestack.temporal import names
    from kubestack.temporal.failures import as_workflow_error, describe
    from kubestack.temporal.models import ClusterRef, DeleteClusterInput, ProvisioningStatus
    from kubestack.temporal.options import long_options
    from kubestack.temporal.status import Stages

    from .common import call, mark_failed, set_status
    from .delete_infra import DeleteInfrastructureWorkflow
    from .k8s_resources import DeleteK8sResourcesWorkflow


@workflow.defn(name=names.DELETE_CLUSTER_WORKFLOW)
class DeleteClusterWorkflow:
    """
    In-cluster resources, DNS, OIDC client, infrastructure, then secrets.

    With ``forced`` set a failing step is logged and skipped; otherwise the
    first failure ends the workflow.
    """

    def __init__(self) -> None:
        self._status = ProvisioningStatus(phase="PENDING", message="Waiting to start")

    @workflow.query
    def status(self) -> ProvisioningStatus:
        return self._status

    @workflow.run
    async def run(self, inp: DeleteClusterInput) -> ProvisioningStatus:
        stages = Stages(self._status)
        stages.start(f"Deleting cluster {inp.cluster_name}")
        try:
            await self._delete(inp, stages)
        except Exception as exc:
            workflow.logger.error("cluster %s deletion failed: %s", inp.cluster_name, describe(exc))
            await mark_failed(inp.cluster_id, exc)
            raise as_workflow_error(exc)
        await set_status(inp.cluster_id, cluster_models.DELETED, "cluster deleted")
        stages.finish("Cluster deleted")
        return self._status

    async def _step(self, stages: Stages, name: str, aw, forced: bool) -> None:
        try:
            await stages.run(name, aw, tolerate=forced)
        except Exception as exc:
            if not forced:
                raise
            workflow.logger.warning("forced delete: skipping failed step %s: %s", name, describe(exc))

    async def _delete(self, inp: DeleteClusterInput, stages: Stages) -> None:
        ref = ClusterRef(cluster_id=inp.cluster_id, cluster_name=inp.cluster_name)
        await set_status(inp.cluster_id, cluster_models.DELETING, "deleting cluster")
        parent = workflow.info().workflow_id
        child_timeout = long_options()["start_to_close_timeout"]

        await self._step(stages, "k8s-resources", workflow.execute_child_workflow(
            DeleteK8sResourcesWorkflow.run,
            ref,
            id=f"{parent}:k8s-resources",
            execution_timeout=child_timeout,
        ), inp.forced)
        await self._step(stages, "dns", call(names.DELETE_DNS_RECORDS, ref, int), inp.forced)
        await self._step(stages, "oidc", call(names.DELETE_OIDC_CLIENT, ref), inp.forced)
        await self._step(stages, "infrastructure", workflow.execute_child_workflow(
            DeleteInfrastructureWorkflow.run,
            ref,
            id=f"{parent}:infrastructure",
        ), inp.forced)
        await self._step(stages, "secrets", call(names.DELETE_UNUSED_SECRETS, ref, int), inp.forced)
